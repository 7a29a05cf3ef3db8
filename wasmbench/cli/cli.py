#!/usr/bin/env python3
"""
Command-line interface for the benchmark harness.
"""
import argparse
from typing import List, Optional

from wasmbench.consts.BackendKind import BackendKind


def build_env_parser(description: Optional[str] = None) -> argparse.ArgumentParser:
    """
    Create an ArgumentParser with the common --env option.

    Args:
        description: Optional parser description shown in CLI help.

    Returns:
        argparse.ArgumentParser: parser preconfigured with the --env argument.
    """
    parser = argparse.ArgumentParser(
        description=description,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Compare every configured engine
  python3 -m wasmbench -f add_one.wasm

  # Only wasm3 and wasmtime, 100 steady-state calls each
  python3 -m wasmbench -f add_one.wasm -n 100 --engines interpreter aot_no_cache

  # Persist AOT artifacts and show the warm cache on a second round
  python3 -m wasmbench -f add_one.wasm --cache-dir ./wasm-cache --rounds 2
        """,
    )
    parser.add_argument(
        "--env",
        type=str,
        default=None,
        help=(
            "Environment name for configuration override (e.g., 'dev', 'prod'). "
            "Loads config_<env>.yaml in addition to the base config.yaml."
        ),
    )
    return parser


def build_parser() -> argparse.ArgumentParser:
    parser = build_env_parser("Benchmark a WebAssembly `program` export across execution engines")
    parser.add_argument(
        "-f", "--file",
        type=str,
        default=None,
        help="Path to the .wasm module (required)",
    )
    parser.add_argument(
        "-n", "--iterations",
        type=int,
        default=None,
        help="Steady-state calls after the first call (overrides every variant)",
    )
    parser.add_argument(
        "--cache-dir",
        type=str,
        default=None,
        help="Existing directory for persisted AOT compilation artifacts",
    )
    parser.add_argument(
        "--engines",
        nargs="+",
        choices=[kind.value for kind in BackendKind],
        default=None,
        help="Only run variants of these backends",
    )
    parser.add_argument(
        "--rounds",
        type=int,
        default=None,
        help="Repeat the whole comparison this many times",
    )
    parser.add_argument(
        "--config-dir",
        type=str,
        default=None,
        help="Directory holding config.yaml (default: packaged config_yaml/)",
    )
    parser.add_argument(
        "--out",
        type=str,
        default=None,
        help="Save the report(s) as JSON (relative paths go under output_cwd)",
    )
    parser.add_argument(
        "--csv",
        type=str,
        default=None,
        help="Save one row per variant and round as CSV (relative paths go under output_cwd)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Debug logging",
    )
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)
