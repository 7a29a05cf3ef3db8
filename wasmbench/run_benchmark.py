#!/usr/bin/env python3
"""
Cross-engine WebAssembly benchmark entry point.

Loads the configuration, reads the module once, runs every enabled engine
variant through the measurement protocol and prints the comparison.

Exit codes:
    0  every variant succeeded and all return values agree
    1  at least one variant failed
    2  configuration error, nothing was run
    3  every variant succeeded but the return values differ
"""
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from wasmbench.cli.cli import parse_args
from wasmbench.config.benchmark_config import BenchmarkConfig
from wasmbench.config.config_loader import DEFAULT_CONFIG_DIR, ConfigLoader
from wasmbench.consts.ExitCode import ExitCode
from wasmbench.models.benchmark_result import ComparisonReport
from wasmbench.service.comparator.comparator import Comparator
from wasmbench.service.engine.errors import ConfigurationError
from wasmbench.service.reporter.report_printer import export_csv, print_report
from wasmbench.util.file_utils import read_module_bytes
from wasmbench.util.log_config import set_level, setup_logger

logger = setup_logger(__name__)


def exit_code_for(reports: List[ComparisonReport]) -> ExitCode:
    code = ExitCode.OK
    for report in reports:
        if report.diverged:
            code = max(code, ExitCode.DIVERGENCE)
        elif not report.all_succeeded:
            code = max(code, ExitCode.VARIANT_FAILED)
    return ExitCode(code)


def load_config(args) -> BenchmarkConfig:
    loader = ConfigLoader(Path(args.config_dir) if args.config_dir else DEFAULT_CONFIG_DIR, env=args.env)
    if args.env:
        logger.info(f"Loaded configuration with environment override: {args.env}")
    loader.apply_overrides(
        iterations=args.iterations,
        rounds=args.rounds,
        cache_dir=Path(args.cache_dir) if args.cache_dir else None,
        backends=args.engines,
    )
    return loader.validate()


def output_path(config: BenchmarkConfig, name: str) -> Path:
    path = Path(name)
    return path if path.is_absolute() else Path(config.output_cwd) / path


def save_json(reports: List[ComparisonReport], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if len(reports) == 1:
        reports[0].save_to_file(str(path))
        return
    with open(path, "w", encoding="utf-8") as f:
        json.dump({"rounds": [r.to_dict() for r in reports]}, f, ensure_ascii=False, indent=2)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    if args.verbose:
        set_level(logging.DEBUG)

    try:
        if not args.file:
            raise ConfigurationError("No module given, use -f/--file <module.wasm>")
        config = load_config(args)
        module_path = Path(args.file)
        module_bytes = read_module_bytes(module_path)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return int(ExitCode.CONFIGURATION_ERROR)

    logger.info("=" * 60)
    logger.info(f"Benchmarking {module_path.name} ({len(module_bytes)} bytes)")
    logger.info(f"Variants: {', '.join(v.name for v in config.variants)}")
    logger.info("=" * 60)

    comparator = Comparator(config)
    reports = []
    for round_index in range(1, config.rounds + 1):
        if config.rounds > 1:
            logger.info(f"Round {round_index}/{config.rounds}")
        report = comparator.run(module_bytes, module_name=module_path.name, round_index=round_index)
        print_report(report)
        reports.append(report)

    if args.out:
        path = output_path(config, args.out)
        save_json(reports, path)
        logger.info(f"✓ JSON report saved to: {path.resolve()}")
    if args.csv:
        path = export_csv(reports, output_path(config, args.csv))
        logger.info(f"✓ CSV exported to: {path.resolve()}")

    return int(exit_code_for(reports))


if __name__ == "__main__":
    sys.exit(main())
