"""
Configuration manager for benchmark runs.

This module provides the ConfigLoader class for loading and validating
benchmark configuration from YAML files.
"""
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml

from wasmbench.config.benchmark_config import (
    DEFAULT_ITERATIONS,
    DEFAULT_MEMORY_LIMIT_PAGES,
    DEFAULT_ROUNDS,
    BenchmarkConfig,
)
from wasmbench.config.engine_variant import EngineVariant
from wasmbench.consts.BackendKind import BackendKind
from wasmbench.service.engine.errors import ConfigurationError
from wasmbench.util.file_utils import validate_cache_dir

DEFAULT_CONFIG_DIR = Path(__file__).resolve().parent.parent / "config_yaml"


def _positive_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"'{key}' must be an integer, got {value!r}")
    if value < 1:
        raise ConfigurationError(f"'{key}' must be >= 1, got {value}")
    return value


class ConfigLoader:

    def __init__(self, config_path: Path = DEFAULT_CONFIG_DIR, env: str = None):
        self.config_path = Path(config_path)
        self.env = env
        self.raw_data = self._read_yaml()
        self.config_data = self._parse(self.raw_data)

    def _read_yaml(self) -> Dict[str, Any]:
        """
        Load config.yaml, merging config_<env>.yaml on top when an env is given.

        Returns:
            Dict of top-level keys
        """
        base_config_file = self.config_path / "config.yaml"
        data = self._load_file(base_config_file)

        if self.env:
            env_config_file = self.config_path / f"config_{self.env}.yaml"
            # dict.update() overwrites top-level keys, including the whole variants list
            data.update(self._load_file(env_config_file))

        return data

    @staticmethod
    def _load_file(path: Path) -> Dict[str, Any]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError as e:
            raise ConfigurationError(f"Configuration file not found: {path}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a mapping")
        return data

    def _parse(self, data: Dict[str, Any]) -> BenchmarkConfig:
        config = BenchmarkConfig()

        config.iterations = _positive_int(data.get("iterations", DEFAULT_ITERATIONS), "iterations")
        config.memory_limit_pages = _positive_int(
            data.get("memory_limit_pages", DEFAULT_MEMORY_LIMIT_PAGES), "memory_limit_pages")
        config.rounds = _positive_int(data.get("rounds", DEFAULT_ROUNDS), "rounds")
        config.output_cwd = Path(data.get("output_cwd") or "results")

        cache_dir = data.get("compilation_cache_dir")
        config.compilation_cache_dir = Path(cache_dir) if cache_dir else None

        config.variants = self._parse_variants(data.get("variants") or [], config)
        return config

    def _parse_variants(self, items: List[Dict[str, Any]], config: BenchmarkConfig) -> List[EngineVariant]:
        variants = []
        seen = set()
        for item in items:
            if not isinstance(item, dict) or "backend" not in item:
                raise ConfigurationError(f"Variant entry needs a 'backend': {item!r}")
            if not item.get("enabled", True):
                continue

            try:
                backend = BackendKind(item["backend"])
            except ValueError as e:
                choices = ", ".join(kind.value for kind in BackendKind)
                raise ConfigurationError(f"Unknown backend '{item['backend']}' (expected one of: {choices})") from e

            name = item.get("name") or backend.value
            if name in seen:
                raise ConfigurationError(f"Duplicate variant name: {name}")
            seen.add(name)

            options = dict(item.get("options") or {})
            if "iterations" in options:
                _positive_int(options["iterations"], f"{name}.iterations")
            options.setdefault("memory_limit_pages", config.memory_limit_pages)
            _positive_int(options["memory_limit_pages"], f"{name}.memory_limit_pages")

            variants.append(EngineVariant(name=name, backend_kind=backend, configuration=options))
        return variants

    def apply_overrides(
        self,
        iterations: Optional[int] = None,
        rounds: Optional[int] = None,
        cache_dir: Optional[Path] = None,
        backends: Optional[Iterable[str]] = None,
    ) -> BenchmarkConfig:
        """
        Apply command line overrides on top of the YAML configuration.

        A command line iteration count replaces per-variant overrides too.
        """
        config = self.config_data
        if iterations is not None:
            config.iterations = _positive_int(iterations, "iterations")
            config.variants = [
                EngineVariant(v.name, v.backend_kind, {**v.configuration, "iterations": config.iterations})
                for v in config.variants
            ]
        if rounds is not None:
            config.rounds = _positive_int(rounds, "rounds")
        if cache_dir is not None:
            config.compilation_cache_dir = Path(cache_dir)
        if backends:
            wanted = set(backends)
            unknown = wanted - {kind.value for kind in BackendKind}
            if unknown:
                raise ConfigurationError(f"Unknown backend(s): {', '.join(sorted(unknown))}")
            config.variants = [v for v in config.variants if v.backend_kind.value in wanted]
        return config

    def validate(self) -> BenchmarkConfig:
        """
        Final checks that must pass before any variant runs.

        Raises:
            ConfigurationError: On an empty variant list or an unusable cache directory
        """
        config = self.config_data
        if not config.variants:
            raise ConfigurationError("No engine variants enabled")
        if config.compilation_cache_dir is not None:
            config.compilation_cache_dir = validate_cache_dir(config.compilation_cache_dir)
        return config


if __name__ == "__main__":

    # python3 -m wasmbench.config.config_loader

    loader = ConfigLoader(env="dev")
    print(loader.config_data)
