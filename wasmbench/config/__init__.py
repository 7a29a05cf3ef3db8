"""Configuration module for benchmark runs."""

from .benchmark_config import BenchmarkConfig
from .engine_variant import EngineVariant

__all__ = ["BenchmarkConfig", "EngineVariant"]
