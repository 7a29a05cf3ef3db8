"""
Runs every configured engine variant over the same module, one after another,
and collects the results into a ComparisonReport.
"""
from typing import Callable, Optional

from wasmbench.config.benchmark_config import BenchmarkConfig
from wasmbench.config.engine_variant import EngineVariant
from wasmbench.models.benchmark_result import ComparisonReport
from wasmbench.service.engine.compilation_cache import CompilationCache
from wasmbench.service.engine.engine import WasmEngine
from wasmbench.service.engine.engine_factory import build_engine
from wasmbench.service.monitor.process_monitor import ProcessMonitor
from wasmbench.service.runner.benchmark_runner import BenchmarkRunner
from wasmbench.util.log_config import setup_logger

logger = setup_logger(__name__)

EngineBuilder = Callable[..., WasmEngine]


class Comparator:

    def __init__(
        self,
        config: BenchmarkConfig,
        engine_builder: EngineBuilder = build_engine,
        cache: Optional[CompilationCache] = None,
        track_memory: bool = True,
    ) -> None:
        self.config = config
        self.engine_builder = engine_builder
        # Outlives individual rounds so later rounds can hit the in-memory cache
        self.cache = cache if cache is not None else CompilationCache(config.compilation_cache_dir)
        self.track_memory = track_memory

    def _engine_factory(self, variant: EngineVariant) -> WasmEngine:
        return self.engine_builder(variant, cache=self.cache)

    def run(self, module_bytes: bytes, module_name: str = "module.wasm", round_index: int = 1) -> ComparisonReport:
        variants = self.config.variants
        report = ComparisonReport(module_name=module_name, round_index=round_index)
        stats_before = self.cache.stats()

        for idx, variant in enumerate(variants, 1):
            iterations = self.config.iterations_for(variant)
            logger.info(f"Variant {idx}/{len(variants)}: {variant.name} ({iterations} iterations)")
            runner = BenchmarkRunner(
                variant,
                iterations,
                engine_factory=self._engine_factory,
                monitor=ProcessMonitor() if self.track_memory else None,
            )
            result = runner.run(module_bytes)
            report.results.append(result)
            if result.succeeded:
                logger.info(f"✓ {variant.name}: returned {result.program_return.return_value}")
            else:
                logger.info(f"✗ {variant.name}: {result.error_kind}")

        stats_after = self.cache.stats()
        report.cache_stats = {key: stats_after[key] - stats_before[key] for key in stats_after}
        report.cache_stats["entries"] = len(self.cache)
        return report
