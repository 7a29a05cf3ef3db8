r"""
Drives one engine variant through the measurement protocol.

    Created -> Compiled -> Instantiated -> Ready -> WarmedUp -> Completed
                    \____________\____________\________\___________> Failed

The first call is timed on its own. The steady-state block then performs
exactly `iterations` further calls, so a completed run makes iterations + 1
calls in total. Engine resources are released exactly once on every exit
path, instance before artifact before engine.
"""
import time
from typing import Callable, Optional

from wasmbench.config.engine_variant import EngineVariant
from wasmbench.consts.Phase import Phase
from wasmbench.consts.RunState import RunState
from wasmbench.models.benchmark_result import ProgramReturn, RunResult
from wasmbench.service.engine.engine import CompiledArtifact, ExecutionInstance, WasmEngine
from wasmbench.service.engine.engine_factory import build_engine
from wasmbench.service.engine.errors import DEFAULT_FUNCTION_NAME, ConfigurationError, EngineError
from wasmbench.service.monitor.process_monitor import ProcessMonitor
from wasmbench.service.timer.phase_timer import PhaseTimer
from wasmbench.util.log_config import setup_logger

logger = setup_logger(__name__)

EngineFactory = Callable[[EngineVariant], WasmEngine]


class BenchmarkRunner:

    def __init__(
        self,
        variant: EngineVariant,
        iterations: int,
        engine_factory: EngineFactory = build_engine,
        monitor: Optional[ProcessMonitor] = None,
        clock: Callable[[], int] = time.perf_counter_ns,
        function_name: str = DEFAULT_FUNCTION_NAME,
    ) -> None:
        if isinstance(iterations, bool) or not isinstance(iterations, int) or iterations < 1:
            raise ConfigurationError(f"{variant.name}: iteration count must be a positive integer, got {iterations!r}")
        self.variant = variant
        self.iterations = iterations
        self.engine_factory = engine_factory
        self.monitor = monitor
        self.clock = clock
        self.function_name = function_name

        self.state = RunState.CREATED
        self.engine: Optional[WasmEngine] = None
        self.artifact: Optional[CompiledArtifact] = None
        self.instance: Optional[ExecutionInstance] = None
        self.released = False

    def run(self, module_bytes: bytes) -> RunResult:
        if self.state != RunState.CREATED:
            raise RuntimeError(f"{self.variant.name}: a runner can only be used once (state={self.state.value})")

        timer = PhaseTimer(clock=self.clock)
        program_return = ProgramReturn()
        error_kind = None
        rss_delta = None

        if self.monitor is not None:
            self.monitor.start()
        try:
            program_return.return_value = self._execute(module_bytes, timer)
        except EngineError as e:
            self.state = RunState.FAILED
            error_kind = e.kind
            program_return = ProgramReturn(error_message=str(e) or e.kind)
            logger.warning(f"{self.variant.name}: {e.kind}: {program_return.error_message}")
        finally:
            self.release()
            if self.monitor is not None:
                rss_delta = self.monitor.stop()

        return RunResult(
            variant=self.variant,
            program_return=program_return,
            timing=timer.finish(),
            iterations=self.iterations,
            final_state=self.state,
            error_kind=error_kind,
            rss_delta_bytes=rss_delta,
        )

    def _execute(self, module_bytes: bytes, timer: PhaseTimer) -> int:
        load_start = self.clock()
        self.engine = self.engine_factory(self.variant)

        with timer.measure(Phase.COMPILE):
            self.artifact = self.engine.compile(module_bytes)
        self.state = RunState.COMPILED

        with timer.measure(Phase.INSTANTIATE):
            self.instance = self.engine.instantiate(self.artifact)
        self.state = RunState.INSTANTIATED

        with timer.measure(Phase.LOOKUP):
            function = self.engine.lookup_export(self.instance, self.function_name)
        self.state = RunState.READY
        timer.record(Phase.LOAD_TO_LOOKUP, timer.elapsed_since(load_start))

        with timer.measure(Phase.FIRST_CALL):
            value = self.engine.call(function)
        self.state = RunState.WARMED_UP
        logger.debug(f"{self.variant.name}: first call returned {value}")

        call = self.engine.call
        start = self.clock()
        for _ in range(self.iterations):
            value = call(function)
        timer.record_steady_state(self.clock() - start, self.iterations)
        self.state = RunState.COMPLETED
        return value

    def release(self) -> None:
        """Free everything this run acquired. Later calls do nothing."""
        if self.released:
            return
        self.released = True
        if self.engine is None:
            return
        try:
            self.engine.release(self.instance, self.artifact)
        finally:
            self.instance = None
            self.artifact = None
            self.engine = None
