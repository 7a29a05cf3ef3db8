"""
Monotonic instrumentation for the phases of one benchmark run.

All durations are integer nanoseconds from time.perf_counter_ns. A phase
whose operation raises is not recorded.
"""
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from wasmbench.consts.Phase import Phase
from wasmbench.models.benchmark_result import PhaseTiming
from wasmbench.service.engine.errors import ConfigurationError


class PhaseTimer:

    def __init__(self, timing: Optional[PhaseTiming] = None, clock: Callable[[], int] = time.perf_counter_ns):
        self.timing = timing if timing is not None else PhaseTiming()
        self.clock = clock

    @contextmanager
    def measure(self, phase: Phase) -> Iterator[None]:
        start = self.clock()
        yield
        self.timing.record(phase, self.clock() - start)

    def elapsed_since(self, start_ns: int) -> int:
        return self.clock() - start_ns

    def record(self, phase: Phase, elapsed_ns: int) -> None:
        self.timing.record(phase, elapsed_ns)

    def record_steady_state(self, total_ns: int, iterations: int) -> float:
        """
        Record the steady-state block and its mean cost per call.

        Raises:
            ConfigurationError: If iterations is below 1
        """
        if iterations < 1:
            raise ConfigurationError(f"iteration count must be >= 1, got {iterations}")
        per_iteration = total_ns / iterations
        self.timing.record(Phase.STEADY_STATE_TOTAL, total_ns)
        self.timing.record(Phase.STEADY_STATE_PER_ITERATION, per_iteration)
        return per_iteration

    def finish(self) -> PhaseTiming:
        self.timing.freeze()
        return self.timing
