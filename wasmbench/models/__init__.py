"""Models for benchmark data structures."""

from .benchmark_result import ComparisonReport, PhaseTiming, ProgramReturn, RunResult
from .process_snapshot import ProcessSnapshot

__all__ = ["ComparisonReport", "PhaseTiming", "ProgramReturn", "RunResult", "ProcessSnapshot"]
