"""Benchmark result data models."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from wasmbench.config.engine_variant import EngineVariant
from wasmbench.consts.Phase import Phase
from wasmbench.consts.RunState import RunState

NANOS_PER_MILLI = 1_000_000

Duration = Union[int, float]


class PhaseTiming:
    """
    Ordered (phase, nanoseconds) pairs for one run.

    Entries can only be appended, and only until freeze() is called at the
    end of the run.
    """

    def __init__(self) -> None:
        self._entries: List[Tuple[Phase, Duration]] = []
        self._frozen = False

    def record(self, phase: Phase, elapsed_ns: Duration) -> None:
        if self._frozen:
            raise RuntimeError("PhaseTiming is immutable once the run has completed")
        self._entries.append((phase, elapsed_ns))

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, phase: Phase) -> Optional[Duration]:
        for recorded, elapsed in self._entries:
            if recorded == phase:
                return elapsed
        return None

    def phases(self) -> List[Phase]:
        return [phase for phase, _ in self._entries]

    def __iter__(self) -> Iterator[Tuple[Phase, Duration]]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def to_dict(self) -> Dict[str, Duration]:
        return {phase.value: elapsed for phase, elapsed in self._entries}


@dataclass
class ProgramReturn:
    """Return value of `program`, or the reason the run did not produce one"""
    return_value: int = 0
    error_message: str = ""

    @property
    def succeeded(self) -> bool:
        return self.error_message == ""

    def to_dict(self) -> Dict[str, Any]:
        return {"return_value": self.return_value, "error_message": self.error_message}


@dataclass
class RunResult:
    """Everything one variant's run produced"""
    variant: EngineVariant
    program_return: ProgramReturn
    timing: PhaseTiming
    iterations: int
    final_state: RunState
    error_kind: Optional[str] = None
    rss_delta_bytes: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.program_return.succeeded

    def to_dict(self) -> Dict[str, Any]:
        return {
            "variant": self.variant.to_dict(),
            "iterations": self.iterations,
            "final_state": self.final_state.value,
            "error_kind": self.error_kind,
            "rss_delta_bytes": self.rss_delta_bytes,
            "timing_ns": self.timing.to_dict(),
            **self.program_return.to_dict(),
        }

    def to_row(self) -> Dict[str, Any]:
        """Flat representation used for CSV export."""
        row: Dict[str, Any] = {
            "variant": self.variant.name,
            "backend": self.variant.backend_kind.value,
            "iterations": self.iterations,
            "return_value": self.program_return.return_value if self.succeeded else None,
            "error_kind": self.error_kind,
            "error_message": self.program_return.error_message,
            "rss_delta_bytes": self.rss_delta_bytes,
        }
        for phase in Phase:
            row[f"{phase.value}_ns"] = self.timing.get(phase)
        return row


@dataclass
class ComparisonReport:
    """
    Results of every variant for one harness invocation.

    Built once all variants have finished; read-only afterwards.
    """
    module_name: str
    results: List[RunResult] = field(default_factory=list)
    cache_stats: Dict[str, int] = field(default_factory=dict)
    round_index: int = 1

    @property
    def all_succeeded(self) -> bool:
        return all(r.succeeded for r in self.results)

    @property
    def successful_values(self) -> Dict[str, int]:
        return {r.variant.name: r.program_return.return_value for r in self.results if r.succeeded}

    @property
    def successful_values_agree(self) -> bool:
        """Agreement among successful runs only; failed runs never take part."""
        return len(set(self.successful_values.values())) <= 1

    @property
    def values_agree(self) -> bool:
        return self.all_succeeded and self.successful_values_agree

    @property
    def diverged(self) -> bool:
        """Every engine ran but they disagree on the result"""
        return self.all_succeeded and not self.successful_values_agree

    def fastest(self) -> Optional[RunResult]:
        timed = [r for r in self.results
                 if r.succeeded and r.timing.get(Phase.STEADY_STATE_PER_ITERATION) is not None]
        return min(timed, key=lambda r: r.timing.get(Phase.STEADY_STATE_PER_ITERATION), default=None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "module": self.module_name,
            "round": self.round_index,
            "all_succeeded": self.all_succeeded,
            "values_agree": self.values_agree,
            "diverged": self.diverged,
            "cache_stats": dict(self.cache_stats),
            "results": [r.to_dict() for r in self.results],
        }

    def save_to_file(self, file_path: str) -> None:
        """Save the report to a JSON file."""
        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, ensure_ascii=False, indent=2)
