"""
Console rendering and file export of comparison reports.
"""
from pathlib import Path
from typing import Iterable, List, Optional

import pandas as pd
from tabulate import tabulate

from wasmbench.consts.Phase import Phase
from wasmbench.models.benchmark_result import NANOS_PER_MILLI, ComparisonReport, RunResult


def format_ns(value: Optional[float]) -> str:
    if value is None:
        return "-"
    return f"{value:,.0f} ns ({value / NANOS_PER_MILLI:.3f} ms)"


def _short_ns(value: Optional[float]) -> str:
    return "-" if value is None else f"{value:,.0f}"


def format_variant_section(result: RunResult) -> List[str]:
    timing = result.timing
    lines = [
        "",
        "=" * 70,
        f"=== {result.variant.name} [{result.variant.backend_kind.value}] ===",
        "=" * 70,
        f"  Load to lookup:            {format_ns(timing.get(Phase.LOAD_TO_LOOKUP))}",
        f"    compile:                 {format_ns(timing.get(Phase.COMPILE))}",
        f"    instantiate:             {format_ns(timing.get(Phase.INSTANTIATE))}",
        f"    lookup:                  {format_ns(timing.get(Phase.LOOKUP))}",
        f"  First call:                {format_ns(timing.get(Phase.FIRST_CALL))}",
        f"  Steady state total:        {format_ns(timing.get(Phase.STEADY_STATE_TOTAL))}"
        f"  ({result.iterations} iterations)",
        f"  Steady state / iteration:  {format_ns(timing.get(Phase.STEADY_STATE_PER_ITERATION))}",
    ]
    if result.rss_delta_bytes is not None:
        lines.append(f"  RSS delta:                 {result.rss_delta_bytes / (1024 * 1024):+.2f} MB")
    if result.succeeded:
        lines.append(f"  Return value:              {result.program_return.return_value}")
    else:
        lines.append(f"  Error ({result.error_kind}): {result.program_return.error_message}")
    return lines


def format_summary_table(report: ComparisonReport) -> str:
    headers = ["Variant", "Load→lookup (ns)", "First call (ns)", "Steady total (ns)", "Per iter (ns)", "Result"]
    rows = []
    for r in report.results:
        rows.append([
            r.variant.name,
            _short_ns(r.timing.get(Phase.LOAD_TO_LOOKUP)),
            _short_ns(r.timing.get(Phase.FIRST_CALL)),
            _short_ns(r.timing.get(Phase.STEADY_STATE_TOTAL)),
            _short_ns(r.timing.get(Phase.STEADY_STATE_PER_ITERATION)),
            r.program_return.return_value if r.succeeded else r.error_kind,
        ])
    return tabulate(rows, headers=headers, tablefmt="heavy_grid", stralign="right", numalign="right")


def format_relative_speed(report: ComparisonReport) -> List[str]:
    fastest = report.fastest()
    if fastest is None:
        return []
    base = fastest.timing.get(Phase.STEADY_STATE_PER_ITERATION)
    lines = ["", "📊 Steady state relative to the fastest:"]
    for r in report.results:
        per_iteration = r.timing.get(Phase.STEADY_STATE_PER_ITERATION)
        if not r.succeeded or per_iteration is None:
            continue
        if r is fastest:
            lines.append(f"  ⚡ {r.variant.name}: fastest")
        elif base:
            lines.append(f"  {r.variant.name}: {per_iteration / base:.2f}x slower")
    return lines


def format_comparison(report: ComparisonReport) -> List[str]:
    lines = ["", "=" * 70, f"=== Comparison (round {report.round_index}) ===", "=" * 70]
    if report.cache_stats:
        stats = report.cache_stats
        lines.append(f"  Compilation cache: hits={stats.get('hits', 0)}, misses={stats.get('misses', 0)}, "
                     f"evictions={stats.get('evictions', 0)}, entries={stats.get('entries', 0)}")
    lines.append(f"  All succeeded: {report.all_succeeded}")
    lines.append(f"  Values agree:  {report.values_agree}")

    if report.diverged:
        lines.append("")
        lines.append("  ❌ DIVERGENCE: every engine ran but they returned different values")
        for name, value in report.successful_values.items():
            lines.append(f"    {name}: {value}")
    elif not report.all_succeeded:
        failed = [r.variant.name for r in report.results if not r.succeeded]
        lines.append(f"  Failed variants: {', '.join(failed)}")
    return lines


def render_report(report: ComparisonReport) -> str:
    lines: List[str] = []
    for result in report.results:
        lines.extend(format_variant_section(result))
    lines.append("")
    lines.append(format_summary_table(report))
    lines.extend(format_relative_speed(report))
    lines.extend(format_comparison(report))
    return "\n".join(lines)


def print_report(report: ComparisonReport) -> None:
    print(render_report(report))


def reports_to_dataframe(reports: Iterable[ComparisonReport]) -> pd.DataFrame:
    rows = []
    for report in reports:
        for result in report.results:
            rows.append({"round": report.round_index, "module": report.module_name, **result.to_row()})
    return pd.DataFrame(rows)


def export_csv(reports: Iterable[ComparisonReport], path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    reports_to_dataframe(reports).to_csv(path, index=False)
    return path
