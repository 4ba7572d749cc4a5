"""Output helpers for benchmark suites."""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Iterable

from benchmark_server.benchmarks.schema import (
    COLD_START_CATEGORY,
    BenchmarkResult,
    BenchmarkSuite,
)
from benchmark_server.metrics.summary import category_averages
from benchmark_server.utils.formatting import format_bytes, format_duration

RULE = "=" * 80


def suite_to_dict(suite: BenchmarkSuite) -> dict[str, Any]:
    """Flat record; durations stay integer nanoseconds."""
    return asdict(suite)


def write_json(suite: BenchmarkSuite, path: str | Path) -> Path:
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(suite_to_dict(suite), indent=2) + "\n", encoding="utf-8")
    return output_path


def load_json(path: str | Path) -> dict[str, Any]:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def write_jsonl(results: Iterable[BenchmarkResult], path: str | Path) -> None:
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as handle:
        for result in results:
            handle.write(json.dumps(asdict(result)) + "\n")


def render_summary(suite: BenchmarkSuite) -> str:
    summary = suite.summary
    lines = [
        RULE,
        "BENCHMARK RESULTS SUMMARY",
        RULE,
        f"Total Duration: {format_duration(suite.total_duration)}",
        f"Benchmarks Run: {summary.total_benchmarks}",
        f"  Successful: {summary.successful}",
        f"  Failed: {summary.failed}",
        f"Average Duration: {format_duration(summary.average_duration)}",
        f"Total Items Found: {summary.total_items_found}",
    ]
    if summary.speedup_range:
        lines.append(f"Speedup Range: {summary.speedup_range}")
    lines.append(RULE)

    cold = suite.cold_start_metrics
    if cold is not None:
        lines.append("Cold Start Analysis:")
        lines.append(f"  Server Startup Time: {format_duration(cold.server_startup_time)}")
        lines.append(f"  First Query Time: {format_duration(cold.first_query_time)}")
        lines.append(f"  Warm Query Average: {format_duration(cold.average_warm_query_time)}")
        if cold.breaks_even:
            lines.append(f"  Break-Even Point: After {cold.break_even_operations} operations")
        else:
            lines.append("  Break-Even Point: N/A")
        lines.append(f"  Details: {cold.break_even_reason}")
        lines.append(RULE)

    for r in suite.results:
        if r.category == COLD_START_CATEGORY and r.memory is not None:
            lines.append("Server Memory Usage:")
            if r.memory.process_rss > 0:
                lines.append(f"  Process RSS: {format_bytes(r.memory.process_rss)}")
            else:
                lines.append(f"  Process RSS: not available ({r.memory.process_probe})")
            lines.append(f"  Harness Threads: {r.memory.thread_count}")
            lines.append(RULE)
            break

    failed = [r for r in suite.results if not r.success]
    if failed:
        lines.append("Failures:")
        lines.extend(f"  {r.name}: {r.error}" for r in failed)
        lines.append(RULE)

    averages = category_averages(suite.results)
    if averages:
        lines.append("Performance by Category:")
        for category, (mean, count) in sorted(averages.items()):
            lines.append(f"  {category}: {format_duration(mean)} avg ({count} tests)")
        lines.append(RULE)

    if suite.warnings:
        lines.append("Validation Warnings:")
        lines.extend(f"  {warning}" for warning in suite.warnings)
        lines.append(RULE)
    return "\n".join(lines)
