"""Suite summary and advisory validation of benchmark results."""

from __future__ import annotations

from typing import Dict, List, Sequence

from benchmark_server.benchmarks.schema import (
    COLD_START_CATEGORY,
    BenchmarkResult,
    BenchmarkSummary,
)

SMALL_PAYLOAD_BYTES = 100
MAX_PLAUSIBLE_SPEEDUP = 1000.0


def summarize(results: Sequence[BenchmarkResult]) -> BenchmarkSummary:
    successful = [r for r in results if r.success]
    factors = [r.speedup_factor for r in results if r.speedup_factor > 0]
    speedup_range = ""
    if factors:
        speedup_range = f"{min(factors):.1f}x - {max(factors):.1f}x"
    average = 0
    if successful:
        average = sum(r.duration for r in successful) // len(successful)
    return BenchmarkSummary(
        total_benchmarks=len(results),
        successful=len(successful),
        failed=len(results) - len(successful),
        average_duration=average,
        total_items_found=sum(r.items_found for r in successful),
        speedup_range=speedup_range,
    )


def validate(results: Sequence[BenchmarkResult]) -> List[str]:
    """Advisory warnings only; never raises for a suspicious result."""
    warnings: List[str] = []
    for r in results:
        if not r.success:
            warnings.append(f"Benchmark failed: {r.name} - {r.error}")
        if 0 < r.bytes_processed < SMALL_PAYLOAD_BYTES:
            warnings.append(
                f"Suspicious byte count: {r.name} - {r.bytes_processed} bytes (too small)"
            )
        if r.speedup_factor > MAX_PLAUSIBLE_SPEEDUP:
            warnings.append(
                f"Unusual speedup: {r.name} - {r.speedup_factor:.1f}x (verify comparison is fair)"
            )
        if r.category == COLD_START_CATEGORY and r.memory is not None and r.memory.is_empty():
            warnings.append(f"Cold start memory metrics not populated: {r.name}")
    return warnings


def group_by_category(results: Sequence[BenchmarkResult]) -> Dict[str, List[BenchmarkResult]]:
    grouped: Dict[str, List[BenchmarkResult]] = {}
    for r in results:
        grouped.setdefault(r.category, []).append(r)
    return grouped


def category_averages(results: Sequence[BenchmarkResult]) -> Dict[str, tuple[int, int]]:
    """Mean duration and count of successful results per category."""
    averages: Dict[str, tuple[int, int]] = {}
    for category, rows in group_by_category(results).items():
        durations = [r.duration for r in rows if r.success]
        if durations:
            averages[category] = (sum(durations) // len(durations), len(durations))
    return averages
