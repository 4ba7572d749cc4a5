"""Cold-start timing and break-even analysis for a long-running server.

The server pays a fixed startup cost once and is then expected to answer
each query faster than the one-shot baseline. After ``N`` warm operations
the two approaches cost the same::

    startup + N * warm = N * baseline
    N = startup / (baseline - warm)

``N`` is rounded up, so the candidate is no slower than the baseline once
that many operations have run.
"""

from __future__ import annotations

import logging
import time
import tracemalloc
from dataclasses import dataclass
from typing import Any, Callable, Optional

from benchmark_server.benchmarks.compare import speedup
from benchmark_server.benchmarks.sampler import Operation, run_benchmark, timed
from benchmark_server.benchmarks.schema import (
    COLD_START_CATEGORY,
    BenchmarkConfig,
    BenchmarkResult,
    ColdStartMetrics,
    MemoryMetrics,
)
from benchmark_server.metrics.memory import attach_process_memory, capture_memory
from benchmark_server.stats.series import Stats
from benchmark_server.utils.formatting import format_duration

log = logging.getLogger(__name__)

NO_BREAK_EVEN = -1

WARM_CONFIG = BenchmarkConfig(min_iterations=15, max_iterations=30, target_cv=15.0, warmup_enabled=False)
BASELINE_CONFIG = BenchmarkConfig(min_iterations=10, max_iterations=20, target_cv=15.0)


class ColdStartError(RuntimeError):
    """The server could not be started or never answered its first query."""


@dataclass(frozen=True)
class ColdStartReport:
    metrics: ColdStartMetrics
    memory: MemoryMetrics
    warm: Stats
    baseline: Stats


def break_even(startup: int, baseline_mean: int, warm_mean: int) -> tuple[int, str]:
    """Operations needed to recover ``startup``, or ``NO_BREAK_EVEN``."""
    saved = baseline_mean - warm_mean
    if saved <= 0:
        return NO_BREAK_EVEN, (
            f"Warm candidate time ({format_duration(warm_mean)}) is not faster than the "
            f"baseline ({format_duration(baseline_mean)}), so no break-even point exists."
        )
    ops = max(1, -(-startup // saved))
    return ops, (
        f"After {ops} operations the fixed startup cost of {format_duration(startup)} "
        f"is recovered; each later operation saves ~{format_duration(saved)}."
    )


def break_even_interval(startup: int, baseline: Stats, warm: Stats) -> tuple[int, int]:
    """Break-even range with one standard deviation on each side.

    Returns (optimistic, pessimistic). The pessimistic bound is
    ``NO_BREAK_EVEN`` when the spreads overlap.
    """
    optimistic, _ = break_even(
        startup, baseline.mean + baseline.stddev, max(warm.mean - warm.stddev, 0)
    )
    pessimistic, _ = break_even(
        startup, max(baseline.mean - baseline.stddev, 0), warm.mean + warm.stddev
    )
    return optimistic, pessimistic


def _default_pid(handle: Any) -> Optional[int]:
    return getattr(handle, "pid", None)


def analyze_cold_start(
    spawn: Callable[[], Any],
    first_op: Callable[[Any], Any],
    baseline_op: Operation,
    warm_config: BenchmarkConfig = WARM_CONFIG,
    baseline_config: BenchmarkConfig = BASELINE_CONFIG,
    teardown: Callable[[Any], None] | None = None,
    pid_of: Callable[[Any], Optional[int]] = _default_pid,
    warm_op: Callable[[Any], Any] | None = None,
) -> ColdStartReport:
    """Time ``spawn`` through the first ``first_op``, then warm and baseline runs.

    ``first_op`` receives the handle returned by ``spawn`` and signals failure
    by raising. The warm series times ``warm_op`` (default ``first_op``)
    against the same handle. Only a failure of ``spawn`` or of the first
    ``first_op`` raises ``ColdStartError``.
    """
    # heap figures in the memory snapshot cover the whole analysis
    owns_tracing = not tracemalloc.is_tracing()
    if owns_tracing:
        tracemalloc.start()

    start = time.perf_counter_ns()
    try:
        handle = spawn()
    except Exception as exc:
        if owns_tracing:
            tracemalloc.stop()
        raise ColdStartError(f"failed to start server: {exc}") from exc

    try:
        first_start = time.perf_counter_ns()
        try:
            first_op(handle)
        except Exception as exc:
            raise ColdStartError(f"first query failed: {exc}") from exc
        end = time.perf_counter_ns()
        startup_time = end - start
        first_query_time = end - first_start
        log.info(
            "server answered first query after %s (query %s)",
            format_duration(startup_time),
            format_duration(first_query_time),
        )

        warm = run_benchmark(timed(warm_op or first_op, handle), warm_config)
        baseline = run_benchmark(baseline_op, baseline_config)

        if warm.mean == 0:
            log.warning("warm queries failed; no break-even computed")
            ops, reason = NO_BREAK_EVEN, "Warm queries failed, so no break-even point was computed."
        elif baseline.mean == 0:
            log.warning("baseline measurement failed; no break-even computed")
            ops, reason = NO_BREAK_EVEN, "Baseline measurement failed, so no break-even point was computed."
        else:
            ops, reason = break_even(startup_time, baseline.mean, warm.mean)

        memory = attach_process_memory(capture_memory(), pid_of(handle))
    finally:
        if owns_tracing:
            tracemalloc.stop()
        if teardown is not None:
            teardown(handle)

    metrics = ColdStartMetrics(
        server_startup_time=startup_time,
        first_query_time=first_query_time,
        average_warm_query_time=warm.mean,
        break_even_operations=ops,
        break_even_reason=reason,
    )
    return ColdStartReport(metrics=metrics, memory=memory, warm=warm, baseline=baseline)


def cold_start_result(
    report: ColdStartReport,
    name: str = "Cold Start: Server to First Query",
) -> BenchmarkResult:
    """Suite row for a cold-start report; duration is the startup time."""
    metrics = report.metrics
    if report.warm.mean == 0:
        return BenchmarkResult.failure(name, COLD_START_CATEGORY, "warm queries failed")
    note = (
        f"Cold Start: {format_duration(metrics.server_startup_time)} (total) | "
        f"First Query: {format_duration(metrics.first_query_time)} | "
        f"Warm Query Avg: {format_duration(report.warm.mean)} (±{format_duration(report.warm.stddev)}) | "
        f"Baseline Avg: {format_duration(report.baseline.mean)} (±{format_duration(report.baseline.stddev)}) | "
        f"{metrics.break_even_reason}"
    )
    return BenchmarkResult(
        name=name,
        category=COLD_START_CATEGORY,
        success=True,
        duration=metrics.server_startup_time,
        min_duration=metrics.server_startup_time,
        max_duration=metrics.server_startup_time,
        iterations=report.warm.count + 1,
        comparison_note=note,
        speedup_factor=speedup(report.baseline.mean, report.warm.mean),
        traditional_mean=report.baseline.mean,
        traditional_min=report.baseline.min,
        traditional_max=report.baseline.max,
        memory=report.memory,
    )
