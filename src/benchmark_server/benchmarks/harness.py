"""Benchmark suite orchestration."""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, Sequence, Union

from benchmark_server.benchmarks.coldstart import ColdStartError, ColdStartReport, cold_start_result
from benchmark_server.benchmarks.schema import (
    COLD_START_CATEGORY,
    BenchmarkResult,
    BenchmarkSuite,
)
from benchmark_server.metrics.summary import summarize, validate
from benchmark_server.utils.reproducibility import env_info

log = logging.getLogger(__name__)

BenchmarkFn = Callable[[], Union[BenchmarkResult, Sequence[BenchmarkResult]]]


def _run_one(name: str, category: str, fn: BenchmarkFn) -> list[BenchmarkResult]:
    try:
        outcome = fn()
    except Exception as exc:
        log.exception("benchmark %s raised", name)
        return [BenchmarkResult.failure(name, category, f"{type(exc).__name__}: {exc}")]
    if isinstance(outcome, BenchmarkResult):
        return [outcome]
    return list(outcome)


def run_suite(
    benchmarks: Iterable[tuple[str, str, BenchmarkFn]],
    cold_start: Callable[[], ColdStartReport] | None = None,
    cold_start_name: str = "Cold Start: Server to First Query",
) -> BenchmarkSuite:
    """Run the cold-start analysis first, then each benchmark in order.

    Every failure is recorded as a failed result; the suite always completes.
    """
    suite = BenchmarkSuite(timestamp=int(time.time()), environment=env_info())

    if cold_start is not None:
        log.info("running cold start analysis")
        try:
            report = cold_start()
        except ColdStartError as exc:
            log.error("cold start analysis failed: %s", exc)
            suite.results.append(BenchmarkResult.failure(cold_start_name, COLD_START_CATEGORY, str(exc)))
        except Exception as exc:
            log.exception("cold start analysis raised")
            suite.results.append(
                BenchmarkResult.failure(cold_start_name, COLD_START_CATEGORY, f"{type(exc).__name__}: {exc}")
            )
        else:
            suite.cold_start_metrics = report.metrics
            suite.results.append(cold_start_result(report, name=cold_start_name))
            if report.metrics.breaks_even:
                log.info("break-even after %d operations", report.metrics.break_even_operations)
            else:
                log.warning("no break-even point: %s", report.metrics.break_even_reason)

    start = time.perf_counter_ns()
    benchmark_list = list(benchmarks)
    for idx, (name, category, fn) in enumerate(benchmark_list, start=1):
        log.info("running benchmark %d/%d: %s", idx, len(benchmark_list), name)
        suite.results.extend(_run_one(name, category, fn))
    suite.total_duration = time.perf_counter_ns() - start

    suite.summary = summarize(suite.results)
    suite.warnings = validate(suite.results)
    for warning in suite.warnings:
        log.warning("%s", warning)
    return suite
