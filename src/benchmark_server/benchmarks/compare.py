"""Paired baseline versus candidate comparisons."""

from __future__ import annotations

import logging

from benchmark_server.benchmarks.sampler import Operation, run_benchmark
from benchmark_server.benchmarks.schema import BenchmarkConfig, BenchmarkResult
from benchmark_server.stats.series import Stats
from benchmark_server.utils.formatting import format_duration

log = logging.getLogger(__name__)


def speedup(baseline_mean: int, candidate_mean: int) -> float:
    """Baseline over candidate; 0 when either side has no measurement."""
    if baseline_mean <= 0 or candidate_mean <= 0:
        return 0.0
    return baseline_mean / candidate_mean


def comparison_note(baseline: Stats, candidate: Stats) -> str:
    return (
        f"Traditional: {format_duration(baseline.mean)} (±{format_duration(baseline.stddev)}), "
        f"Candidate: {format_duration(candidate.mean)} (±{format_duration(candidate.stddev)})"
    )


def compare(
    name: str,
    category: str,
    baseline_op: Operation,
    candidate_op: Operation,
    config: BenchmarkConfig | None = None,
    baseline_config: BenchmarkConfig | None = None,
    items_found: int = 0,
    bytes_processed: int = 0,
) -> BenchmarkResult:
    """Sample both sides and report the candidate with its speedup.

    ``baseline_config`` defaults to ``config``. A side whose mean is zero
    after sampling turns the result into a failure; nothing is raised.
    """
    config = config or BenchmarkConfig()
    baseline_config = baseline_config or config

    baseline = run_benchmark(baseline_op, baseline_config)
    candidate = run_benchmark(candidate_op, config)
    return build_comparison(
        name,
        category,
        baseline,
        candidate,
        items_found=items_found,
        bytes_processed=bytes_processed,
    )


def build_comparison(
    name: str,
    category: str,
    baseline: Stats,
    candidate: Stats,
    items_found: int = 0,
    bytes_processed: int = 0,
) -> BenchmarkResult:
    if candidate.mean == 0:
        log.warning("%s: candidate produced no valid samples", name)
        return BenchmarkResult.failure(name, category, "candidate measurement failed")
    if baseline.mean == 0:
        log.warning("%s: baseline produced no valid samples", name)
        return BenchmarkResult.failure(name, category, "baseline measurement failed")

    factor = speedup(baseline.mean, candidate.mean)
    log.info("%s: %.2fx (%d candidate samples)", name, factor, candidate.count)
    return BenchmarkResult.from_stats(
        name,
        category,
        candidate,
        baseline,
        comparison_note=comparison_note(baseline, candidate),
        speedup_factor=factor,
        items_found=items_found,
        bytes_processed=bytes_processed,
    )
