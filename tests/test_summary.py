from __future__ import annotations

from benchmark_server.benchmarks.schema import (
    COLD_START_CATEGORY,
    BenchmarkResult,
    MemoryMetrics,
)
from benchmark_server.metrics.summary import (
    category_averages,
    group_by_category,
    summarize,
    validate,
)


def _ok(name, duration, category="Comparison", **kwargs):
    return BenchmarkResult(name=name, category=category, success=True, duration=duration, **kwargs)


def test_summarize_counts_and_range():
    results = [
        _ok("a", 100, speedup_factor=2.0, items_found=3),
        _ok("b", 300, speedup_factor=12.5, items_found=4),
        _ok("c", 200),
        BenchmarkResult.failure("d", "Comparison", "candidate measurement failed"),
    ]
    summary = summarize(results)
    assert summary.total_benchmarks == 4
    assert summary.successful == 3
    assert summary.failed == 1
    assert summary.average_duration == 200
    assert summary.total_items_found == 7
    assert summary.speedup_range == "2.0x - 12.5x"


def test_summarize_empty():
    summary = summarize([])
    assert summary.total_benchmarks == 0
    assert summary.average_duration == 0
    assert summary.speedup_range == ""


def test_validate_flags_small_payload_and_large_speedup():
    results = [
        _ok("tiny", 10, bytes_processed=50),
        _ok("huge", 10, speedup_factor=5000.0),
        _ok("fine", 10, bytes_processed=4096, speedup_factor=40.0),
    ]
    warnings = validate(results)
    assert len(warnings) == 2
    assert any("tiny" in w and "50 bytes" in w for w in warnings)
    assert any("huge" in w and "5000.0x" in w for w in warnings)


def test_validate_flags_failures_and_empty_cold_start_memory():
    results = [
        BenchmarkResult.failure("broken", "Comparison", "baseline measurement failed"),
        _ok("cold", 10, category=COLD_START_CATEGORY, memory=MemoryMetrics()),
        _ok("cold-ok", 10, category=COLD_START_CATEGORY, memory=MemoryMetrics(thread_count=2)),
    ]
    warnings = validate(results)
    assert len(warnings) == 2
    assert "baseline measurement failed" in warnings[0]
    assert "cold" in warnings[1]


def test_validate_has_no_side_effects():
    results = [_ok("tiny", 10, bytes_processed=50)]
    assert validate(results) == validate(results)
    assert results[0].success


def test_grouping_and_category_averages():
    results = [
        _ok("a", 100),
        _ok("b", 300),
        _ok("c", 50, category="Navigation"),
        BenchmarkResult.failure("d", "Navigation", "x"),
    ]
    grouped = group_by_category(results)
    assert [r.name for r in grouped["Navigation"]] == ["c", "d"]
    assert category_averages(results) == {"Comparison": (200, 2), "Navigation": (50, 1)}
