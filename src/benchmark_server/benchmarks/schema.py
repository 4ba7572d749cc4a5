"""Schema definitions for benchmark configuration and results."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, List, Optional

from benchmark_server.stats.series import Stats

COLD_START_CATEGORY = "Cold Start"


@dataclass(frozen=True)
class BenchmarkConfig:
    """Sampling parameters for one side of a comparison."""

    min_iterations: int = 10
    max_iterations: int = 50
    target_cv: float = 10.0
    warmup_iterations: int = 3
    warmup_enabled: bool = True
    adaptive_enabled: bool = True

    def validate(self) -> "BenchmarkConfig":
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if self.min_iterations > self.max_iterations:
            raise ValueError(
                f"min_iterations ({self.min_iterations}) exceeds max_iterations ({self.max_iterations})"
            )
        if self.target_cv < 0:
            raise ValueError(f"target_cv must be >= 0, got {self.target_cv}")
        if self.warmup_iterations < 0:
            raise ValueError(f"warmup_iterations must be >= 0, got {self.warmup_iterations}")
        return self

    def with_overrides(self, **overrides: Any) -> "BenchmarkConfig":
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
        return replace(self, **overrides).validate()

    @classmethod
    def fixed(cls, iterations: int) -> "BenchmarkConfig":
        return cls(min_iterations=iterations, max_iterations=iterations, adaptive_enabled=False)


@dataclass
class MemoryMetrics:
    """In-process memory figures plus best-effort OS process figures (bytes)."""

    heap_alloc: int = 0
    heap_peak: int = 0
    allocated_blocks: int = 0
    thread_count: int = 0
    gc_count: int = 0
    gc_collected: int = 0
    process_rss: int = 0
    process_vsz: int = 0
    process_probe: str = "not-collected"

    def is_empty(self) -> bool:
        return self.heap_alloc == 0 and self.thread_count == 0


@dataclass(frozen=True)
class ColdStartMetrics:
    """Startup cost and its amortization point. Durations in nanoseconds."""

    server_startup_time: int
    first_query_time: int
    average_warm_query_time: int
    break_even_operations: int
    break_even_reason: str

    @property
    def breaks_even(self) -> bool:
        return self.break_even_operations > 0


@dataclass(frozen=True)
class BenchmarkResult:
    """One named benchmark row. Durations in nanoseconds."""

    name: str
    category: str
    success: bool
    duration: int = 0
    min_duration: int = 0
    max_duration: int = 0
    std_dev: int = 0
    iterations: int = 0
    error: str = ""
    items_found: int = 0
    bytes_processed: int = 0
    comparison_note: str = ""
    speedup_factor: float = 0.0
    traditional_mean: int = 0
    traditional_min: int = 0
    traditional_max: int = 0
    memory: Optional[MemoryMetrics] = None

    @classmethod
    def failure(cls, name: str, category: str, error: str) -> "BenchmarkResult":
        return cls(name=name, category=category, success=False, error=error)

    @classmethod
    def from_stats(
        cls,
        name: str,
        category: str,
        candidate: Stats,
        baseline: Stats | None = None,
        **extra: Any,
    ) -> "BenchmarkResult":
        baseline_fields: Dict[str, int] = {}
        if baseline is not None:
            baseline_fields = {
                "traditional_mean": baseline.mean,
                "traditional_min": baseline.min,
                "traditional_max": baseline.max,
            }
        return cls(
            name=name,
            category=category,
            success=True,
            duration=candidate.mean,
            min_duration=candidate.min,
            max_duration=candidate.max,
            std_dev=candidate.stddev,
            iterations=candidate.count,
            **baseline_fields,
            **extra,
        )


@dataclass(frozen=True)
class BenchmarkSummary:
    total_benchmarks: int = 0
    successful: int = 0
    failed: int = 0
    average_duration: int = 0
    total_items_found: int = 0
    speedup_range: str = ""


@dataclass
class BenchmarkSuite:
    """Top-level record for one harness run."""

    timestamp: int
    environment: Dict[str, str]
    results: List[BenchmarkResult] = field(default_factory=list)
    summary: BenchmarkSummary = field(default_factory=BenchmarkSummary)
    total_duration: int = 0
    cold_start_metrics: Optional[ColdStartMetrics] = None
    warnings: List[str] = field(default_factory=list)
