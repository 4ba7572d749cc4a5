"""Statistics subpackage."""

from benchmark_server.stats.series import (
    RunningStats,
    SampleSeries,
    Stats,
    coefficient_of_variation,
    compute_stats,
)

__all__ = [
    "RunningStats",
    "SampleSeries",
    "Stats",
    "coefficient_of_variation",
    "compute_stats",
]
