"""Sample series accumulation and summary statistics."""

from __future__ import annotations

from dataclasses import dataclass
from math import isqrt
from typing import Iterable, Iterator, List

import numpy as np


@dataclass(frozen=True)
class Stats:
    """Read-only snapshot over a sample series. Durations are nanoseconds."""

    mean: int = 0
    min: int = 0
    max: int = 0
    stddev: int = 0
    count: int = 0
    median: int = 0
    p95: int = 0

    @property
    def cv(self) -> float:
        return coefficient_of_variation(self.stddev, self.mean)

    @property
    def has_data(self) -> bool:
        return self.count > 0


def coefficient_of_variation(stddev: int, mean: int) -> float:
    """Return stddev/mean as a percentage, 0 for a zero mean."""
    if mean == 0:
        return 0.0
    return (stddev / mean) * 100


class RunningStats:
    """Incremental aggregate of count, sum, sum of squares, min and max.

    Sums are Python ints, so the population variance is exact and the
    snapshot matches a full recomputation over the same samples.
    """

    __slots__ = ("count", "total", "total_sq", "minimum", "maximum")

    def __init__(self) -> None:
        self.count = 0
        self.total = 0
        self.total_sq = 0
        self.minimum = 0
        self.maximum = 0

    def add(self, value: int) -> None:
        if self.count == 0 or value < self.minimum:
            self.minimum = value
        if self.count == 0 or value > self.maximum:
            self.maximum = value
        self.count += 1
        self.total += value
        self.total_sq += value * value

    def snapshot(self) -> Stats:
        if self.count == 0:
            return Stats()
        n = self.count
        # n^2 * variance = n * sum(x^2) - sum(x)^2
        scaled_var = n * self.total_sq - self.total * self.total
        return Stats(
            mean=self.total // n,
            min=self.minimum,
            max=self.maximum,
            stddev=isqrt(max(scaled_var, 0) // (n * n)),
            count=n,
        )


class SampleSeries:
    """Ordered durations from one sampler run, frozen once the run ends."""

    def __init__(self, values: Iterable[int] = ()) -> None:
        self._values: List[int] = []
        self._running = RunningStats()
        self._frozen = False
        for value in values:
            self.append(value)

    def append(self, duration: int) -> None:
        if self._frozen:
            raise RuntimeError("sample series is frozen")
        duration = int(duration)
        if duration < 0:
            raise ValueError(f"duration must be non-negative, got {duration}")
        self._values.append(duration)
        self._running.add(duration)

    def freeze(self) -> "SampleSeries":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def values(self) -> tuple[int, ...]:
        return tuple(self._values)

    def stats(self) -> Stats:
        """Running snapshot; median and p95 are left at 0."""
        return self._running.snapshot()

    def failures(self) -> int:
        return sum(1 for value in self._values if value == 0)

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[int]:
        return iter(self._values)

    def __repr__(self) -> str:
        return f"SampleSeries(count={len(self._values)}, frozen={self._frozen})"


def compute_stats(series: Iterable[int]) -> Stats:
    """Full pass over a series, including median and p95."""
    values = list(series)
    if not values:
        return Stats()
    base = SampleSeries(values).stats()
    arr = np.asarray(values, dtype=np.float64)
    median, p95 = np.percentile(arr, [50, 95])
    return Stats(
        mean=base.mean,
        min=base.min,
        max=base.max,
        stddev=base.stddev,
        count=base.count,
        median=int(median),
        p95=int(p95),
    )
