from __future__ import annotations

from typing import Iterable

import pytest

from benchmark_server.benchmarks import sampler

MS = 1_000_000


class Scripted:
    """Timed operation returning a fixed sequence of durations, then repeating the last."""

    def __init__(self, values: Iterable[int]) -> None:
        self.values = list(values)
        self.calls = 0

    def __call__(self) -> int:
        idx = min(self.calls, len(self.values) - 1)
        self.calls += 1
        return self.values[idx]


@pytest.fixture(autouse=True)
def no_settle_pause(monkeypatch):
    monkeypatch.setattr(sampler, "WARMUP_SETTLE_S", 0)
