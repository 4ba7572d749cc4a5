from __future__ import annotations

import subprocess
import sys

import pytest

from benchmark_server.benchmarks.sampler import (
    command_operation,
    run_iterations,
    sample,
    timed,
)
from benchmark_server.benchmarks.schema import BenchmarkConfig
from conftest import MS, Scripted


def test_stops_at_min_when_stable():
    op = Scripted([5 * MS])
    config = BenchmarkConfig(min_iterations=10, max_iterations=50, warmup_enabled=False)
    series = sample(op, config)
    assert len(series) == 10
    assert series.frozen


def test_never_exceeds_max_iterations():
    noisy = Scripted([MS, 100 * MS] * 100)
    config = BenchmarkConfig(min_iterations=5, max_iterations=20, target_cv=1.0, warmup_enabled=False)
    series = sample(noisy, config)
    assert len(series) == 20


def test_continues_until_variance_settles():
    values = [4 * MS, 6 * MS, 4 * MS, 6 * MS] + [5 * MS] * 200
    config = BenchmarkConfig(min_iterations=4, max_iterations=200, target_cv=10.0, warmup_enabled=False)
    series = sample(Scripted(values), config)
    assert 4 < len(series) < 200
    assert series.stats().cv <= 10.0


def test_fixed_mode_ignores_variance():
    noisy = Scripted([MS, 100 * MS] * 50)
    config = BenchmarkConfig(
        min_iterations=8, max_iterations=30, target_cv=0.0, warmup_enabled=False, adaptive_enabled=False
    )
    assert len(sample(noisy, config)) == 8


def test_warmup_is_discarded():
    op = Scripted([999 * MS] * 3 + [2 * MS])
    config = BenchmarkConfig(min_iterations=5, max_iterations=5, warmup_iterations=3)
    series = sample(op, config)
    assert op.calls == 8
    assert len(series) == 5
    assert set(series) == {2 * MS}


def test_warmup_disabled_runs_no_extra_calls():
    op = Scripted([MS])
    config = BenchmarkConfig(min_iterations=3, max_iterations=3, warmup_iterations=4, warmup_enabled=False)
    sample(op, config)
    assert op.calls == 3


def test_all_failures_stop_at_min():
    op = Scripted([0])
    config = BenchmarkConfig(min_iterations=6, max_iterations=40, warmup_enabled=False)
    series = sample(op, config)
    assert len(series) == 6
    assert series.stats().mean == 0


def test_raising_operation_records_sentinel():
    calls = []

    def flaky():
        calls.append(1)
        if len(calls) % 2:
            raise RuntimeError("boom")
        return 3 * MS

    config = BenchmarkConfig(min_iterations=4, max_iterations=4, warmup_enabled=False, adaptive_enabled=False)
    series = sample(flaky, config)
    assert list(series) == [0, 3 * MS, 0, 3 * MS]


def test_invalid_config_rejected():
    with pytest.raises(ValueError):
        sample(Scripted([MS]), BenchmarkConfig(min_iterations=10, max_iterations=5))


def test_run_iterations_fixed_count():
    stats = run_iterations(7, Scripted([4 * MS]))
    assert stats.count == 7
    assert stats.mean == 4 * MS


def test_timed_returns_positive_duration():
    op = timed(lambda: sum(range(100)))
    assert op() > 0


def test_timed_reports_sentinel_on_exception():
    def broken():
        raise OSError("nope")

    assert timed(broken)() == 0


def test_command_operation_success():
    op = command_operation([sys.executable, "-c", "pass"], check=True)
    assert op() > 0


def test_command_operation_checked_failure(monkeypatch):
    monkeypatch.setattr(
        subprocess,
        "run",
        lambda *a, **k: subprocess.CompletedProcess(args=a[0], returncode=2),
    )
    assert command_operation(["tool"], check=True)() == 0
    assert command_operation(["tool"], check=False)() > 0


def test_command_operation_missing_binary():
    assert command_operation(["definitely-not-a-real-binary-xyz"])() == 0


def test_command_operation_counts_output():
    op = command_operation([sys.executable, "-c", "print('alpha'); print(); print('beta')"], check=True)
    assert op.items_found == 0
    assert op() > 0
    assert op.items_found == 2
    assert op.bytes_processed == len(b"alpha\n\nbeta\n")


def test_failed_command_keeps_previous_output(monkeypatch):
    outputs = iter(
        [
            subprocess.CompletedProcess(args=["tool"], returncode=0, stdout=b"one\ntwo\n"),
            subprocess.CompletedProcess(args=["tool"], returncode=1, stdout=b""),
        ]
    )
    monkeypatch.setattr(subprocess, "run", lambda *a, **k: next(outputs))
    op = command_operation(["tool"], check=True)
    assert op() > 0
    assert op() == 0
    assert op.items_found == 2
    assert op.bytes_processed == 8
