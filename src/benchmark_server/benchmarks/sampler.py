"""Adaptive sampling of timed operations."""

from __future__ import annotations

import logging
import subprocess
import time
from pathlib import Path
from typing import Any, Callable, Sequence

from benchmark_server.benchmarks.schema import BenchmarkConfig
from benchmark_server.stats.series import SampleSeries, Stats, compute_stats

log = logging.getLogger(__name__)

# A timed operation returns elapsed nanoseconds, or 0 when the attempt failed.
Operation = Callable[[], int]

WARMUP_SETTLE_S = 0.01


def timed(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Operation:
    """Wrap ``fn`` as a timed operation; an exception yields the zero sentinel."""

    def _operation() -> int:
        start = time.perf_counter_ns()
        try:
            fn(*args, **kwargs)
        except Exception as exc:
            log.debug("operation %s failed: %s", getattr(fn, "__name__", fn), exc)
            return 0
        return max(time.perf_counter_ns() - start, 1)

    return _operation


class CommandOperation:
    """Timed operation that spawns ``argv`` once per call.

    The most recent successful stdout is kept so callers can report how much
    the command produced. With ``check`` a non-zero exit status reports the
    zero sentinel; a missing executable always does.
    """

    def __init__(self, argv: Sequence[str], cwd: str | Path | None = None, check: bool = False) -> None:
        self.command = [str(part) for part in argv]
        self.cwd = cwd
        self.check = check
        self.last_output = b""

    def __call__(self) -> int:
        start = time.perf_counter_ns()
        try:
            proc = subprocess.run(self.command, cwd=self.cwd, capture_output=True, check=False)
        except OSError as exc:
            log.debug("command %s could not start: %s", self.command[0], exc)
            return 0
        elapsed = time.perf_counter_ns() - start
        if self.check and proc.returncode != 0:
            log.debug("command %s exited with %d", self.command[0], proc.returncode)
            return 0
        self.last_output = proc.stdout or b""
        return max(elapsed, 1)

    @property
    def bytes_processed(self) -> int:
        return len(self.last_output)

    @property
    def items_found(self) -> int:
        return sum(1 for line in self.last_output.splitlines() if line.strip())


def command_operation(
    argv: Sequence[str],
    cwd: str | Path | None = None,
    check: bool = False,
) -> CommandOperation:
    return CommandOperation(argv, cwd=cwd, check=check)


def _invoke(operation: Operation) -> int:
    try:
        return int(operation())
    except Exception as exc:
        log.warning("timed operation raised, recording a failed sample: %s", exc)
        return 0


def _warmup(operation: Operation, config: BenchmarkConfig) -> None:
    if not config.warmup_enabled or config.warmup_iterations <= 0:
        return
    for _ in range(config.warmup_iterations):
        _invoke(operation)
    time.sleep(WARMUP_SETTLE_S)


def sample(operation: Operation, config: BenchmarkConfig) -> SampleSeries:
    """Run warmup, then measure until the CV target or ``max_iterations``."""
    config.validate()
    _warmup(operation, config)

    series = SampleSeries()
    for _ in range(config.max_iterations):
        series.append(max(_invoke(operation), 0))
        if len(series) < config.min_iterations:
            continue
        if not config.adaptive_enabled:
            break
        if series.stats().cv <= config.target_cv:
            break

    log.debug(
        "sampled %d iterations (%d failed)",
        len(series),
        series.failures(),
    )
    return series.freeze()


def run_benchmark(operation: Operation, config: BenchmarkConfig) -> Stats:
    return compute_stats(sample(operation, config))


def run_iterations(iterations: int, operation: Operation) -> Stats:
    """Fixed-count sampling with the default warmup."""
    return run_benchmark(operation, BenchmarkConfig.fixed(iterations))
