"""Build and run a suite from a parsed configuration."""

from __future__ import annotations

import logging
import subprocess
import time
from functools import partial
from typing import Callable, Iterable, List, Optional, Sequence

from benchmark_server.benchmarks.coldstart import ColdStartReport, analyze_cold_start
from benchmark_server.benchmarks.compare import build_comparison
from benchmark_server.benchmarks.config import ColdStartSpec, ComparisonSpec, SuiteConfig
from benchmark_server.benchmarks.harness import BenchmarkFn, run_suite
from benchmark_server.benchmarks.sampler import command_operation, run_benchmark
from benchmark_server.benchmarks.schema import BenchmarkResult, BenchmarkSuite

log = logging.getLogger(__name__)

STOP_TIMEOUT_S = 5.0


def spawn_server(argv: Sequence[str], cwd: Optional[str] = None) -> subprocess.Popen:
    log.debug("starting server: %s", " ".join(argv))
    return subprocess.Popen(
        list(argv),
        cwd=cwd,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
    )


def stop_server(proc: subprocess.Popen) -> None:
    if proc.poll() is not None:
        return
    proc.terminate()
    try:
        proc.wait(timeout=STOP_TIMEOUT_S)
    except subprocess.TimeoutExpired:
        log.warning("server %d did not exit, killing it", proc.pid)
        proc.kill()
        proc.wait()


def probe_server(argv: Sequence[str], proc: subprocess.Popen, cwd: Optional[str] = None) -> None:
    """Run one probe request; raises if the server died or the probe failed."""
    if proc.poll() is not None:
        raise RuntimeError(f"server exited with status {proc.returncode}")
    subprocess.run(list(argv), cwd=cwd, capture_output=True, check=True)


def wait_for_server(
    argv: Sequence[str],
    proc: subprocess.Popen,
    cwd: Optional[str] = None,
    timeout: float = 10.0,
    interval: float = 0.05,
) -> None:
    """Repeat the probe until it succeeds, the server exits, or ``timeout``."""
    deadline = time.monotonic() + timeout
    while True:
        try:
            probe_server(argv, proc, cwd=cwd)
            return
        except subprocess.CalledProcessError:
            if time.monotonic() >= deadline:
                raise
        time.sleep(interval)


def _run_comparison(spec: ComparisonSpec, config: SuiteConfig) -> BenchmarkResult:
    baseline_config = config.profile(spec.baseline_profile or spec.profile)
    baseline_op = command_operation(spec.baseline, cwd=spec.cwd, check=spec.check)
    candidate_op = command_operation(spec.candidate, cwd=spec.cwd, check=spec.check)
    baseline = run_benchmark(baseline_op, baseline_config)
    candidate = run_benchmark(candidate_op, config.profile(spec.profile))
    return build_comparison(
        spec.name,
        spec.category,
        baseline,
        candidate,
        items_found=candidate_op.items_found,
        bytes_processed=candidate_op.bytes_processed,
    )


def _comparison(spec: ComparisonSpec, config: SuiteConfig) -> BenchmarkFn:
    return partial(_run_comparison, spec, config)


def _cold_start(spec: ColdStartSpec, config: SuiteConfig) -> Callable[[], ColdStartReport]:
    return partial(
        analyze_cold_start,
        partial(spawn_server, spec.server, spec.cwd),
        partial(wait_for_server, spec.probe, cwd=spec.cwd, timeout=spec.ready_timeout),
        command_operation(spec.baseline, cwd=spec.cwd, check=spec.check),
        warm_config=config.profile(spec.warm_profile),
        baseline_config=config.profile(spec.baseline_profile),
        teardown=stop_server,
        warm_op=partial(probe_server, spec.probe, cwd=spec.cwd),
    )


def select(specs: Iterable[ComparisonSpec], only: Optional[Iterable[str]]) -> List[ComparisonSpec]:
    specs = list(specs)
    if not only:
        return specs
    wanted = set(only)
    unknown = wanted - {spec.name for spec in specs}
    if unknown:
        raise ValueError(f"Unknown benchmarks: {', '.join(sorted(unknown))}")
    return [spec for spec in specs if spec.name in wanted]


def run_configured_suite(
    config: SuiteConfig,
    only: Optional[Iterable[str]] = None,
    include_cold_start: bool = True,
) -> BenchmarkSuite:
    benchmarks = [
        (spec.name, spec.category, _comparison(spec, config))
        for spec in select(config.comparisons, only)
    ]
    cold_start = None
    cold_start_name = ColdStartSpec.name
    if include_cold_start and config.cold_start is not None:
        cold_start = _cold_start(config.cold_start, config)
        cold_start_name = config.cold_start.name
    return run_suite(benchmarks, cold_start=cold_start, cold_start_name=cold_start_name)
