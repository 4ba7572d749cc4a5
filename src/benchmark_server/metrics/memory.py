"""In-process and OS-level memory probes."""

from __future__ import annotations

import gc
import logging
import shutil
import subprocess
import sys
import threading
import tracemalloc
from typing import Callable

from benchmark_server.benchmarks.schema import MemoryMetrics

log = logging.getLogger(__name__)

PS_TIMEOUT_S = 5.0


class ProcessMemoryError(RuntimeError):
    """The process memory probe ran but produced nothing usable."""


class ProcessMemoryUnavailable(ProcessMemoryError):
    """The probe cannot run here (no ``ps`` binary, invalid pid)."""


def capture_memory(collect: bool = True) -> MemoryMetrics:
    """Snapshot interpreter memory figures.

    A collection pass runs first unless ``collect`` is False, so the reading
    reflects live objects. Heap figures come from ``tracemalloc`` and are 0
    while it is not tracing.
    """
    if collect:
        gc.collect()
    heap_alloc, heap_peak = (0, 0)
    if tracemalloc.is_tracing():
        heap_alloc, heap_peak = tracemalloc.get_traced_memory()
    gc_stats = gc.get_stats()
    return MemoryMetrics(
        heap_alloc=heap_alloc,
        heap_peak=heap_peak,
        allocated_blocks=sys.getallocatedblocks(),
        thread_count=threading.active_count(),
        gc_count=sum(gen.get("collections", 0) for gen in gc_stats),
        gc_collected=sum(gen.get("collected", 0) for gen in gc_stats),
    )


def parse_ps_output(output: str) -> tuple[int, int]:
    """Parse ``ps -o rss,vsz`` output into (rss, vsz) bytes."""
    lines = output.strip().splitlines()
    if len(lines) < 2:
        raise ProcessMemoryError(
            f"unexpected ps output format: expected at least 2 lines, got {len(lines)}"
        )
    columns = lines[1].split()
    if len(columns) < 2:
        raise ProcessMemoryError(
            f"unexpected ps output format: expected at least 2 fields, got {len(columns)}"
        )
    try:
        rss_kb = int(columns[0])
        vsz_kb = int(columns[1])
    except ValueError as exc:
        raise ProcessMemoryError(f"failed to parse ps columns {columns[:2]!r}") from exc
    if rss_kb < 0 or vsz_kb < 0:
        raise ProcessMemoryError(f"negative memory figures in ps output: {columns[:2]!r}")
    return rss_kb * 1024, vsz_kb * 1024


def capture_process_memory(pid: int) -> tuple[int, int]:
    """Return (rss, vsz) in bytes for ``pid`` using ``ps``."""
    if pid <= 0:
        raise ProcessMemoryUnavailable(f"invalid pid {pid}")
    ps_bin = shutil.which("ps")
    if not ps_bin:
        raise ProcessMemoryUnavailable("ps is not available on this system")
    try:
        proc = subprocess.run(
            [ps_bin, "-o", "rss,vsz", "-p", str(pid)],
            capture_output=True,
            text=True,
            check=False,
            timeout=PS_TIMEOUT_S,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        raise ProcessMemoryError(f"failed to run ps: {exc}") from exc
    if proc.returncode != 0:
        raise ProcessMemoryError(f"ps exited with status {proc.returncode} for pid {pid}")
    return parse_ps_output(proc.stdout)


def attach_process_memory(
    metrics: MemoryMetrics,
    pid: int | None,
    probe: Callable[[int], tuple[int, int]] = capture_process_memory,
) -> MemoryMetrics:
    """Fill the process fields of ``metrics`` in place; failures only log."""
    if pid is None:
        metrics.process_probe = "unavailable"
        return metrics
    try:
        rss, vsz = probe(pid)
    except ProcessMemoryUnavailable as exc:
        log.warning("process memory not collected: %s", exc)
        metrics.process_probe = "unavailable"
        return metrics
    except ProcessMemoryError as exc:
        log.warning("failed to read process memory: %s", exc)
        metrics.process_probe = "failed"
        return metrics
    metrics.process_rss = rss
    metrics.process_vsz = vsz
    metrics.process_probe = "ok"
    return metrics

