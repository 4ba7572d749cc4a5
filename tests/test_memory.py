from __future__ import annotations

import subprocess
import tracemalloc

import pytest

from benchmark_server.benchmarks.schema import MemoryMetrics
from benchmark_server.metrics import memory
from benchmark_server.metrics.memory import (
    ProcessMemoryError,
    ProcessMemoryUnavailable,
    attach_process_memory,
    capture_memory,
    capture_process_memory,
    parse_ps_output,
)

PS_OUTPUT = "  RSS      VSZ\n63760  402024\n"


def test_parse_ps_output_converts_kilobytes():
    assert parse_ps_output(PS_OUTPUT) == (63760 * 1024, 402024 * 1024)


@pytest.mark.parametrize(
    "output",
    ["", "  RSS      VSZ\n", "  RSS      VSZ\n63760\n", "  RSS      VSZ\nabc def\n"],
)
def test_parse_ps_output_rejects_malformed(output):
    with pytest.raises(ProcessMemoryError):
        parse_ps_output(output)


def test_capture_process_memory(monkeypatch):
    monkeypatch.setattr(memory.shutil, "which", lambda name: "/bin/ps")
    seen = {}

    def fake_run(cmd, **kwargs):
        seen["cmd"] = cmd
        return subprocess.CompletedProcess(cmd, 0, stdout=PS_OUTPUT, stderr="")

    monkeypatch.setattr(memory.subprocess, "run", fake_run)
    assert capture_process_memory(1234) == (63760 * 1024, 402024 * 1024)
    assert seen["cmd"] == ["/bin/ps", "-o", "rss,vsz", "-p", "1234"]


def test_capture_process_memory_nonzero_exit(monkeypatch):
    monkeypatch.setattr(memory.shutil, "which", lambda name: "/bin/ps")
    monkeypatch.setattr(
        memory.subprocess,
        "run",
        lambda cmd, **kwargs: subprocess.CompletedProcess(cmd, 1, stdout="  RSS VSZ\n", stderr=""),
    )
    with pytest.raises(ProcessMemoryError):
        capture_process_memory(1234)


def test_capture_process_memory_without_ps(monkeypatch):
    monkeypatch.setattr(memory.shutil, "which", lambda name: None)
    with pytest.raises(ProcessMemoryUnavailable):
        capture_process_memory(1234)


def test_invalid_pid_is_unavailable():
    with pytest.raises(ProcessMemoryUnavailable):
        capture_process_memory(0)


def test_attach_marks_unavailable_without_pid():
    metrics = attach_process_memory(MemoryMetrics(), None)
    assert metrics.process_probe == "unavailable"
    assert metrics.process_rss == 0


def test_attach_distinguishes_failed_from_unavailable():
    def garbled(pid):
        raise ProcessMemoryError("bad output")

    def missing(pid):
        raise ProcessMemoryUnavailable("no ps")

    assert attach_process_memory(MemoryMetrics(), 10, probe=garbled).process_probe == "failed"
    assert attach_process_memory(MemoryMetrics(), 10, probe=missing).process_probe == "unavailable"


def test_attach_success_reads_zero_distinctly():
    metrics = attach_process_memory(MemoryMetrics(), 10, probe=lambda pid: (0, 0))
    assert metrics.process_probe == "ok"
    assert metrics.process_rss == 0


def test_capture_memory_reports_interpreter_state():
    metrics = capture_memory()
    assert metrics.thread_count >= 1
    assert metrics.allocated_blocks > 0
    assert metrics.gc_count >= 1
    assert not metrics.is_empty()


def test_capture_memory_reads_tracemalloc_when_tracing():
    tracemalloc.start()
    try:
        payload = [bytes(1024) for _ in range(64)]
        metrics = capture_memory(collect=False)
    finally:
        tracemalloc.stop()
    assert payload
    assert metrics.heap_alloc > 0
    assert metrics.heap_peak >= metrics.heap_alloc
