"""Human-readable units for durations and byte counts."""

from __future__ import annotations

_DURATION_UNITS = (
    (1_000_000_000, "s"),
    (1_000_000, "ms"),
    (1_000, "µs"),
)


def format_duration(ns: int) -> str:
    if ns == 0:
        return "0s"
    for scale, suffix in _DURATION_UNITS:
        if abs(ns) >= scale:
            return f"{ns / scale:.2f}{suffix}"
    return f"{ns}ns"


def format_bytes(count: int) -> str:
    unit = 1024
    if count < unit:
        return f"{count} B"
    div, exp = unit, 0
    n = count // unit
    while n >= unit:
        div *= unit
        exp += 1
        n //= unit
    return f"{count / div:.2f} {'KMGTPE'[exp]}B"
