"""Plot baseline versus candidate means from a suite report."""
from __future__ import annotations

import argparse
from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np

from benchmark_server.io.output import load_json


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Plot a suite report.")
    parser.add_argument("--input", type=Path, required=True)
    parser.add_argument("--out", type=Path, required=True)
    return parser.parse_args()


def comparison_rows(report: dict) -> list[tuple[str, float, float]]:
    rows = []
    for result in report.get("results", []):
        if not result.get("success") or not result.get("traditional_mean"):
            continue
        rows.append(
            (
                result["name"],
                result["traditional_mean"] / 1e6,
                result["duration"] / 1e6,
            )
        )
    return rows


def main() -> None:
    args = _parse_args()
    rows = comparison_rows(load_json(args.input))
    if not rows:
        raise SystemExit(f"No successful comparisons in {args.input}")

    labels = [row[0] for row in rows]
    x = np.arange(len(rows))
    width = 0.4

    fig, ax = plt.subplots(figsize=(max(6, len(rows) * 1.2), 4))
    ax.bar(x - width / 2, [row[1] for row in rows], width, label="baseline")
    ax.bar(x + width / 2, [row[2] for row in rows], width, label="candidate")
    ax.set_xticks(x)
    ax.set_xticklabels(labels, rotation=30, ha="right", fontsize=8)
    ax.set_ylabel("Mean duration (ms)")
    ax.set_yscale("log")
    ax.legend(loc="best", fontsize=8)
    ax.grid(True, axis="y", alpha=0.3)
    fig.tight_layout()

    args.out.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(args.out)


if __name__ == "__main__":
    main()
