"""Aggregate JSON suite reports into a per-benchmark summary table."""
from __future__ import annotations

import argparse
import csv
from pathlib import Path
from statistics import mean, pstdev

from benchmark_server.io.output import load_json

FIELDNAMES = [
    "name",
    "category",
    "runs",
    "failures",
    "duration_mean_ns",
    "duration_std_ns",
    "speedup_mean",
    "speedup_std",
]


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Aggregate suite reports.")
    parser.add_argument("--in", dest="inputs", nargs="+", required=True)
    parser.add_argument("--out", dest="out_path", type=Path, required=True)
    return parser.parse_args()


def load_results(paths: list[str]) -> list[dict]:
    results: list[dict] = []
    for path in paths:
        results.extend(load_json(path).get("results", []))
    return results


def aggregate(results: list[dict]) -> list[dict]:
    grouped: dict[tuple[str, str], list[dict]] = {}
    for result in results:
        key = (result.get("name", ""), result.get("category", ""))
        grouped.setdefault(key, []).append(result)

    rows: list[dict] = []
    for (name, category), group in grouped.items():
        ok = [r for r in group if r.get("success")]
        durations = [float(r.get("duration", 0)) for r in ok]
        speedups = [float(r.get("speedup_factor", 0.0)) for r in ok if r.get("speedup_factor", 0.0) > 0]
        rows.append(
            {
                "name": name,
                "category": category,
                "runs": len(group),
                "failures": len(group) - len(ok),
                "duration_mean_ns": mean(durations) if durations else 0.0,
                "duration_std_ns": pstdev(durations) if len(durations) > 1 else 0.0,
                "speedup_mean": mean(speedups) if speedups else 0.0,
                "speedup_std": pstdev(speedups) if len(speedups) > 1 else 0.0,
            }
        )
    return rows


def _write_csv(path: Path, rows: list[dict], fieldnames: list[str]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(rows)


def main() -> None:
    args = _parse_args()
    _write_csv(args.out_path, aggregate(load_results(args.inputs)), FIELDNAMES)


if __name__ == "__main__":
    main()
