"""Entry point for running a configured benchmark suite."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from benchmark_server.benchmarks.config import load_suite_config
from benchmark_server.benchmarks.runner import run_configured_suite
from benchmark_server.io.output import render_summary, write_json, write_jsonl
from benchmark_server.utils.reproducibility import run_metadata

log = logging.getLogger("benchmark_server")


def _parse_names(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compare a long-running server against one-shot commands.")
    parser.add_argument("config", type=str, help="Path to YAML suite config.")
    parser.add_argument("--output", type=str, default="results/benchmark_results.json")
    parser.add_argument("--jsonl", type=str, help="Also write one result per line to this path.")
    parser.add_argument(
        "--only",
        type=str,
        help="Comma-separated comparison names to run.",
    )
    parser.add_argument(
        "--no-cold-start",
        action="store_true",
        help="Skip the cold start analysis even if the config defines one.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_suite_config(args.config)
    except (FileNotFoundError, ValueError) as exc:
        raise SystemExit(str(exc)) from exc

    try:
        suite = run_configured_suite(
            config,
            only=_parse_names(args.only),
            include_cold_start=not args.no_cold_start,
        )
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc

    suite.environment.update(run_metadata(config.raw, args.config, config.referenced_profiles()))

    print(render_summary(suite))

    output_path = write_json(suite, args.output)
    if args.jsonl:
        write_jsonl(suite.results, Path(args.jsonl))
    log.info("Wrote %d results to %s", len(suite.results), output_path)


if __name__ == "__main__":
    main()
