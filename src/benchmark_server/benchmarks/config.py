"""Sampling profiles and YAML benchmark definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from benchmark_server.benchmarks.coldstart import BASELINE_CONFIG, WARM_CONFIG
from benchmark_server.benchmarks.schema import BenchmarkConfig

DEFAULT_PROFILES: Dict[str, BenchmarkConfig] = {
    "default": BenchmarkConfig(),
    # process spawns are noisier than in-process calls
    "cli": BenchmarkConfig(min_iterations=15, max_iterations=40, target_cv=15.0),
    "cold_start_warm": WARM_CONFIG,
    "cold_start_baseline": BASELINE_CONFIG,
}

_TOP_LEVEL_KEYS = {"profiles", "comparisons", "cold_start"}
_COMPARISON_KEYS = {
    "name",
    "category",
    "baseline",
    "candidate",
    "profile",
    "baseline_profile",
    "cwd",
    "check",
}
_COLD_START_KEYS = {
    "name",
    "server",
    "probe",
    "baseline",
    "cwd",
    "warm_profile",
    "baseline_profile",
    "ready_timeout",
    "check",
}


@dataclass(frozen=True)
class ComparisonSpec:
    name: str
    baseline: List[str]
    candidate: List[str]
    category: str = "Comparison"
    profile: str = "default"
    baseline_profile: Optional[str] = None
    cwd: Optional[str] = None
    check: bool = False


@dataclass(frozen=True)
class ColdStartSpec:
    server: List[str]
    probe: List[str]
    baseline: List[str]
    name: str = "Cold Start: Server to First Query"
    cwd: Optional[str] = None
    warm_profile: str = "cold_start_warm"
    baseline_profile: str = "cold_start_baseline"
    ready_timeout: float = 10.0
    check: bool = False


@dataclass
class SuiteConfig:
    profiles: Dict[str, BenchmarkConfig] = field(default_factory=lambda: dict(DEFAULT_PROFILES))
    comparisons: List[ComparisonSpec] = field(default_factory=list)
    cold_start: Optional[ColdStartSpec] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    def profile(self, name: str) -> BenchmarkConfig:
        if name not in self.profiles:
            raise ValueError(f"Unknown profile '{name}'. Options: {', '.join(sorted(self.profiles))}")
        return self.profiles[name]

    def referenced_profiles(self) -> List[str]:
        names = set()
        for spec in self.comparisons:
            names.add(spec.profile)
            if spec.baseline_profile is not None:
                names.add(spec.baseline_profile)
        if self.cold_start is not None:
            names.update((self.cold_start.warm_profile, self.cold_start.baseline_profile))
        return sorted(names)


def _check_keys(section: str, payload: Mapping[str, Any], allowed: set[str]) -> None:
    unknown = sorted(set(payload) - allowed)
    if unknown:
        raise ValueError(f"Unknown keys in {section}: {', '.join(unknown)}")


def _argv(section: str, value: Any) -> List[str]:
    if isinstance(value, str):
        return value.split()
    if isinstance(value, list) and value:
        return [str(item) for item in value]
    raise ValueError(f"{section} must be a command string or a non-empty list")


def parse_suite_config(payload: Mapping[str, Any] | None) -> SuiteConfig:
    payload = dict(payload or {})
    _check_keys("config", payload, _TOP_LEVEL_KEYS)
    config = SuiteConfig(raw=payload)

    for name, overrides in (payload.get("profiles") or {}).items():
        if not isinstance(overrides, dict):
            raise ValueError(f"Profile '{name}' must be a mapping")
        base = config.profiles.get(name, DEFAULT_PROFILES["default"])
        config.profiles[name] = base.with_overrides(**overrides)

    for idx, item in enumerate(payload.get("comparisons") or [], start=1):
        section = f"comparisons[{idx}]"
        if not isinstance(item, dict):
            raise ValueError(f"{section} must be a mapping")
        _check_keys(section, item, _COMPARISON_KEYS)
        if "name" not in item:
            raise ValueError(f"{section} is missing 'name'")
        spec = ComparisonSpec(
            name=str(item["name"]),
            baseline=_argv(f"{section}.baseline", item.get("baseline")),
            candidate=_argv(f"{section}.candidate", item.get("candidate")),
            category=str(item.get("category", "Comparison")),
            profile=str(item.get("profile", "default")),
            baseline_profile=item.get("baseline_profile"),
            cwd=item.get("cwd"),
            check=bool(item.get("check", False)),
        )
        config.profile(spec.profile)
        if spec.baseline_profile is not None:
            config.profile(spec.baseline_profile)
        config.comparisons.append(spec)

    cold = payload.get("cold_start")
    if cold is not None:
        if not isinstance(cold, dict):
            raise ValueError("cold_start must be a mapping")
        _check_keys("cold_start", cold, _COLD_START_KEYS)
        spec = ColdStartSpec(
            server=_argv("cold_start.server", cold.get("server")),
            probe=_argv("cold_start.probe", cold.get("probe")),
            baseline=_argv("cold_start.baseline", cold.get("baseline")),
            name=str(cold.get("name", ColdStartSpec.name)),
            cwd=cold.get("cwd"),
            warm_profile=str(cold.get("warm_profile", "cold_start_warm")),
            baseline_profile=str(cold.get("baseline_profile", "cold_start_baseline")),
            ready_timeout=float(cold.get("ready_timeout", 10.0)),
            check=bool(cold.get("check", False)),
        )
        config.profile(spec.warm_profile)
        config.profile(spec.baseline_profile)
        config.cold_start = spec
    return config


def load_suite_config(path: str | Path) -> SuiteConfig:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    return parse_suite_config(yaml.safe_load(config_path.read_text(encoding="utf-8")))
