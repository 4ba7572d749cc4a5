"""Environment capture for benchmark reports."""
from __future__ import annotations

import hashlib
import json
import platform
import subprocess
from pathlib import Path
from typing import Any, Iterable, Mapping

import numpy as np


def config_hash(raw: Mapping[str, Any]) -> str:
    """Stable digest of a suite definition; key order does not matter."""
    encoded = json.dumps(dict(raw), sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()[:16]


def git_commit_hash(cwd: str | Path | None = None) -> str | None:
    """Short HEAD commit of the checkout containing ``cwd``, if any."""
    try:
        return subprocess.check_output(
            ["git", "rev-parse", "--short", "HEAD"],
            cwd=cwd,
            text=True,
            stderr=subprocess.DEVNULL,
        ).strip() or None
    except (OSError, subprocess.CalledProcessError):
        return None


def run_metadata(
    raw: Mapping[str, Any],
    config_path: str | Path,
    profiles: Iterable[str] = (),
) -> dict[str, str]:
    """Identify which suite definition produced a report.

    The commit is read from the directory holding the config, which is
    usually the project being benchmarked rather than this tool.
    """
    path = Path(config_path).resolve()
    meta = {
        "config_path": str(path),
        "config_hash": config_hash(raw),
    }
    names = sorted(set(profiles))
    if names:
        meta["profiles"] = ",".join(names)
    commit = git_commit_hash(path.parent)
    if commit:
        meta["git_commit"] = commit
    return meta


def env_info() -> dict[str, str]:
    return {
        "python": platform.python_version(),
        "implementation": platform.python_implementation(),
        "os": platform.system().lower(),
        "arch": platform.machine(),
        "numpy": np.__version__,
    }
