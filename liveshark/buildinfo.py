"""Build metadata: commit identifiers and build date."""

from __future__ import annotations

import os
import re
import subprocess
from typing import Dict, Optional, Sequence

from liveshark.timestamps import ts_to_rfc3339

UNKNOWN = "unknown"
_EPOCH_PATTERN = re.compile(r"[+-]?\d+")


def run_git(args: Sequence[str]) -> Optional[str]:
    """Run git with ``args`` and return its trimmed output, or None on failure."""
    try:
        result = subprocess.run(["git", *args], capture_output=True)
    except OSError:
        return None
    if result.returncode != 0:
        return None
    value = result.stdout.decode("utf-8", errors="replace").strip()
    return value or None


def shorten_commit(full: str) -> str:
    """First seven characters of a commit hash."""
    return full[:7]


def _build_date() -> str:
    raw = os.environ.get("SOURCE_DATE_EPOCH")
    if raw is not None and _EPOCH_PATTERN.fullmatch(raw):
        formatted = ts_to_rfc3339(int(raw))
        if formatted is not None:
            return formatted
    return run_git(["log", "-1", "--format=%cI"]) or UNKNOWN


def build_metadata() -> Dict[str, str]:
    """Collect the short commit, full commit and build date."""
    commit_full = (
        os.environ.get("GITHUB_SHA") or run_git(["rev-parse", "HEAD"]) or UNKNOWN
    )
    if commit_full != UNKNOWN:
        commit = shorten_commit(commit_full)
    else:
        commit = run_git(["rev-parse", "--short", "HEAD"]) or UNKNOWN
    return {
        "commit": commit,
        "commit_full": commit_full,
        "build_date": _build_date(),
    }