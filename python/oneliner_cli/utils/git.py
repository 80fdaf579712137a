"""Git utility functions."""
from __future__ import annotations

import subprocess


def _run(cmd: list[str]) -> str:
    return subprocess.check_output(
        cmd, text=True, stderr=subprocess.DEVNULL
    ).strip()


def get_git_root() -> str | None:
    """Return the git repository root, or None if not in a repo."""
    try:
        return _run(["git", "rev-parse", "--show-toplevel"]) or None
    except (subprocess.CalledProcessError, FileNotFoundError):
        return None
