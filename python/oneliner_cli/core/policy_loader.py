"""Load and parse .oneliner.yml project policy files."""
from __future__ import annotations

import sys
from pathlib import Path

import yaml

from ..utils.git import get_git_root


POLICY_FILENAMES = [".oneliner.yml", ".oneliner.yaml"]


def _search_dirs() -> list[Path]:
    """cwd and its ancestors, ending at the git root when inside a repo."""
    here = Path.cwd()
    root = get_git_root()
    dirs = [here, *here.parents]
    if root and Path(root) in dirs:
        dirs = dirs[: dirs.index(Path(root)) + 1]
    return dirs


def find_policy_file() -> Path | None:
    """Return the nearest policy file, or None."""
    for directory in _search_dirs():
        hit = next((directory / n for n in POLICY_FILENAMES if (directory / n).exists()), None)
        if hit:
            return hit
    return None


def _warn(message: str) -> None:
    print(f"oneliner: {message}", file=sys.stderr)


def load_policy() -> dict | None:
    """Parsed and validated policy, or None when absent, unreadable or empty."""
    path = find_policy_file()
    if path is None:
        return None
    try:
        document = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        _warn(f"failed to parse policy file {path}: {e}")
        return None
    except OSError as e:
        _warn(f"cannot read policy file {path}: {e}")
        return None
    return _validate_policy(document) if isinstance(document, dict) and document else None


_VALID_TOP_LEVEL_KEYS = {"version", "blacklisted_binaries", "default_shell"}


def _validate_policy(raw: dict) -> dict:
    """Keep well-formed keys. Warn on stderr for everything else."""
    policy: dict = {}

    for key in raw:
        if key not in _VALID_TOP_LEVEL_KEYS:
            _warn(f'unknown policy key "{key}", ignoring')

    if raw.get("version") is not None:
        policy["version"] = str(raw["version"])

    if "blacklisted_binaries" in raw:
        binaries = raw["blacklisted_binaries"]
        if isinstance(binaries, list) and all(isinstance(b, str) for b in binaries):
            policy["blacklisted_binaries"] = [b.strip() for b in binaries if b.strip()]
        else:
            _warn('"blacklisted_binaries" must be a list of strings, ignoring')

    if "default_shell" in raw:
        shell = raw["default_shell"]
        if isinstance(shell, str) and shell.strip():
            policy["default_shell"] = shell.strip()
        else:
            _warn('"default_shell" must be a non-empty string, ignoring')

    return policy
