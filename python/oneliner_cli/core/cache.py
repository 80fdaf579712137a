"""On-disk cache of generated commands, keyed by query context."""
from __future__ import annotations

import hashlib
import json
import os
import sys
import tempfile
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

CACHE_PATH_ENV = "ONELINER_CACHE_PATH"


class CacheError(Exception):
    """Raised when the cache file cannot be read, parsed or written."""


@dataclass
class CacheEntry:
    id: str
    command: str
    timestamp: datetime

    def to_dict(self) -> dict:
        return {"command": self.command, "timestamp": self.timestamp.isoformat()}


def get_cache_path() -> Path:
    """$ONELINER_CACHE_PATH, else ~/.cache/oneliner/commands.json."""
    override = os.environ.get(CACHE_PATH_ENV, "").strip()
    if override:
        path = Path(override).expanduser()
        if path.suffix != ".json":
            raise CacheError(f"{CACHE_PATH_ENV} must point to a .json file: {override}")
        return path
    return Path.home() / ".cache" / "oneliner" / "commands.json"


def hash_query(query: str, os_name: str, cwd: str, username: str, shell: str, explain: bool = False) -> str:
    h = hashlib.sha256()
    for part in (query, os_name, cwd, username, shell):
        h.update(part.encode())
    if explain:
        h.update(b"explain")
    return h.hexdigest()


class CommandCache:
    def __init__(self, path: Path | None = None):
        self._path = Path(path) if path else get_cache_path()
        self._lock = threading.Lock()
        self._entries: dict[str, CacheEntry] = {}
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Load / Save
    # ------------------------------------------------------------------

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            raw = json.loads(self._path.read_text() or "{}")
        except json.JSONDecodeError as exc:
            raise CacheError(f"cannot parse cache file {self._path}: {exc}") from exc
        except OSError as exc:
            raise CacheError(f"cannot read cache file {self._path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise CacheError(f"cache file {self._path} must contain a JSON object")

        migrated = False
        now = datetime.now(timezone.utc)
        for key, value in raw.items():
            if isinstance(value, str):
                # legacy id -> command layout
                self._entries[key] = CacheEntry(id=key, command=value, timestamp=now)
                migrated = True
            elif isinstance(value, dict) and isinstance(value.get("command"), str):
                self._entries[key] = CacheEntry(
                    id=key,
                    command=value["command"],
                    timestamp=_parse_timestamp(value.get("timestamp"), now),
                )
            else:
                print(f"oneliner: skipping malformed cache entry {key[:8]}", file=sys.stderr)

        if migrated:
            self._save()

    def _save(self) -> None:
        data = {k: e.to_dict() for k, e in self._entries.items()}
        content = json.dumps(data, indent=2).encode()
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self._path.parent, prefix=".commands_tmp_")
        except OSError as exc:
            raise CacheError(f"cannot write cache file {self._path}: {exc}") from exc
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
            os.chmod(tmp, 0o600)
            os.replace(tmp, self._path)
        except OSError as exc:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise CacheError(f"cannot write cache file {self._path}: {exc}") from exc

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._entries.get(key)
            return entry.command if entry else None

    def set(self, key: str, command: str) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(id=key, command=command, timestamp=datetime.now(timezone.utc))
            self._save()

    def entries(self) -> list[CacheEntry]:
        """All entries, newest first."""
        with self._lock:
            return sorted(self._entries.values(), key=lambda e: e.timestamp, reverse=True)

    def find(self, prefix: str) -> CacheEntry:
        """Resolve an id prefix to exactly one entry."""
        prefix = prefix.strip().lower()
        if not prefix:
            raise CacheError("cache id prefix must not be empty")
        with self._lock:
            matches = [e for k, e in self._entries.items() if k.startswith(prefix)]
        if not matches:
            raise CacheError(f"no cache entry matches id {prefix!r}")
        if len(matches) > 1:
            raise CacheError(f"id {prefix!r} is ambiguous ({len(matches)} entries match); use more characters")
        return matches[0]

    def remove(self, prefix: str) -> CacheEntry:
        entry = self.find(prefix)
        with self._lock:
            self._entries.pop(entry.id, None)
            self._save()
        return entry

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._save()
        return count

    def __len__(self) -> int:
        return len(self._entries)


def _parse_timestamp(value, fallback: datetime) -> datetime:
    if not isinstance(value, str):
        return fallback
    try:
        ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return fallback
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


_AGE_UNITS = (
    ("minute", 60, 3600),
    ("hour", 3600, 86400),
    ("day", 86400, 7 * 86400),
)


def relative_time(ts: datetime, now: datetime | None = None) -> str:
    """Human-friendly age like '5 minutes ago'; older than a week shows the date."""
    now = now or datetime.now(timezone.utc)
    seconds = int((now - ts).total_seconds())
    if seconds < 60:
        return "just now"
    for unit, size, limit in _AGE_UNITS:
        if seconds < limit:
            count = seconds // size
            return f"1 {unit} ago" if count == 1 else f"{count} {unit}s ago"
    return ts.strftime("%Y-%m-%d")
