"""Append-only JSONL record of what oneliner evaluated and ran.

Each line is one JSON object carrying ``timestamp`` (UTC, ISO 8601),
``session_id`` (shared by every entry a process writes), ``event_type`` and
the ``action`` / ``security_check`` / ``resolution`` sections.
"""
from __future__ import annotations

import json
import os
import random
import tempfile
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Iterator

from .config_schema import get_audit_log_path


def _new_session_id() -> str:
    return f"{int(time.time() * 1000)}-{random.randbytes(4).hex()}"


class AuditLogger:
    def __init__(self, log_path: Path | None = None, enabled: bool | None = None):
        self._path = log_path or get_audit_log_path()
        self._enabled = enabled
        self._session_id = _new_session_id()

    @property
    def path(self) -> Path:
        return self._path

    def log(self, entry: dict[str, Any]) -> None:
        """Stamp *entry* with time and session, then append it as one line."""
        if not self._is_enabled():
            return
        record = {"timestamp": datetime.now(timezone.utc).isoformat(), "session_id": self._session_id}
        record.update(entry)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a") as out:
            out.write(json.dumps(record) + "\n")

    # ------------------------------------------------------------------
    # Convenience loggers
    # ------------------------------------------------------------------

    def log_command_evaluated(
        self,
        command: str,
        risk_level: str,
        passed: bool,
        action_taken: str,
        reasons: list[str] | None = None,
    ) -> None:
        self.log({
            "event_type": "command_evaluated",
            "action": {"command": command, "risk_level": risk_level},
            "security_check": {
                "passed": passed,
                "reason": "; ".join(reasons) if reasons else None,
            },
            "resolution": {"action_taken": action_taken},
        })

    def log_command_executed(
        self,
        command: str,
        exit_code: int,
        duration: float,
    ) -> None:
        self.log({
            "event_type": "command_executed",
            "action": {"command": command},
            "security_check": {"passed": exit_code == 0, "reason": None},
            "resolution": {
                "action_taken": "executed",
                "exit_code": exit_code,
                "duration_seconds": round(duration, 3),
            },
        })

    # ------------------------------------------------------------------
    # Querying and retention
    # ------------------------------------------------------------------

    def read(
        self,
        event_type: str | None = None,
        since: datetime | None = None,
        limit: int | None = None,
    ) -> list[dict]:
        """Return stored entries oldest first, optionally filtered.

        Lines that are blank or not valid JSON are skipped. *limit* keeps the
        newest matches.
        """
        cutoff = since.isoformat() if since else None
        matches = [
            record
            for record in self._records()
            if (not event_type or record.get("event_type") == event_type)
            and (cutoff is None or record.get("timestamp", "") >= cutoff)
        ]
        return matches[-limit:] if limit else matches

    def cleanup(self, retention_days: int = 30) -> int:
        """Drop entries older than *retention_days*. Returns how many were kept."""
        if not self._path.exists():
            return 0
        kept = self.read(since=datetime.now(timezone.utc) - timedelta(days=retention_days))
        self._replace_contents("".join(json.dumps(record) + "\n" for record in kept))
        return len(kept)

    # ------------------------------------------------------------------

    def _records(self) -> Iterator[dict]:
        try:
            handle = open(self._path)
        except FileNotFoundError:
            return
        with handle:
            for raw in handle:
                raw = raw.strip()
                if not raw:
                    continue
                try:
                    record = json.loads(raw)
                except json.JSONDecodeError:
                    continue
                if isinstance(record, dict):
                    yield record

    def _replace_contents(self, text: str) -> None:
        # os.replace needs the scratch file on the same filesystem as the log.
        fd, scratch = tempfile.mkstemp(dir=self._path.parent, prefix=".audit_tmp_")
        try:
            with os.fdopen(fd, "w") as out:
                out.write(text)
            os.replace(scratch, self._path)
        except OSError:
            Path(scratch).unlink(missing_ok=True)
            raise

    def _is_enabled(self) -> bool:
        if self._enabled is not None:
            return self._enabled
        from .config_manager import ConfigManager
        return ConfigManager().load().log_all_actions
