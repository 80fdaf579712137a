"""View and prune the audit log."""
from __future__ import annotations

from datetime import datetime

import typer
from rich import print as rprint

from ..core.audit_logger import AuditLogger
from ..utils.api import exit_with_error
from ..utils.formatter import fmt, is_plain_mode

_EVENT_INDICATORS_HUMAN = {
    "command_evaluated": "\U0001f6e1️",
    "command_executed": "▶️",
}

_EVENT_INDICATORS_PLAIN = {
    "command_evaluated": "[EVAL]",
    "command_executed": "[EXEC]",
}


def audit(
    limit: int = typer.Option(10, "--limit", "-n", help="Show last N entries"),
    event: str = typer.Option(None, "--event", help="Filter by event type (command_evaluated, command_executed)"),
    since: str = typer.Option(None, "--since", help="Show entries since date (YYYY-MM-DD)"),
    prune_days: int = typer.Option(None, "--prune-days", help="Delete entries older than N days and exit"),
):
    """View security audit log entries."""
    logger = AuditLogger()

    if prune_days is not None:
        if prune_days < 0:
            exit_with_error("--prune-days must not be negative")
        try:
            kept = logger.cleanup(prune_days)
        except OSError as exc:
            exit_with_error(f"failed to prune audit log: {exc}")
        rprint(fmt.success(f"Audit log pruned ({kept} entries kept)"))
        return

    since_dt = None
    if since:
        try:
            since_dt = datetime.fromisoformat(since)
        except ValueError:
            exit_with_error(f"Invalid date: {since}")

    entries = logger.read(event_type=event, since=since_dt, limit=limit)
    if not entries:
        print("No audit log entries found")
        return

    print(f"\nShowing {len(entries)} audit log entries:\n")

    indicators = _EVENT_INDICATORS_PLAIN if is_plain_mode() else _EVENT_INDICATORS_HUMAN
    for e in entries:
        ts = e.get("timestamp", "")
        try:
            ts = datetime.fromisoformat(ts).strftime("%Y-%m-%d %H:%M:%S")
        except (TypeError, ValueError):
            pass
        et = e.get("event_type", "unknown")
        ind = indicators.get(et, "[EVENT]" if is_plain_mode() else "\U0001f4dd")
        rprint(fmt.dim(f"{ind} [{ts}] {et}"))
        action = e.get("action") or {}
        if action.get("command"):
            rprint(fmt.dim(f"   Command: {action['command']}"))
        if action.get("risk_level"):
            rprint(fmt.dim(f"   Risk: {action['risk_level']}"))
        sc = e.get("security_check") or {}
        if sc.get("reason"):
            rprint(fmt.dim(f"   Reason: {sc['reason']}"))
        res = e.get("resolution") or {}
        rprint(fmt.dim(f"   Action: {res.get('action_taken', 'unknown')}"))
        if res.get("exit_code") is not None:
            rprint(fmt.dim(f"   Exit code: {res['exit_code']}"))
        print()
