"""Output formatter with rich and plain modes."""
from __future__ import annotations

import os

from rich.markup import escape

from ..core.risk_rules import RiskLevel

_plain_mode: bool = bool(os.environ.get("NO_COLOR"))


def set_plain_mode(enabled: bool) -> None:
    global _plain_mode
    _plain_mode = enabled


def is_plain_mode() -> bool:
    return _plain_mode


class fmt:
    """Static formatter methods. Rich markup by default, plain text under NO_COLOR.

    Text arguments are escaped, so commands containing brackets print as typed.
    """

    @staticmethod
    def header(text: str) -> str:
        if _plain_mode:
            return escape(f"=== {text} ===")
        return f"\n[bold]{escape(text)}[/bold]\n"

    @staticmethod
    def success(text: str) -> str:
        if _plain_mode:
            return escape(f"[OK] {text}")
        return f"[bold green]✓ {escape(text)}[/bold green]"

    @staticmethod
    def warning(text: str) -> str:
        if _plain_mode:
            return escape(f"[WARN] {text}")
        return f"[bold yellow]❯ {escape(text)}[/bold yellow]"

    @staticmethod
    def error(text: str) -> str:
        if _plain_mode:
            return escape(f"[ERROR] {text}")
        return f"[bold red]✗ {escape(text)}[/bold red]"

    @staticmethod
    def severity(level: RiskLevel) -> str:
        upper = level.label.upper()
        if _plain_mode:
            return escape(f"[{upper}]")
        styles = {
            RiskLevel.CRITICAL: f"[bold white on red] {upper} [/bold white on red]",
            RiskLevel.HIGH: f"[bold black on yellow] {upper} [/bold black on yellow]",
            RiskLevel.MEDIUM: f"[white on blue] {upper} [/white on blue]",
            RiskLevel.LOW: f"[white on green] {upper} [/white on green]",
        }
        return styles.get(level, f"[dim]{upper}[/dim]")

    @staticmethod
    def command(text: str, sudo: bool = False) -> str:
        if _plain_mode:
            return escape(f"{'[sudo] ' if sudo else ''}> {text}")
        tag = "[bold yellow on black] sudo [/bold yellow on black] " if sudo else ""
        return f"  {tag}[bold cyan]❯[/bold cyan] [white]{escape(text)}[/white]"

    @staticmethod
    def divider() -> str:
        if _plain_mode:
            return "---"
        return "[dim]" + "─" * 41 + "[/dim]"

    @staticmethod
    def dim(text: str) -> str:
        if _plain_mode:
            return escape(text)
        return f"[dim]{escape(text)}[/dim]"

    @staticmethod
    def info(text: str) -> str:
        if _plain_mode:
            return escape(text)
        return f"[cyan]{escape(text)}[/cyan]"
