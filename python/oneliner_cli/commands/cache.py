"""Cache commands: list, clear, rm."""
from __future__ import annotations

import typer
from rich import print as rprint
from rich.markup import escape

from ..core.cache import CacheError, CommandCache, relative_time
from ..core.prompt import parse_response
from ..utils.api import exit_with_error
from ..utils.formatter import fmt

cache_app = typer.Typer(name="cache", help="Manage the command cache", no_args_is_help=True)

SHORT_ID = 8
MAX_DISPLAY = 80


def _truncate(text: str, limit: int = MAX_DISPLAY) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


def _open_cache() -> CommandCache:
    try:
        return CommandCache()
    except CacheError as exc:
        exit_with_error(str(exc))


@cache_app.command("list")
def cache_list():
    """List cached commands, newest first."""
    entries = _open_cache().entries()
    if not entries:
        print("Cache is empty")
        return

    print(f"Found {len(entries)} cached command(s):\n")
    for entry in entries:
        command, explanation = parse_response(entry.command)
        rprint(f"{fmt.info(entry.id[:SHORT_ID])} {escape(_truncate(command))}")
        if explanation:
            rprint(f"    {fmt.dim(_truncate(explanation))}")
        rprint(f"    {fmt.dim(relative_time(entry.timestamp))}\n")

    print("Use 'oneliner cache rm <id>' to remove a specific entry")
    print("Use 'oneliner cache clear' to clear all entries")


@cache_app.command("clear")
def cache_clear():
    """Remove every cached command."""
    cache = _open_cache()
    if len(cache) == 0:
        print("Cache is already empty")
        return
    try:
        count = cache.clear()
    except CacheError as exc:
        exit_with_error(f"failed to clear cache: {exc}")
    rprint(fmt.success(f"Cache cleared ({count} entries removed)"))


@cache_app.command("rm")
def cache_rm(
    id_prefix: str = typer.Argument(..., help="Cache entry id or unique prefix"),
):
    """Remove one cached command by id prefix."""
    cache = _open_cache()
    if len(cache) == 0:
        exit_with_error("cache is empty")
    try:
        entry = cache.remove(id_prefix)
    except CacheError as exc:
        exit_with_error(str(exc))
    rprint(fmt.success(f"Removed cached entry: {entry.id[:SHORT_ID]}"))
