"""Shared constants and helpers for the provider clients and the CLI."""
from __future__ import annotations

import os
import sys
from typing import NoReturn

import typer
from dotenv import find_dotenv, load_dotenv
from rich import print as rprint

from .formatter import fmt

# Exit codes
EXIT_GENERAL_ERROR = 1

API_KEY_ENV = "ONELINER_API_KEY"

OPENAI_URL = "https://api.openai.com/v1/chat/completions"
CLAUDE_URL = "https://api.anthropic.com/v1/messages"
CLAUDE_API_VERSION = "2023-06-01"

# Non-200 bodies are read at most this far before going into an error message.
MAX_ERROR_BODY = 1024 * 1024

CONNECT_TIMEOUT = 10


def request_timeout(read_timeout: int, client_timeout: int) -> tuple[float, float]:
    """(connect, read) timeouts for requests; the read leg never exceeds the client cap."""
    read = min(read_timeout, client_timeout) if client_timeout > 0 else read_timeout
    return (min(CONNECT_TIMEOUT, read), read)


def resolve_api_key(configured: str | None) -> str:
    """Resolve API key from config, falling back to ONELINER_API_KEY (.env supported)."""
    if configured and configured.strip():
        return configured.strip()
    load_dotenv(find_dotenv(usecwd=True))
    return (os.getenv(API_KEY_ENV) or "").strip()


def truncate_body(text: str) -> str:
    return text[:MAX_ERROR_BODY]


def exit_with_error(message: str) -> NoReturn:
    """Print a red error line on stderr and leave with the general error code."""
    rprint(fmt.error(message), file=sys.stderr)
    raise typer.Exit(code=EXIT_GENERAL_ERROR)
