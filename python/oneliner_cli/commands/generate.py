"""The default command: turn a natural-language request into a shell one-liner."""
from __future__ import annotations

import getpass
import os
import platform
import random
import sys
from pathlib import Path

import pyperclip
import typer
from rich import print as rprint
from rich.console import Console

from ..core.cache import CacheError, CommandCache, hash_query
from ..core.command_interceptor import CommandInterceptor
from ..core.config_manager import ConfigManager
from ..core.config_schema import OnelinerConfig
from ..core.executor import CommandExecutor, ExecutionError
from ..core.prompt import PromptContext, PromptError, build_prompt, parse_response
from ..providers.base import LLMError, new_client
from ..utils.api import exit_with_error
from ..utils.formatter import fmt, is_plain_mode

LOADING_MESSAGES = [
    "⚙️ Generating one-liner...",
    "🔍 Finding the simplest command...",
    "🧠 Thinking through your request...",
    "💡 Turning your idea into code...",
    "🔧 Assembling the perfect command...",
    "🌊 Mapping intent to shell syntax...",
    "🧩 Piecing together your request...",
    "📦 Packing it all into one clean line...",
    "🪄 Translating thoughts into terminal language...",
]

console = Console()


def is_windows() -> bool:
    return sys.platform.startswith("win")


def detect_shell() -> str:
    """The user's interactive shell, as far as the environment tells."""
    if is_windows():
        if "cmd.exe" in os.environ.get("ComSpec", "").lower():
            return "cmd"
        if os.environ.get("PSModulePath"):
            return "powershell"
        if os.environ.get("WSL_DISTRO_NAME"):
            return "bash"
        return "powershell"
    return os.environ.get("SHELL") or "/bin/bash"


def _username() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"


def gather_context(words: list[str]) -> PromptContext:
    return PromptContext(
        query=" ".join(words),
        os=platform.system().lower() or sys.platform,
        cwd=os.getcwd(),
        username=_username(),
        shell=detect_shell(),
    )


def copy_to_clipboard(command: str) -> None:
    try:
        pyperclip.copy(command)
    except pyperclip.PyperclipException as exc:
        print(f"oneliner: failed to copy to clipboard: {exc}", file=sys.stderr)
        return
    rprint(fmt.dim("  ⧉ copied to clipboard"))


def display_command(command: str, explanation: str, explain: bool) -> None:
    rprint(fmt.info(command))
    if explain and explanation:
        rprint(fmt.divider())
        rprint(fmt.dim(f"  ℹ {explanation}"))
        rprint()


def generate(cfg: OnelinerConfig, ctx: PromptContext, explain: bool) -> str:
    """Return the raw model response for *ctx*, from the cache when possible."""
    cache = CommandCache()
    key = hash_query(ctx.query, ctx.os, ctx.cwd, ctx.username, ctx.shell, explain)
    cached = cache.get(key)
    if cached is not None:
        return cached

    prompt = build_prompt(ctx, cfg.default_shell, explain)
    client = new_client(cfg)
    if is_plain_mode():
        response = client.generate_command(prompt)
    else:
        with console.status(random.choice(LOADING_MESSAGES)):
            response = client.generate_command(prompt)

    try:
        cache.set(key, response)
    except CacheError as exc:
        print(f"oneliner: warning: failed to write to cache: {exc}", file=sys.stderr)
    return response


def ask(
    query: list[str] = typer.Argument(..., help="What you want the command to do"),
    run: bool = typer.Option(False, "--run", "-r", help="Run the generated command as-is"),
    sudo: bool = typer.Option(False, "--sudo", help="Prepend 'sudo' to the generated command when executing"),
    explain: bool = typer.Option(False, "--explain", "-e", help="Show an explanation of the generated command"),
    config: Path = typer.Option(None, "--config", help="Alternative config file"),
    clipboard: bool = typer.Option(False, "--clipboard", "-c", help="Copy the generated command to the clipboard"),
):
    """Generate a shell one-liner from natural language."""
    try:
        cfg = ConfigManager(config).load_with_policy()
        ctx = gather_context(query)
        response = generate(cfg, ctx, explain)

        command, explanation = parse_response(response)
        display_command(command, explanation, explain)

        if clipboard:
            copy_to_clipboard(command)

        if not run:
            return

        if sudo and is_windows():
            print("oneliner: warning: --sudo is not supported on Windows and will be ignored", file=sys.stderr)
            sudo = False
        to_run = f"sudo {command}" if sudo else command

        executor = CommandExecutor(CommandInterceptor(cfg))
        executor.execute(to_run, used_sudo_flag=sudo)
    except (PromptError, LLMError, CacheError, ExecutionError) as exc:
        exit_with_error(str(exc))
