"""Configuration commands: config list|get|set|open and the setup wizard."""
from __future__ import annotations

import json
import os
import subprocess
import sys
from dataclasses import asdict
from pathlib import Path

import typer
from rich import print as rprint
from rich.markup import escape

from ..core.config_manager import ConfigError, ConfigManager
from ..core.config_schema import LLM_PROVIDERS
from ..utils.api import exit_with_error
from ..utils.formatter import fmt

config_app = typer.Typer(name="config", help="Manage oneliner configuration", no_args_is_help=True)

MODEL_SUGGESTIONS: dict[str, list[str]] = {
    "openai": ["gpt-4o", "gpt-4o-mini", "gpt-4-turbo", "gpt-3.5-turbo"],
    "claude": ["claude-sonnet-4-5-20250929", "claude-3-5-sonnet-20241022", "claude-3-opus-20240229"],
    "local": ["llama3", "mistral", "codellama"],
}


def mask_api_key(value: str) -> str:
    if not value:
        return value
    if len(value) > 8:
        return f"{value[:4]}...{value[-4:]}"
    return "***"


def _type_name(value) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, list):
        return "array[string]"
    return "string"


def _display(key: str, value) -> str:
    if key == "api_key":
        value = mask_api_key(value)
    if isinstance(value, list):
        return "[" + ", ".join(value) + "]"
    if isinstance(value, bool):
        return "true" if value else "false"
    if value == "":
        return "<not set>"
    return str(value)


@config_app.command("list")
def config_list(
    config: Path = typer.Option(None, "--config", help="Alternative config file"),
):
    """List current configuration values."""
    values = asdict(ConfigManager(config).load())
    width = max(len(k) for k in values)

    rprint(fmt.header("Configuration"))
    for key, value in values.items():
        rprint(f"  {fmt.info(key.ljust(width))} {fmt.dim(f'({_type_name(value)})')} {escape(_display(key, value))}")
    rprint()
    rprint(fmt.dim("  Use 'oneliner config set <key> <value>' to update"))


@config_app.command("get")
def config_get(
    key: str = typer.Argument(..., help="Config key (e.g. model)"),
    config: Path = typer.Option(None, "--config", help="Alternative config file"),
):
    """Get a configuration value."""
    value = ConfigManager(config).get(key)
    if value is None:
        print(f"Key not found: {key}", file=sys.stderr)
        raise typer.Exit(code=1)
    if key == "api_key":
        value = mask_api_key(value)
    if isinstance(value, (list, bool)):
        print(json.dumps(value))
    else:
        print(value)


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Config key (e.g. model)"),
    value: str = typer.Argument(..., help="Value to set; lists take a comma-separated or JSON value"),
    config: Path = typer.Option(None, "--config", help="Alternative config file"),
):
    """Set a configuration value."""
    try:
        old, new = ConfigManager(config).set(key, value)
    except ConfigError as exc:
        exit_with_error(str(exc))
    except OSError as exc:
        exit_with_error(f"failed to write config: {exc}")

    rprint(fmt.success("Configuration updated"))
    shown_old, shown_new = _display(key, old), escape(_display(key, new))
    if old not in ("", None) and old != new:
        rprint(f"  {fmt.info(key)}  {fmt.dim(shown_old)} → {shown_new}")
    else:
        rprint(f"  {fmt.info(key)}  {shown_new}")


def _open_in_editor(path: Path) -> None:
    editor = os.environ.get("EDITOR")
    if editor:
        subprocess.run([editor, str(path)], check=True)
    elif sys.platform.startswith("win"):
        subprocess.run(["cmd", "/C", "start", "", str(path)], check=True)
    elif sys.platform == "darwin":
        subprocess.Popen(["open", str(path)])
    else:
        subprocess.Popen(["xdg-open", str(path)])


@config_app.command("open")
def config_open(
    config: Path = typer.Option(None, "--config", help="Alternative config file"),
):
    """Open the config file in $EDITOR or the system default app."""
    manager = ConfigManager(config)
    manager.load()
    try:
        _open_in_editor(manager.path)
    except (OSError, subprocess.CalledProcessError) as exc:
        exit_with_error(f"failed to open config: {exc}")
    rprint(fmt.success(f"Opened {manager.path}"))


# ── setup wizard ─────────────────────────────────────────────────────


def setup(
    config: Path = typer.Option(None, "--config", help="Alternative config file"),
):
    """Interactive setup wizard for provider, credentials and model."""
    manager = ConfigManager(config)
    cfg = manager.load()

    rprint(fmt.header("oneliner setup"))
    provider = typer.prompt(
        f"LLM provider ({', '.join(LLM_PROVIDERS)})",
        default=cfg.llm_api if cfg.llm_api in LLM_PROVIDERS else "openai",
    ).strip().lower()
    if provider not in LLM_PROVIDERS:
        exit_with_error(f"llm_api must be one of: {', '.join(LLM_PROVIDERS)}")
    updates: dict = {"llm_api": provider}

    if provider in ("openai", "claude"):
        hint = " (leave blank to keep current)" if cfg.api_key else ""
        key = typer.prompt(f"API key{hint}", default="", hide_input=True, show_default=False).strip()
        if key:
            updates["api_key"] = key
    else:
        endpoint = typer.prompt("Local LLM endpoint", default=cfg.local_llm_endpoint).strip()
        if not endpoint.startswith(("http://", "https://")):
            exit_with_error("endpoint must start with http:// or https://")
        updates["local_llm_endpoint"] = endpoint

    suggestions = MODEL_SUGGESTIONS[provider]
    rprint(fmt.dim(f"  suggestions: {', '.join(suggestions)}"))
    current_model = cfg.model if cfg.llm_api == provider else suggestions[0]
    updates["model"] = typer.prompt("Model", default=current_model).strip()

    if provider == "claude":
        updates["claude_max_tokens"] = typer.prompt("Claude max tokens", default=cfg.claude_max_tokens, type=int)
        if updates["claude_max_tokens"] <= 0:
            exit_with_error("claude_max_tokens must be a positive integer")

    try:
        manager.update(updates)
    except OSError as exc:
        exit_with_error(f"failed to save config: {exc}")

    rprint(fmt.success("Configuration saved successfully!"))
    rprint(fmt.dim("  Try it out:"))
    rprint(fmt.dim('    oneliner "list all files larger than 10MB"'))
