"""Configuration schema and defaults."""
from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal


# Type aliases
LLMProvider = Literal["openai", "claude", "local"]

LLM_PROVIDERS: tuple[str, ...] = ("openai", "claude", "local")

DEFAULT_MODEL = "gpt-4.1-nano"
DEFAULT_LOCAL_ENDPOINT = "http://localhost:8000/v1/completions"


def _default_blacklisted_binaries() -> list[str]:
    from .risk_rules import DEFAULT_BLACKLISTED_BINARIES
    return list(DEFAULT_BLACKLISTED_BINARIES)


def detect_default_shell() -> str:
    """powershell on native Windows, bash everywhere else (WSL included)."""
    if sys.platform.startswith("win") and not os.environ.get("WSL_DISTRO_NAME"):
        return "powershell"
    return "bash"


@dataclass
class OnelinerConfig:
    llm_api: LLMProvider = "openai"
    api_key: str = ""
    model: str = DEFAULT_MODEL
    default_shell: str = field(default_factory=detect_default_shell)
    local_llm_endpoint: str = DEFAULT_LOCAL_ENDPOINT
    claude_max_tokens: int = 1024
    request_timeout: int = 60
    client_timeout: int = 65
    blacklisted_binaries: list[str] = field(default_factory=_default_blacklisted_binaries)
    log_all_actions: bool = True


def get_default_config() -> OnelinerConfig:
    return OnelinerConfig()


def get_oneliner_dir() -> Path:
    return Path.home() / ".config" / "oneliner"


def get_config_path() -> Path:
    return get_oneliner_dir() / "config.json"


def get_audit_log_path() -> Path:
    return get_oneliner_dir() / "audit.jsonl"


def get_consent_path() -> Path:
    return get_oneliner_dir() / "consent_run.txt"
