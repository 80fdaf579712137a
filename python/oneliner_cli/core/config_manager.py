"""Configuration manager: load, back-fill, save, policy overlay."""
from __future__ import annotations

import json
import os
import sys
from dataclasses import asdict, fields as _fields
from pathlib import Path
from typing import Any

from .config_schema import (
    LLM_PROVIDERS,
    OnelinerConfig,
    get_config_path,
    get_default_config,
)


class ConfigError(Exception):
    """Raised for unknown keys and values that fail validation."""


class ConfigManager:
    def __init__(self, config_path: Path | None = None):
        self._path = Path(config_path) if config_path else get_config_path()

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Load / Save
    # ------------------------------------------------------------------

    def load(self) -> OnelinerConfig:
        """Load the config, creating it with defaults on first use.

        Missing or zero-valued fields are back-filled from the defaults and
        the file is rewritten so new fields show up for the user.
        """
        if not self._path.exists():
            config = get_default_config()
            try:
                self.save(config)
            except OSError as exc:
                print(f"oneliner: cannot write default config: {exc}", file=sys.stderr)
            return config
        try:
            raw = json.loads(self._path.read_text())
        except json.JSONDecodeError as exc:
            print(f"oneliner: malformed config, using defaults: {exc}", file=sys.stderr)
            return get_default_config()
        except OSError as exc:
            print(f"oneliner: cannot read config, using defaults: {exc}", file=sys.stderr)
            return get_default_config()
        if not isinstance(raw, dict):
            print("oneliner: config must be a JSON object, using defaults", file=sys.stderr)
            return get_default_config()

        config, updated = self._from_dict(raw)
        if updated:
            try:
                self.save(config)
            except OSError as exc:
                print(f"oneliner: cannot update config: {exc}", file=sys.stderr)
        return config

    def save(self, config: OnelinerConfig) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(self._to_dict(config), indent=2))
        os.chmod(self._path, 0o600)

    # ------------------------------------------------------------------
    # CRUD helpers
    # ------------------------------------------------------------------

    def get(self, key: str):
        """Get a config value by key, or None when the key is unknown."""
        return self._to_dict(self.load()).get(key)

    def set(self, key: str, value: str) -> tuple[Any, Any]:
        """Parse *value* for *key*, validate and persist it.

        Returns ``(old, new)``. Raises ConfigError for unknown keys and
        values of the wrong shape.
        """
        config = self.load()
        d = self._to_dict(config)
        if key not in d:
            raise ConfigError(f"unknown config key: {key}")
        new = coerce_value(key, value, d[key])
        old = d[key]
        d[key] = new
        updated, _ = self._from_dict(d)
        self.save(updated)
        return old, new

    def update(self, updates: dict) -> OnelinerConfig:
        d = {**self._to_dict(self.load()), **updates}
        cfg, _ = self._from_dict(d)
        self.save(cfg)
        return cfg

    # ------------------------------------------------------------------
    # Policy-merged config
    # ------------------------------------------------------------------

    def load_with_policy(self) -> OnelinerConfig:
        """Load config merged with a .oneliner.yml policy.

        Policy binaries extend the configured blacklist; a policy shell wins.
        """
        from .policy_loader import load_policy

        config = self.load()
        policy = load_policy()
        if not policy:
            return config

        if policy.get("blacklisted_binaries"):
            merged = [*config.blacklisted_binaries, *policy["blacklisted_binaries"]]
            config.blacklisted_binaries = list(dict.fromkeys(merged))
        if policy.get("default_shell"):
            config.default_shell = policy["default_shell"]

        return config

    # ------------------------------------------------------------------
    # Serialization helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _to_dict(config: OnelinerConfig) -> dict:
        return asdict(config)

    @staticmethod
    def _from_dict(raw: dict) -> tuple[OnelinerConfig, bool]:
        """Build a config from *raw*, back-filling missing or empty fields.

        Returns the config and whether anything had to be filled in.
        """
        defaults = asdict(get_default_config())
        values: dict = {}
        updated = False
        for f in _fields(OnelinerConfig):
            default = defaults[f.name]
            if f.name not in raw:
                values[f.name] = default
                updated = True
                continue
            value = raw[f.name]
            if not _is_set(value, default):
                values[f.name] = default
                updated = True
                continue
            values[f.name] = value
        return OnelinerConfig(**values), updated


def _is_set(value, default) -> bool:
    """Whether *value* is a usable, non-zero value of the default's type."""
    if isinstance(default, bool):
        return isinstance(value, bool)
    if isinstance(default, int):
        return isinstance(value, int) and not isinstance(value, bool) and value != 0
    if isinstance(default, str):
        return isinstance(value, str) and (value.strip() != "" or default == "")
    if isinstance(default, list):
        return isinstance(value, list) and len(value) > 0 and all(isinstance(v, str) for v in value)
    return True


_TRUE = {"true", "yes", "on", "1"}
_FALSE = {"false", "no", "off", "0"}


def coerce_value(key: str, value: str, current: Any) -> Any:
    """Convert a CLI string into the type stored under *key*."""
    if isinstance(current, bool):
        lowered = value.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ConfigError(f"invalid boolean value for {key}: {value!r} (use true or false)")

    if isinstance(current, int):
        try:
            number = int(value.strip())
        except ValueError:
            raise ConfigError(f"invalid integer value for {key}: {value!r}") from None
        if number <= 0:
            raise ConfigError(f"{key} must be a positive integer")
        return number

    if isinstance(current, list):
        text = value.strip()
        if text.startswith("["):
            try:
                parsed = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ConfigError(f"invalid list value for {key}: {exc}") from None
            if not isinstance(parsed, list) or not all(isinstance(v, str) for v in parsed):
                raise ConfigError(f"{key} must be a list of strings")
            items = parsed
        else:
            items = text.split(",")
        return [i.strip() for i in items if i.strip()]

    text = value.strip()
    if key == "llm_api" and text not in LLM_PROVIDERS:
        raise ConfigError(f"llm_api must be one of: {', '.join(LLM_PROVIDERS)}")
    if key == "local_llm_endpoint" and text and not text.startswith(("http://", "https://")):
        raise ConfigError("endpoint must start with http:// or https://")
    return text
