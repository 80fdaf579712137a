"""LLM client base class, shared HTTP handling and the provider factory."""
from __future__ import annotations

import requests

from ..core.config_schema import OnelinerConfig
from ..utils.api import request_timeout, resolve_api_key, truncate_body


class LLMError(Exception):
    """Raised for missing credentials, transport failures and unusable responses."""


class LLMClient:
    """Turns a prompt into raw model text."""

    def __init__(self, model: str, timeout: tuple[float, float]):
        self.model = model
        self.timeout = timeout

    def generate_command(self, prompt: str) -> str:
        raise NotImplementedError

    # ------------------------------------------------------------------

    def _post(self, url: str, payload: dict, headers: dict | None = None) -> requests.Response:
        try:
            resp = requests.post(
                url,
                json=payload,
                headers={"Content-Type": "application/json", **(headers or {})},
                timeout=self.timeout,
            )
        except requests.Timeout as exc:
            raise LLMError(f"request timed out after {self.timeout[1]:g}s: {exc}") from exc
        except requests.RequestException as exc:
            raise LLMError(f"request failed: {exc}") from exc
        if resp.status_code != 200:
            raise LLMError(f"API error (status {resp.status_code}): {truncate_body(resp.text)}")
        return resp

    @staticmethod
    def _json(resp: requests.Response) -> dict:
        try:
            data = resp.json()
        except ValueError as exc:
            raise LLMError(f"invalid JSON in response: {exc}") from exc
        if not isinstance(data, dict):
            raise LLMError("unexpected response shape")
        return data


def new_client(cfg: OnelinerConfig) -> LLMClient:
    """Build the client for ``cfg.llm_api``."""
    from .claude import ClaudeClient
    from .local import LocalLLMClient
    from .openai import OpenAIClient

    timeout = request_timeout(cfg.request_timeout, cfg.client_timeout)
    provider = (cfg.llm_api or "").strip().lower()

    if provider == "openai":
        return OpenAIClient(resolve_api_key(cfg.api_key), cfg.model, timeout)
    if provider == "claude":
        return ClaudeClient(resolve_api_key(cfg.api_key), cfg.model, timeout, cfg.claude_max_tokens)
    if provider == "local":
        return LocalLLMClient(cfg.local_llm_endpoint, cfg.model, timeout)
    raise LLMError(f"unsupported LLM API: {cfg.llm_api}")
