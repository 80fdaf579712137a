"""Anthropic messages API client."""
from __future__ import annotations

from ..utils.api import CLAUDE_API_VERSION, CLAUDE_URL
from .base import LLMClient, LLMError

DEFAULT_MAX_TOKENS = 1024

MISSING_KEY_HELP = "\n".join([
    "Claude API key not configured.",
    "",
    "Quick setup:",
    "  → Run: oneliner setup",
    "",
    "Or manually configure:",
    "  → oneliner config set llm_api claude",
    "  → oneliner config set api_key sk-ant-xxxx",
    "  → oneliner config set model claude-sonnet-4-5-20250929",
    "",
    "Get your API key: https://console.anthropic.com/",
])


class ClaudeClient(LLMClient):
    def __init__(
        self,
        api_key: str,
        model: str,
        timeout: tuple[float, float],
        max_tokens: int = DEFAULT_MAX_TOKENS,
        url: str = CLAUDE_URL,
    ):
        super().__init__(model, timeout)
        self.api_key = api_key
        self.max_tokens = max_tokens if max_tokens > 0 else DEFAULT_MAX_TOKENS
        self.url = url

    def generate_command(self, prompt: str) -> str:
        if not self.api_key:
            raise LLMError(MISSING_KEY_HELP)

        resp = self._post(
            self.url,
            {
                "model": self.model,
                "messages": [{"role": "user", "content": prompt}],
                "max_tokens": self.max_tokens,
            },
            headers={"x-api-key": self.api_key, "anthropic-version": CLAUDE_API_VERSION},
        )
        blocks = self._json(resp).get("content") or []
        if not blocks:
            raise LLMError("no response from Claude")
        text = (blocks[0] or {}).get("text") or ""
        if not text.strip():
            raise LLMError("empty response from Claude")
        return text
