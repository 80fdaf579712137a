"""OpenAI chat completions client."""
from __future__ import annotations

from ..utils.api import OPENAI_URL
from .base import LLMClient, LLMError

MISSING_KEY_HELP = "\n".join([
    "OpenAI API key not configured.",
    "",
    "Quick setup:",
    "  → Run: oneliner setup",
    "",
    "Or manually configure:",
    "  → oneliner config set llm_api openai",
    "  → oneliner config set api_key sk-xxxx",
    "  → oneliner config set model gpt-4o",
    "",
    "Get your API key: https://platform.openai.com/api-keys",
])


class OpenAIClient(LLMClient):
    def __init__(self, api_key: str, model: str, timeout: tuple[float, float], url: str = OPENAI_URL):
        super().__init__(model, timeout)
        self.api_key = api_key
        self.url = url

    def generate_command(self, prompt: str) -> str:
        if not self.api_key:
            raise LLMError(MISSING_KEY_HELP)

        resp = self._post(
            self.url,
            {"model": self.model, "messages": [{"role": "user", "content": prompt}]},
            headers={"Authorization": f"Bearer {self.api_key}"},
        )
        choices = self._json(resp).get("choices") or []
        if not choices:
            raise LLMError("no response from OpenAI")
        content = ((choices[0] or {}).get("message") or {}).get("content") or ""
        if not content.strip():
            raise LLMError("empty response from OpenAI")
        return content
