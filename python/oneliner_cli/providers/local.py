"""Client for self-hosted models (Ollama, LM Studio, OpenAI-compatible servers).

The payload shape is picked from the endpoint path. Responses are read as
Ollama NDJSON first (for Ollama endpoints), then as completions, chat and
non-streaming Ollama JSON in that order.
"""
from __future__ import annotations

import json

from .base import LLMClient, LLMError

MAX_TOKENS = 512
TEMPERATURE = 0.7

MISSING_ENDPOINT_HELP = "\n".join([
    "Local LLM endpoint not configured.",
    "",
    "Quick setup:",
    "  → Run: oneliner setup",
    "",
    "Or manually configure:",
    "  → oneliner config set llm_api local",
    "  → oneliner config set local_llm_endpoint http://localhost:8000/v1/completions",
    "  → oneliner config set model llama3",
])

OLLAMA_GENERATE = "ollama-generate"
OLLAMA_CHAT = "ollama-chat"
OPENAI_CHAT = "openai-chat"
OPENAI_COMPLETIONS = "openai-completions"


def detect_endpoint_kind(endpoint: str) -> str:
    if "/api/generate" in endpoint:
        return OLLAMA_GENERATE
    if "/api/chat" in endpoint:
        return OLLAMA_CHAT
    if "/v1/chat/completions" in endpoint:
        return OPENAI_CHAT
    if "/v1/completions" in endpoint:
        return OPENAI_COMPLETIONS
    return OPENAI_CHAT


def build_payload(kind: str, model: str, prompt: str) -> dict:
    messages = [{"role": "user", "content": prompt}]
    if kind == OLLAMA_GENERATE:
        return {"model": model, "prompt": prompt, "stream": False}
    if kind == OLLAMA_CHAT:
        return {"model": model, "messages": messages, "stream": False}
    if kind == OPENAI_COMPLETIONS:
        return {
            "model": model,
            "prompt": prompt,
            "max_tokens": MAX_TOKENS,
            "temperature": TEMPERATURE,
            "stream": False,
        }
    return {
        "model": model,
        "messages": messages,
        "max_tokens": MAX_TOKENS,
        "temperature": TEMPERATURE,
        "stream": False,
    }


def parse_ndjson(body: str) -> str | None:
    """Concatenate Ollama stream chunks. None when no line is valid JSON."""
    parts: list[str] = []
    found = False
    for line in body.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            msg = json.loads(line)
        except json.JSONDecodeError:
            continue
        if not isinstance(msg, dict):
            continue
        found = True
        if isinstance(msg.get("response"), str):
            parts.append(msg["response"])
        message = msg.get("message")
        if isinstance(message, dict) and isinstance(message.get("content"), str):
            parts.append(message["content"])
        if msg.get("done") is True:
            break
    if not found:
        return None
    return "".join(parts).strip()


def parse_json_body(body: str) -> str:
    """Pull text out of a completions, chat or Ollama JSON response ('' if none)."""
    try:
        data = json.loads(body)
    except json.JSONDecodeError:
        return ""
    if not isinstance(data, dict):
        return ""

    choices = data.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        text = choices[0].get("text")
        if isinstance(text, str) and text.strip():
            return text.strip()
        message = choices[0].get("message")
        if isinstance(message, dict) and isinstance(message.get("content"), str) and message["content"].strip():
            return message["content"].strip()

    message = data.get("message")
    if isinstance(message, dict) and isinstance(message.get("content"), str) and message["content"]:
        return message["content"].strip()
    if isinstance(data.get("response"), str) and data["response"]:
        return data["response"].strip()
    return ""


class LocalLLMClient(LLMClient):
    def __init__(self, endpoint: str, model: str, timeout: tuple[float, float]):
        super().__init__(model, timeout)
        self.endpoint = (endpoint or "").strip()

    def generate_command(self, prompt: str) -> str:
        if not self.endpoint:
            raise LLMError(MISSING_ENDPOINT_HELP)

        kind = detect_endpoint_kind(self.endpoint)
        resp = self._post(self.endpoint, build_payload(kind, self.model, prompt))
        body = resp.text

        if kind in (OLLAMA_GENERATE, OLLAMA_CHAT):
            streamed = parse_ndjson(body)
            if streamed is not None:
                if not streamed:
                    raise LLMError("empty response from local LLM")
                return streamed

        text = parse_json_body(body)
        if not text:
            raise LLMError(f"empty response from local LLM: {body[:500]}")
        return text
