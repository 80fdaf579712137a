"""Prompt construction and response parsing for command generation."""
from __future__ import annotations

import re
from dataclasses import dataclass

MIN_QUERY_LENGTH = 5
MIN_WORD_COUNT = 2

EXPLANATION_MARKER = "EXPLANATION:"

_FENCE_OPEN = re.compile(r"^```(?:bash|shell|sh|text)?[ \t]*\n?")
_FENCE_CLOSE = re.compile(r"\n?```[ \t]*$")


class PromptError(Exception):
    """Raised when a query is too short or too vague to send."""


@dataclass
class PromptContext:
    query: str
    os: str
    cwd: str
    username: str
    shell: str


def validate_query(query: str) -> str:
    trimmed = query.strip()
    if len(trimmed) < MIN_QUERY_LENGTH:
        raise PromptError(
            f"query is too short (minimum {MIN_QUERY_LENGTH} characters); "
            "please provide a more detailed request"
        )
    if len(trimmed.split()) < MIN_WORD_COUNT:
        raise PromptError(
            f"query is too vague (minimum {MIN_WORD_COUNT} words); "
            "please provide a more detailed request"
        )
    return trimmed


def build_prompt(ctx: PromptContext, shell: str, explain: bool = False) -> str:
    """Build the LLM prompt for *ctx*, targeting the configured *shell*."""
    query = validate_query(ctx.query)
    shell = shell or "bash"

    lines = [
        f"You are an expert in {shell} on {ctx.os} systems.",
        f"Write a single, safe one-liner in {shell} to:",
        query,
        "",
        "System:",
        f"  OS: {ctx.os}",
        f"  Dir: {ctx.cwd}",
        f"  User: {ctx.username}",
        f"  Shell: {ctx.shell}",
    ]

    lowered = shell.lower()
    if lowered == "fish":
        lines.append("Use idiomatic fish syntax only.")
    elif lowered == "powershell":
        lines.append("Use idiomatic PowerShell. No bash.")

    if explain:
        lines.append(
            "Respond with the command first, then add 'EXPLANATION:' on a new line "
            "with a *very* brief explanation."
        )
    else:
        lines.append("Output only the command, nothing else.")

    return "\n".join(lines) + "\n"


def parse_response(response: str) -> tuple[str, str]:
    """Split an LLM response into (command, explanation).

    Surrounding code fences are dropped; everything after ``EXPLANATION:``
    is the explanation.
    """
    text = _strip_fences(response.strip())
    explanation = ""
    if EXPLANATION_MARKER in text:
        text, _, explanation = text.partition(EXPLANATION_MARKER)
        explanation = explanation.strip()
    command = _strip_fences(text.strip()).replace("```", "").strip()
    return command, explanation.replace("```", "").strip()


def _strip_fences(text: str) -> str:
    text = _FENCE_OPEN.sub("", text, count=1)
    text = _FENCE_CLOSE.sub("", text, count=1)
    return text.strip()
