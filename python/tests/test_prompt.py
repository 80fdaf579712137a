"""Tests for prompt construction and LLM response parsing."""
import pytest

from oneliner_cli.core.prompt import (
    PromptContext,
    PromptError,
    build_prompt,
    parse_response,
    validate_query,
)


def _ctx(query="find all large files"):
    return PromptContext(query=query, os="linux", cwd="/home/dev/project", username="dev", shell="/bin/zsh")


class TestValidateQuery:
    def test_too_short(self):
        with pytest.raises(PromptError, match="too short"):
            validate_query("ls")

    def test_too_vague(self):
        with pytest.raises(PromptError, match="too vague"):
            validate_query("compress")

    def test_trims(self):
        assert validate_query("  list files  ") == "list files"


class TestBuildPrompt:
    def test_contains_context(self):
        prompt = build_prompt(_ctx(), "bash")
        assert prompt.startswith("You are an expert in bash on linux systems.\n")
        assert "Write a single, safe one-liner in bash to:\nfind all large files\n" in prompt
        assert "  OS: linux\n" in prompt
        assert "  Dir: /home/dev/project\n" in prompt
        assert "  User: dev\n" in prompt
        assert "  Shell: /bin/zsh\n" in prompt
        assert prompt.endswith("Output only the command, nothing else.\n")

    def test_explain(self):
        prompt = build_prompt(_ctx(), "bash", explain=True)
        assert "EXPLANATION:" in prompt
        assert "Output only the command" not in prompt

    def test_fish_hint(self):
        assert "Use idiomatic fish syntax only." in build_prompt(_ctx(), "fish")

    def test_powershell_hint(self):
        assert "Use idiomatic PowerShell. No bash." in build_prompt(_ctx(), "PowerShell")

    def test_blank_shell_defaults_to_bash(self):
        assert build_prompt(_ctx(), "").startswith("You are an expert in bash")

    def test_rejects_vague_query(self):
        with pytest.raises(PromptError):
            build_prompt(_ctx("ls"), "bash")


class TestParseResponse:
    def test_plain(self):
        assert parse_response("ls -la\n") == ("ls -la", "")

    def test_fenced(self):
        assert parse_response("```bash\nls -la\n```") == ("ls -la", "")

    def test_fenced_shell_tag(self):
        assert parse_response("```shell\ndu -sh *\n```") == ("du -sh *", "")

    def test_fenced_sh_tag(self):
        assert parse_response("```sh\ndu -sh *\n```") == ("du -sh *", "")

    def test_explanation(self):
        command, explanation = parse_response("find . -size +10M\nEXPLANATION: lists files over 10MB")
        assert command == "find . -size +10M"
        assert explanation == "lists files over 10MB"

    def test_fenced_command_with_explanation(self):
        command, explanation = parse_response("```bash\ndf -h\n```\nEXPLANATION: disk usage")
        assert command == "df -h"
        assert explanation == "disk usage"
