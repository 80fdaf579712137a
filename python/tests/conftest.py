"""Shared fixtures: keep every test away from the real home directory."""
from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    monkeypatch.setenv("ONELINER_CACHE_PATH", str(home / ".cache" / "oneliner" / "commands.json"))
    monkeypatch.delenv("ONELINER_API_KEY", raising=False)
    monkeypatch.setattr("oneliner_cli.core.policy_loader.get_git_root", lambda: str(work))
    monkeypatch.chdir(work)
    return home
