"""Tests for .oneliner.yml discovery and validation."""
from pathlib import Path

from oneliner_cli.core.policy_loader import _validate_policy, find_policy_file, load_policy


class TestValidatePolicy:
    def test_valid_policy(self, capsys):
        policy = _validate_policy({
            "version": 1,
            "blacklisted_binaries": [" docker ", "kubectl", ""],
            "default_shell": "zsh",
        })
        assert policy == {
            "version": "1",
            "blacklisted_binaries": ["docker", "kubectl"],
            "default_shell": "zsh",
        }
        assert capsys.readouterr().err == ""

    def test_unknown_key_warns(self, capsys):
        policy = _validate_policy({"risk_level": "strict"})
        assert policy == {}
        assert 'unknown policy key "risk_level"' in capsys.readouterr().err

    def test_bad_blacklist_type(self, capsys):
        policy = _validate_policy({"blacklisted_binaries": "rm"})
        assert "blacklisted_binaries" not in policy
        assert "must be a list of strings" in capsys.readouterr().err

    def test_bad_shell(self, capsys):
        policy = _validate_policy({"default_shell": ""})
        assert "default_shell" not in policy
        assert "non-empty string" in capsys.readouterr().err


class TestLoadPolicy:
    def test_no_file(self):
        assert find_policy_file() is None
        assert load_policy() is None

    def test_yml_in_cwd(self):
        Path(".oneliner.yml").write_text("default_shell: fish\n")
        assert load_policy() == {"default_shell": "fish"}

    def test_yaml_extension(self):
        Path(".oneliner.yaml").write_text("blacklisted_binaries: [helm]\n")
        assert load_policy() == {"blacklisted_binaries": ["helm"]}

    def test_walks_up_to_repo_root(self, monkeypatch):
        root = Path.cwd()
        (root / ".oneliner.yml").write_text("default_shell: zsh\n")
        nested = root / "src" / "pkg"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        assert find_policy_file() == root / ".oneliner.yml"

    def test_stops_at_repo_root(self, monkeypatch):
        root = Path.cwd()
        (root.parent / ".oneliner.yml").write_text("default_shell: zsh\n")
        assert find_policy_file() is None

    def test_invalid_yaml_warns(self, capsys):
        Path(".oneliner.yml").write_text("blacklisted_binaries: [unclosed\n")
        assert load_policy() is None
        assert "failed to parse policy file" in capsys.readouterr().err

    def test_empty_file(self):
        Path(".oneliner.yml").write_text("")
        assert load_policy() is None
