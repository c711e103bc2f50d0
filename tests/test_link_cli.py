from __future__ import annotations

from pathlib import Path

import pytest

from dotstrap import link as link_mod


@pytest.fixture
def repo(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, home: Path, dotfiles: Path) -> Path:
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("DOTFILES", str(dotfiles))
    monkeypatch.setattr(link_mod, "configure_logging", lambda **kwargs: str(tmp_path / "test.log"))
    (dotfiles / "tmux.conf").write_text("set -g mouse on\n", encoding="utf-8")
    (dotfiles / "install.conf.yaml").write_text(
        "- link:\n    ~/.tmux.conf:\n    ~/.config/tool/config: tmux.conf\n", encoding="utf-8"
    )
    return dotfiles


def test_applies_default_config_then_check_passes(repo: Path, home: Path):
    assert link_mod.main(["--check"]) == 1

    assert link_mod.main([]) == 0

    assert (home / ".tmux.conf").resolve() == (repo / "tmux.conf").resolve()
    assert (home / ".config" / "tool" / "config").is_symlink()
    assert link_mod.main(["--check"]) == 0


def test_dry_run_changes_nothing(repo: Path, home: Path):
    assert link_mod.main(["--dry-run"]) == 0
    assert not (home / ".tmux.conf").exists()


def test_explicit_config_and_base_dir(repo: Path, home: Path, tmp_path: Path):
    other = tmp_path / "elsewhere.yaml"
    other.write_text("- link:\n    ~/.tmux.conf: tmux.conf\n", encoding="utf-8")

    assert link_mod.main(["--config", str(other), "--base-dir", str(repo)]) == 0
    assert (home / ".tmux.conf").resolve() == (repo / "tmux.conf").resolve()


def test_conflicting_file_fails(repo: Path, home: Path):
    (home / ".tmux.conf").write_text("local", encoding="utf-8")
    assert link_mod.main([]) == 1
    assert (home / ".tmux.conf").read_text(encoding="utf-8") == "local"


def test_missing_config_exits_1(repo: Path, tmp_path: Path):
    assert link_mod.main(["--config", str(tmp_path / "missing.yaml")]) == 1
