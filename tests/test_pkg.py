from __future__ import annotations

from pathlib import Path

import pytest

from conftest import FakeInstaller, FakeSudo
from dotstrap.lib import pkg
from dotstrap.lib.command import CmdResult, CommandError
from dotstrap.lib.pkg import (
    NERD_FONT_CASK,
    AptInstaller,
    brew_prefix,
    brew_shellenv_line,
    ensure_packages,
    filter_brewfile,
    read_package_list,
    system_update,
)

PACKAGE_LIST = """\
# Core tools
ripgrep
fzf   # fuzzy finder

tmux
ripgrep
  jq
"""

BREWFILE = f"""\
tap "homebrew/bundle"
brew "git"
brew "tailscale"
brew "dnsmasq"
cask "ghostty"
cask "{NERD_FONT_CASK}"
cask "microsoft-teams"
cask "parallels"
mas "Microsoft Word", id: 462054704
mas "Slack", id: 803453959
mas "Things", id: 904280696
"""


def test_read_package_list_drops_comments_blanks_and_duplicates(tmp_path: Path):
    path = tmp_path / "packages.list"
    path.write_text(PACKAGE_LIST, encoding="utf-8")

    assert read_package_list(path) == ["ripgrep", "fzf", "tmux", "jq"]


def test_ensure_packages_installs_each_missing_package_once_in_order():
    installer = FakeInstaller(present={"tmux"})

    report = ensure_packages(installer, ["ripgrep", "fzf", "tmux", "ripgrep", "jq"])

    assert installer.calls == ["ripgrep", "fzf", "jq"]
    assert report.installed == ["ripgrep", "fzf", "jq"]
    assert report.present == ["tmux"]
    assert report.ok


def test_ensure_packages_keeps_going_after_a_failure():
    installer = FakeInstaller(failing={"fzf"})

    report = ensure_packages(installer, ["ripgrep", "fzf", "jq"])

    assert installer.calls == ["ripgrep", "fzf", "jq"]
    assert report.failed == ["fzf"]
    assert not report.ok


def test_second_pass_invokes_nothing():
    installer = FakeInstaller()
    ensure_packages(installer, ["a", "b"])
    installer.calls.clear()

    ensure_packages(installer, ["a", "b"])

    assert installer.calls == []


def test_apt_installer_refreshes_index_once():
    sudo = FakeSudo()
    apt = AptInstaller(sudo)

    apt.install("ripgrep")
    apt.install("jq")

    assert sudo.calls == [
        ["apt-get", "update"],
        ["apt-get", "install", "-y", "ripgrep"],
        ["apt-get", "install", "-y", "jq"],
    ]
    assert sudo.envs[1] == {"DEBIAN_FRONTEND": "noninteractive"}


def test_apt_installer_reset_update_refreshes_again():
    sudo = FakeSudo()
    apt = AptInstaller(sudo)
    apt.install("a")
    apt.reset_update()
    apt.install("b")

    assert [c for c in sudo.calls if c == ["apt-get", "update"]] == [["apt-get", "update"], ["apt-get", "update"]]


def test_apt_installer_checks_dpkg(monkeypatch: pytest.MonkeyPatch, recorder):
    recorder.respond(["dpkg", "-s", "jq"], 1)
    monkeypatch.setattr(pkg, "run_cmd", recorder)
    apt = AptInstaller(FakeSudo())

    assert apt.is_installed("git") is True
    assert apt.is_installed("jq") is False
    assert recorder.calls == [["dpkg", "-s", "git"], ["dpkg", "-s", "jq"]]


def test_dry_run_apt_installer_treats_everything_as_missing(monkeypatch: pytest.MonkeyPatch, recorder):
    monkeypatch.setattr(pkg, "run_cmd", recorder)
    assert AptInstaller(FakeSudo(), dry_run=True).is_installed("git") is False
    assert recorder.calls == []


def test_system_update_apt_and_pacman():
    sudo = FakeSudo()
    system_update("apt", sudo)
    assert sudo.calls == [["apt-get", "update"], ["apt-get", "upgrade", "-y"]]

    sudo = FakeSudo()
    system_update("pacman", sudo)
    assert sudo.calls == [["pacman", "-Syu", "--noconfirm"]]

    with pytest.raises(ValueError):
        system_update("zypper", FakeSudo())


def test_detect_package_manager(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(pkg, "command_exists", lambda name: name == "pacman")
    assert pkg.detect_package_manager() == "pacman"

    monkeypatch.setattr(pkg, "command_exists", lambda name: False)
    assert pkg.detect_package_manager() == "unknown"


def test_brew_prefix_by_arch():
    assert brew_prefix("arm64") == Path("/opt/homebrew")
    assert brew_prefix("amd64") == Path("/usr/local")
    assert brew_shellenv_line("arm64") == 'eval "$(/opt/homebrew/bin/brew shellenv)"'


def test_filter_brewfile_keeps_everything_by_default():
    assert filter_brewfile(BREWFILE, {}) == BREWFILE


def test_filter_brewfile_without_casks_keeps_nerd_font():
    out = filter_brewfile(BREWFILE, {"install_casks": False})

    assert f'cask "{NERD_FONT_CASK}"' in out
    assert 'cask "ghostty"' not in out
    assert 'brew "git"' in out
    assert 'mas "Things"' in out


def test_filter_brewfile_optional_groups():
    out = filter_brewfile(
        BREWFILE,
        {
            "install_mas_apps": True,
            "install_services": False,
            "install_office_tools": False,
            "install_slack": False,
            "install_parallels": False,
        },
    )

    assert 'brew "tailscale"' not in out
    assert 'brew "dnsmasq"' not in out
    assert "microsoft-teams" not in out
    assert "Microsoft Word" not in out
    assert 'mas "Slack"' not in out
    assert "parallels" not in out
    assert 'mas "Things"' in out
    assert 'cask "ghostty"' in out


def test_filter_brewfile_without_mas_apps():
    out = filter_brewfile(BREWFILE, {"install_mas_apps": False})
    assert "mas " not in out


class IndexDownSudo(FakeSudo):
    """apt-get update fails; everything else succeeds."""

    def run(self, argv, *, check=True, env=None):
        if list(argv) == ["apt-get", "update"]:
            self.calls.append(list(argv))
            raise CommandError(CmdResult(argv=list(argv), returncode=100, stdout="", stderr="no network"))
        return super().run(argv, check=check, env=env)


def test_failed_index_refresh_is_tried_once_and_reported_once(monkeypatch: pytest.MonkeyPatch, recorder):
    recorder.respond(["dpkg", "-s"], 1)
    monkeypatch.setattr(pkg, "run_cmd", recorder)
    sudo = IndexDownSudo()
    apt = AptInstaller(sudo)
    apt.update_wait_s = 0

    report = ensure_packages(apt, ["a", "b", "c"])

    assert [c for c in sudo.calls if c == ["apt-get", "update"]] == [["apt-get", "update"]] * 3
    assert report.installed == ["a", "b", "c"]
    assert report.ok
    assert "no network" in report.index_error

    later = ensure_packages(apt, ["d"])
    assert later.index_error is None
    assert len([c for c in sudo.calls if c == ["apt-get", "update"]]) == 3
