from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Protocol

from .command import CommandError, command_exists, retry_call, run_cmd
from .sudo import SudoSession, SudoUnavailable

logger = logging.getLogger(__name__)

APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}

# Needed before anything in the package list can be installed or configured.
LINUX_MINIMAL_PACKAGES = [
    "zsh",
    "git",
    "python3",
    "python3-pip",
    "python3-venv",
    "curl",
    "ca-certificates",
    "gnupg",
    "lsb-release",
    "software-properties-common",
    "jq",
    "unzip",
]

# Best-effort mapping of the base list for Arch-based hosts.
PACMAN_BASE_PACKAGES = [
    "git",
    "zsh",
    "bat",
    "eza",
    "fzf",
    "htop",
    "nmap",
    "python",
    "screen",
    "shellcheck",
    "tldr",
    "tmux",
    "github-cli",
    "git-delta",
    "glab",
]

BREW_INSTALL_URL = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"
NERD_FONT_CASK = "font-jetbrains-mono-nerd-font"

OFFICE_BREW_LINES = (
    'cask "microsoft-teams"',
    'mas "Microsoft Excel"',
    'mas "Microsoft PowerPoint"',
    'mas "Microsoft Word"',
)


def unique(names: Iterable[str]) -> List[str]:
    """De-dup while preserving order."""
    out: List[str] = []
    for n in names:
        if n not in out:
            out.append(n)
    return out


def read_package_list(path: Path) -> List[str]:
    """One package per line; comments and blank lines are ignored."""

    names = []
    for line in path.read_text(encoding="utf-8").splitlines():
        name = line.split("#", 1)[0].strip()
        if name:
            names.append(name)
    return unique(names)


class Installer(Protocol):
    name: str
    update_error: Optional[str]

    def is_installed(self, package: str) -> bool:
        ...

    def install(self, package: str) -> None:
        ...


@dataclass
class PackageReport:
    installed: List[str] = field(default_factory=list)
    present: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    index_error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return not self.failed


def ensure_packages(installer: Installer, packages: Iterable[str]) -> PackageReport:
    """Install every missing package once, in order. Failures do not stop the loop."""

    report = PackageReport()
    for package in unique(packages):
        if installer.is_installed(package):
            report.present.append(package)
            continue
        logger.info("Installing %s (%s)", package, installer.name)
        try:
            installer.install(package)
        except (CommandError, SudoUnavailable) as e:
            logger.error("Failed to install %s: %s", package, e)
            report.failed.append(package)
        else:
            report.installed.append(package)
    if installer.update_error:
        report.index_error = installer.update_error
        installer.update_error = None
    return report


def dpkg_installed(package: str) -> bool:
    return run_cmd(["dpkg", "-s", package], check=False).ok


class AptInstaller:
    """apt-get wrapper that refreshes the package index at most once per run."""

    name = "apt"
    update_wait_s = 2.0

    def __init__(self, sudo: SudoSession, *, dry_run: bool = False) -> None:
        self.sudo = sudo
        self.dry_run = dry_run
        self.updated = False
        self.update_error: Optional[str] = None

    def reset_update(self) -> None:
        """Force the next install to refresh the index (new apt source added)."""
        self.updated = False
        self.update_error = None

    def update(self) -> None:
        """Refresh the index once. A failure is kept and installs use the cached index."""

        if self.updated:
            return
        self.updated = True
        logger.info("Updating apt package index")
        try:
            retry_call(lambda: self.sudo.run(["apt-get", "update"]), wait_s=self.update_wait_s)
        except CommandError as e:
            self.update_error = str(e)
            logger.warning("apt-get update failed; installing from the cached index")

    def is_installed(self, package: str) -> bool:
        if self.dry_run:
            return False
        return dpkg_installed(package)

    def install(self, package: str) -> None:
        self.update()
        self.sudo.run(["apt-get", "install", "-y", package], env=APT_ENV)


class PacmanInstaller:
    name = "pacman"
    update_error: Optional[str] = None

    def __init__(self, sudo: SudoSession, *, dry_run: bool = False) -> None:
        self.sudo = sudo
        self.dry_run = dry_run

    def is_installed(self, package: str) -> bool:
        if self.dry_run:
            return False
        return run_cmd(["pacman", "-Qi", package], check=False).ok

    def install(self, package: str) -> None:
        self.sudo.run(["pacman", "-S", "--needed", "--noconfirm", package])


def detect_package_manager() -> str:
    if command_exists("apt-get"):
        return "apt"
    if command_exists("pacman"):
        return "pacman"
    return "unknown"


def system_update(manager: str, sudo: SudoSession) -> None:
    """Refresh and upgrade the system. Raises CommandError after retries."""

    if manager == "apt":
        retry_call(lambda: sudo.run(["apt-get", "update"]))
        retry_call(lambda: sudo.run(["apt-get", "upgrade", "-y"], env=APT_ENV))
    elif manager == "pacman":
        retry_call(lambda: sudo.run(["pacman", "-Syu", "--noconfirm"]))
    else:
        raise ValueError(f"Unknown package manager: {manager}")


# --- Homebrew -------------------------------------------------------------


def brew_prefix(arch: str) -> Path:
    return Path("/opt/homebrew") if arch == "arm64" else Path("/usr/local")


def find_brew(arch: str) -> Optional[str]:
    found = shutil.which("brew")
    if found:
        return found
    candidate = brew_prefix(arch) / "bin" / "brew"
    return str(candidate) if candidate.exists() else None


def brew_shellenv_line(arch: str) -> str:
    return f'eval "$({brew_prefix(arch)}/bin/brew shellenv)"'


def brew_has(brew: str, name: str, *, cask: bool = False) -> bool:
    argv = [brew, "list"]
    if cask:
        argv.append("--cask")
    return run_cmd([*argv, name], check=False).ok


def filter_brewfile(text: str, options: Mapping[str, bool]) -> str:
    """Drop Brewfile lines for the optional groups the user declined.

    Options (all default True): install_casks, install_mas_apps,
    install_services, install_office_tools, install_slack, install_parallels.
    The Nerd Font cask survives ``install_casks=False``; the shell theme needs it.
    """

    def wanted(key: str) -> bool:
        return bool(options.get(key, True))

    kept = []
    for line in text.splitlines():
        s = line.strip()
        if not wanted("install_casks") and s.startswith("cask ") and f'"{NERD_FONT_CASK}"' not in s:
            continue
        if not wanted("install_mas_apps") and s.startswith("mas "):
            continue
        if not wanted("install_services") and ('brew "tailscale"' in s or 'brew "dnsmasq"' in s):
            continue
        if not wanted("install_office_tools") and any(s.startswith(o) for o in OFFICE_BREW_LINES):
            continue
        if not wanted("install_slack") and s.startswith('mas "Slack"'):
            continue
        if not wanted("install_parallels") and s.startswith('cask "parallels"'):
            continue
        kept.append(line)
    return "\n".join(kept) + ("\n" if kept else "")


def brew_bundle(brew: str, brewfile: Path, *, dry_run: bool = False) -> bool:
    """True when everything is installed (checked first, bundled otherwise)."""

    if run_cmd([brew, "bundle", "check", f"--file={brewfile}"], check=False, dry_run=dry_run).ok and not dry_run:
        logger.info("All Brewfile packages already installed")
        return True
    return run_cmd([brew, "bundle", f"--file={brewfile}"], check=False, dry_run=dry_run).ok
