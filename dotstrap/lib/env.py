from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional


def _xdg(environ: Mapping[str, str], name: str, home: Path, default: str) -> Path:
    value = environ.get(name)
    return Path(value) if value else home / default


@dataclass(frozen=True)
class Paths:
    home: Path
    dotfiles: Path
    config_home: Path
    data_home: Path
    cache_home: Path
    state_home: Path
    # Repo-relative files that a dotstrap.yaml may point elsewhere.
    overrides: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str],
        *,
        dotfiles_dir: Optional[str] = None,
        overrides: Optional[Mapping[str, str]] = None,
    ) -> "Paths":
        home = Path(environ.get("HOME") or Path.home())
        dotfiles = Path(dotfiles_dir or environ.get("DOTFILES") or home / ".dotfiles").expanduser()
        return cls(
            home=home,
            dotfiles=dotfiles,
            config_home=_xdg(environ, "XDG_CONFIG_HOME", home, ".config"),
            data_home=_xdg(environ, "XDG_DATA_HOME", home, ".local/share"),
            cache_home=_xdg(environ, "XDG_CACHE_HOME", home, ".cache"),
            state_home=_xdg(environ, "XDG_STATE_HOME", home, ".local/state"),
            overrides={k: str(v) for k, v in (overrides or {}).items() if v},
        )

    def _repo_file(self, key: str, default: str) -> Path:
        value = self.overrides.get(key)
        if value:
            p = Path(value).expanduser()
            return p if p.is_absolute() else self.dotfiles / p
        return self.dotfiles / default

    @property
    def dotbot_install(self) -> Path:
        return self._repo_file("dotbot_install", "install")

    @property
    def dotbot_config(self) -> Path:
        return self._repo_file("dotbot_config", "install.conf.yaml")

    @property
    def brewfile(self) -> Path:
        return self._repo_file("brewfile", "bootstrap/Brewfile")

    @property
    def package_list(self) -> Path:
        return self._repo_file("package_list", "bootstrap/packages.list")

    @property
    def apps_list(self) -> Path:
        return self._repo_file("apps_list", "bootstrap/helpers/ubuntu-apps.list")

    @property
    def profile(self) -> Path:
        return self._repo_file("profile", ".zsh/.zprofile")

    @property
    def xdg_cleanup_script(self) -> Path:
        return self._repo_file("xdg_cleanup", "scripts/system/xdg-cleanup")

    @property
    def dev_templates(self) -> Path:
        return self._repo_file("dev_templates", "dev-templates")

    @property
    def git_template(self) -> Path:
        return self.dotfiles / "config/git/gitconfig.local.template"

    @property
    def git_local(self) -> Path:
        return self.dotfiles / "config/git/gitconfig.local"

    @property
    def dev_root(self) -> Path:
        return self.home / "dev"

    @property
    def ssh_dir(self) -> Path:
        return self.home / ".ssh"

    @property
    def ssh_sockets(self) -> Path:
        return self.ssh_dir / "sockets"

    @property
    def zsh_sessions(self) -> Path:
        return self.home / ".zsh_sessions"

    @property
    def zinit_dir(self) -> Path:
        return self.data_home / "zinit"

    @property
    def local_bin(self) -> Path:
        return self.home / ".local/bin"

    @property
    def dotstrap_state_dir(self) -> Path:
        return self.state_home / "dotstrap"

    def xdg_env(self) -> Dict[str, str]:
        """Environment exported to every sub-step."""
        return {
            "XDG_CONFIG_HOME": str(self.config_home),
            "XDG_DATA_HOME": str(self.data_home),
            "XDG_CACHE_HOME": str(self.cache_home),
            "XDG_STATE_HOME": str(self.state_home),
            "DOTFILES": str(self.dotfiles),
            "ZSH_SESSION_DIR": str(self.zsh_sessions),
        }

    def to_dict(self) -> Dict[str, str]:
        return {
            "home": str(self.home),
            "dotfiles": str(self.dotfiles),
            "config_home": str(self.config_home),
            "data_home": str(self.data_home),
            "cache_home": str(self.cache_home),
            "state_home": str(self.state_home),
        }
