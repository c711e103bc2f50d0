from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .errors import BootstrapError
from .lib.env import Paths

ASK = "ask"
YES = "yes"
NO = "no"

_TRUE = {"true", "yes", "y", "1", "on"}
_FALSE = {"false", "no", "n", "0", "off"}

# option key -> (environment variable, value used by --unattended when still "ask")
TOGGLES: Dict[str, tuple[str, str]] = {
    "install_casks": ("INSTALL_CASKS", YES),
    "install_mas_apps": ("INSTALL_MAS_APPS", NO),
    "install_services": ("INSTALL_SERVICES", YES),
    "install_office_tools": ("INSTALL_OFFICE_TOOLS", NO),
    "install_slack": ("INSTALL_SLACK", NO),
    "install_parallels": ("INSTALL_PARALLELS", NO),
    "configure_dns": ("CONFIGURE_DNS", YES),
    "github_auth": ("GITHUB_AUTH", NO),
    "change_shell": ("CHANGE_SHELL", NO),
    "setup_dev_dir": ("SETUP_DEV_DIR", NO),
    "run_xdg_cleanup": ("RUN_XDG_CLEANUP", YES),
}

CONFIG_FILE_NAME = "dotstrap.yaml"


def normalize_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None or str(value).strip() == "":
        return False
    v = str(value).strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise BootstrapError(f"Invalid value for {name}: {value} (expected true/false)")


def normalize_tristate(name: str, value: Any) -> str:
    """Map a toggle value to ask/yes/no. Empty means ask."""
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return ASK
    if isinstance(value, str) and value.strip().lower() == ASK:
        return ASK
    return YES if normalize_bool(name, value) else NO


def apply_unattended_defaults(options: Dict[str, str]) -> Dict[str, str]:
    """Replace every remaining "ask" with its unattended default."""
    for key, (_, default) in TOGGLES.items():
        if options.get(key, ASK) == ASK:
            options[key] = default
    return options


@dataclass(frozen=True)
class BootstrapConfig:
    raw: Dict[str, Any]

    @property
    def debug(self) -> bool:
        return bool(self.raw.get("debug", False))

    @property
    def unattended(self) -> bool:
        return bool(self.raw.get("unattended", False))

    @property
    def dry_run(self) -> bool:
        return bool(self.raw.get("dry_run", False))

    @property
    def dotfiles_dir(self) -> Optional[str]:
        return self.raw.get("dotfiles_dir")

    @property
    def options(self) -> Dict[str, str]:
        return dict(self.raw.get("options") or {})

    @property
    def path_overrides(self) -> Dict[str, str]:
        return dict(self.raw.get("paths") or {})

    @property
    def git_user_name(self) -> Optional[str]:
        return (self.raw.get("git") or {}).get("user_name")

    @property
    def git_user_email(self) -> Optional[str]:
        return (self.raw.get("git") or {}).get("user_email")

    @property
    def tailnet_domain(self) -> Optional[str]:
        return (self.raw.get("tailscale") or {}).get("tailnet")

    def paths(self, environ: Mapping[str, str]) -> Paths:
        return Paths.from_env(environ, dotfiles_dir=self.dotfiles_dir, overrides=self.path_overrides)


def read_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    if path.suffix.lower() not in {".yaml", ".yml"}:
        raise BootstrapError(f"dotstrap config must be YAML: {path}")
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise BootstrapError(f"Malformed config {path}: {e}") from e
    if not isinstance(raw, dict):
        raise BootstrapError(f"{path} must contain a mapping/object")
    return raw


def load_config(
    path: Optional[str],
    *,
    environ: Mapping[str, str],
    overrides: Optional[Mapping[str, Any]] = None,
) -> BootstrapConfig:
    """Merge config file, environment and CLI overrides (later wins).

    With no explicit path the file is looked up as <dotfiles>/dotstrap.yaml.
    """

    cli = {k: v for k, v in (overrides or {}).items() if v is not None}
    dotfiles_hint = cli.get("dotfiles_dir")

    if path:
        cfg_path = Path(path).expanduser()
        if not cfg_path.exists():
            raise BootstrapError(f"Config file not found: {cfg_path}")
    else:
        cfg_path = Paths.from_env(environ, dotfiles_dir=dotfiles_hint).dotfiles / CONFIG_FILE_NAME

    file_raw = read_config_file(cfg_path)

    raw: Dict[str, Any] = {
        "dotfiles_dir": file_raw.get("dotfiles_dir"),
        "paths": dict(file_raw.get("paths") or {}),
        "git": dict(file_raw.get("git") or {}),
        "tailscale": dict(file_raw.get("tailscale") or {}),
    }

    # Toggles: file -> environment.
    file_opts = file_raw.get("options") or {}
    options: Dict[str, str] = {}
    for key, (env_name, _) in TOGGLES.items():
        value: Any = file_opts.get(key)
        if environ.get(env_name) not in (None, ""):
            value = environ[env_name]
        options[key] = normalize_tristate(env_name, value)
    raw["options"] = options

    raw["debug"] = normalize_bool("DEBUG_MODE", environ.get("DEBUG_MODE", file_raw.get("debug")))
    raw["unattended"] = normalize_bool(
        "UNATTENDED_MODE", environ.get("UNATTENDED_MODE", file_raw.get("unattended"))
    )
    raw["dry_run"] = bool(file_raw.get("dry_run", False))

    if environ.get("GIT_USER_NAME"):
        raw["git"]["user_name"] = environ["GIT_USER_NAME"]
    if environ.get("GIT_USER_EMAIL"):
        raw["git"]["user_email"] = environ["GIT_USER_EMAIL"]
    if environ.get("TAILSCALE_TAILNET"):
        raw["tailscale"]["tailnet"] = environ["TAILSCALE_TAILNET"]

    # CLI flags only ever switch things on.
    for key in ("debug", "unattended", "dry_run"):
        if cli.get(key):
            raw[key] = True
    if dotfiles_hint:
        raw["dotfiles_dir"] = dotfiles_hint

    if raw["unattended"]:
        apply_unattended_defaults(raw["options"])

    return BootstrapConfig(raw=raw)
