from __future__ import annotations

from pathlib import Path
from typing import Dict

import pytest

from dotstrap.config import (
    ASK,
    NO,
    YES,
    apply_unattended_defaults,
    load_config,
    normalize_bool,
    normalize_tristate,
)
from dotstrap.errors import BootstrapError


@pytest.mark.parametrize("value", [True, "true", "YES", "y", "1", "on"])
def test_normalize_bool_truthy(value):
    assert normalize_bool("X", value) is True


@pytest.mark.parametrize("value", [False, None, "", "false", "No", "0", "off"])
def test_normalize_bool_falsy(value):
    assert normalize_bool("X", value) is False


def test_normalize_bool_rejects_garbage():
    with pytest.raises(BootstrapError, match="DEBUG_MODE"):
        normalize_bool("DEBUG_MODE", "maybe")


def test_normalize_tristate():
    assert normalize_tristate("T", None) == ASK
    assert normalize_tristate("T", "") == ASK
    assert normalize_tristate("T", "Ask") == ASK
    assert normalize_tristate("T", "true") == YES
    assert normalize_tristate("T", "0") == NO
    assert normalize_tristate("T", False) == NO


def test_apply_unattended_defaults_only_fills_ask():
    options = {"install_casks": ASK, "install_mas_apps": YES}
    apply_unattended_defaults(options)

    assert options["install_casks"] == YES
    assert options["install_mas_apps"] == YES
    assert options["github_auth"] == NO
    assert options["run_xdg_cleanup"] == YES


def _load(environ: Dict[str, str], dotfiles: Path, **overrides):
    return load_config(None, environ=environ, overrides={"dotfiles_dir": str(dotfiles), **overrides})


def test_defaults_everything_ask(environ, dotfiles):
    cfg = _load(environ, dotfiles)

    assert cfg.debug is False
    assert cfg.unattended is False
    assert set(cfg.options.values()) == {ASK}
    assert cfg.paths(environ).dotfiles == dotfiles


def test_environment_beats_config_file(environ, dotfiles):
    (dotfiles / "dotstrap.yaml").write_text(
        "options:\n  install_casks: yes\n  install_slack: yes\n", encoding="utf-8"
    )
    environ["INSTALL_CASKS"] = "false"

    cfg = _load(environ, dotfiles)

    assert cfg.options["install_casks"] == NO
    assert cfg.options["install_slack"] == YES


def test_unattended_env_applies_defaults_but_keeps_explicit(environ, dotfiles):
    environ["UNATTENDED_MODE"] = "true"
    environ["INSTALL_MAS_APPS"] = "yes"

    cfg = _load(environ, dotfiles)

    assert cfg.unattended is True
    assert cfg.options["install_mas_apps"] == YES
    assert cfg.options["install_casks"] == YES
    assert cfg.options["change_shell"] == NO


def test_cli_flags_switch_on(environ, dotfiles):
    environ["DEBUG_MODE"] = "false"

    cfg = _load(environ, dotfiles, debug=True, unattended=False, dry_run=True)

    assert cfg.debug is True
    assert cfg.unattended is False
    assert cfg.dry_run is True


def test_invalid_env_boolean_is_fatal(environ, dotfiles):
    environ["UNATTENDED_MODE"] = "sometimes"
    with pytest.raises(BootstrapError):
        _load(environ, dotfiles)


def test_explicit_missing_config_is_fatal(environ, tmp_path):
    with pytest.raises(BootstrapError, match="not found"):
        load_config(str(tmp_path / "missing.yaml"), environ=environ)


def test_config_file_paths_and_git_identity(environ, dotfiles):
    (dotfiles / "dotstrap.yaml").write_text(
        "paths:\n"
        "  brewfile: macos/Brewfile\n"
        "  package_list: /etc/my-packages.list\n"
        "git:\n"
        "  user_name: Ada Lovelace\n"
        "  user_email: ada@example.com\n",
        encoding="utf-8",
    )
    environ["GIT_USER_EMAIL"] = "ada@analytical.engine"

    cfg = _load(environ, dotfiles)
    paths = cfg.paths(environ)

    assert paths.brewfile == dotfiles / "macos" / "Brewfile"
    assert paths.package_list == Path("/etc/my-packages.list")
    assert paths.dotbot_config == dotfiles / "install.conf.yaml"
    assert cfg.git_user_name == "Ada Lovelace"
    assert cfg.git_user_email == "ada@analytical.engine"


def test_non_yaml_config_is_rejected(environ, tmp_path):
    cfg = tmp_path / "dotstrap.json"
    cfg.write_text("{}", encoding="utf-8")
    with pytest.raises(BootstrapError, match="YAML"):
        load_config(str(cfg), environ=environ)


def test_malformed_yaml_config_is_a_bootstrap_error(environ, tmp_path):
    cfg = tmp_path / "dotstrap.yaml"
    cfg.write_text("options: {github_auth: yes\n", encoding="utf-8")
    with pytest.raises(BootstrapError, match="Malformed config"):
        load_config(str(cfg), environ=environ)


def test_tailnet_from_file_then_environment(environ, dotfiles):
    (dotfiles / "dotstrap.yaml").write_text("tailscale:\n  tailnet: example.ts.net\n", encoding="utf-8")
    assert _load(environ, dotfiles).tailnet_domain == "example.ts.net"

    environ["TAILSCALE_TAILNET"] = "other.ts.net"
    assert _load(environ, dotfiles).tailnet_domain == "other.ts.net"


def test_tailnet_unset_by_default(environ, dotfiles):
    assert _load(environ, dotfiles).tailnet_domain is None
