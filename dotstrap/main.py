from __future__ import annotations

import argparse
import logging
import os
from typing import Any, Dict, List, Mapping, Optional

from .config import BootstrapConfig, load_config
from .context import RunContext
from .errors import BootstrapError
from .lib.hostinfo import detect_host, detect_os, is_root
from .lib.sudo import SudoSession
from .logging_utils import configure_logging
from .pipeline import Step, run_pipeline
from .state_store import ensure_defaults, load_state, merge_options, save_state
from .steps import (
    BasePackagesStep,
    BrewBundleStep,
    DevDirectoryStep,
    EnsureDirectoriesStep,
    EnsureZshStep,
    FinalizeStep,
    GitHubAuthStep,
    GitIdentityStep,
    HomebrewStep,
    LinkDotfilesStep,
    LinuxPreflightStep,
    LocalBinPathStep,
    LoginShellStep,
    MacDnsStep,
    MagicDnsResolverStep,
    MacServicesStep,
    RepoWritableStep,
    RequestedAppsStep,
    SystemUpdateStep,
    XcodeCLTStep,
    XdgCleanupStep,
)

logger = logging.getLogger(__name__)

DESCRIPTION = """\
Bootstraps a macOS or Linux development environment from a dotfiles repo.

macOS: Command Line Tools, Homebrew, Brewfile, Dotbot, Git, services, DNS.
Linux: apt/pacman base packages, requested apps, Dotbot, Git, login shell.
Safe to run multiple times; completed steps are skipped unless --force.
"""

EPILOG = """\
environment:
  DEBUG_MODE, UNATTENDED_MODE            same as --debug / --unattended
  INSTALL_CASKS, INSTALL_MAS_APPS, INSTALL_SERVICES, INSTALL_OFFICE_TOOLS,
  INSTALL_SLACK, INSTALL_PARALLELS, CONFIGURE_DNS, GITHUB_AUTH, CHANGE_SHELL,
  SETUP_DEV_DIR, RUN_XDG_CLEANUP         ask | yes | no (default: ask)
  GIT_USER_NAME, GIT_USER_EMAIL          skip the Git identity prompts

examples:
  dotstrap                        interactive
  dotstrap --debug --unattended   no prompts, verbose
  INSTALL_CASKS=no INSTALL_OFFICE_TOOLS=yes dotstrap
"""


def build_steps(os_name: str, ctx: RunContext) -> List[Step]:
    if os_name == "darwin":
        return [
            EnsureDirectoriesStep(ctx),
            RepoWritableStep(ctx),
            XcodeCLTStep(ctx),
            HomebrewStep(ctx),
            BrewBundleStep(ctx),
            LinkDotfilesStep(ctx),
            GitIdentityStep(ctx),
            GitHubAuthStep(ctx),
            MacServicesStep(ctx),
            MacDnsStep(ctx),
            MagicDnsResolverStep(ctx),
            LoginShellStep(ctx),
            XdgCleanupStep(ctx),
            DevDirectoryStep(ctx),
            FinalizeStep(ctx),
        ]
    if os_name == "linux":
        return [
            EnsureDirectoriesStep(ctx),
            LinuxPreflightStep(ctx),
            RepoWritableStep(ctx),
            EnsureZshStep(ctx),
            SystemUpdateStep(ctx),
            BasePackagesStep(ctx),
            RequestedAppsStep(ctx),
            LocalBinPathStep(ctx),
            LinkDotfilesStep(ctx),
            GitIdentityStep(ctx),
            GitHubAuthStep(ctx),
            LoginShellStep(ctx),
            XdgCleanupStep(ctx),
            DevDirectoryStep(ctx),
            FinalizeStep(ctx),
        ]
    raise BootstrapError(f"Unsupported operating system: {os_name}")


def run(
    cfg: BootstrapConfig,
    *,
    environ: Mapping[str, str],
    state_path: Optional[str] = None,
    log_path: Optional[str] = None,
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
    force: bool = False,
    os_name: Optional[str] = None,
) -> Dict[str, Any]:
    """Run the bootstrap pipeline, persisting state for resume."""

    paths = cfg.paths(environ)
    actual_log_path = configure_logging(
        log_path=log_path or str(paths.dotstrap_state_dir / "bootstrap.log"),
        console_level=logging.DEBUG if cfg.debug else logging.INFO,
    )

    if is_root():
        raise BootstrapError("Do not run as root; run as your user (sudo is used when needed)")

    os_name = os_name or detect_os()
    if os_name == "unsupported":
        raise BootstrapError(f"Unsupported operating system: {os.uname().sysname}")

    # Sub-steps (Dotbot, cleanup scripts) rely on these.
    os.environ.update(paths.xdg_env())

    state_path = state_path or str(paths.dotstrap_state_dir / "state.json")
    state = ensure_defaults(load_state(state_path))
    state["config"]["dry_run"] = cfg.dry_run
    state["config"]["unattended"] = cfg.unattended
    merge_options(state, cfg.options)
    state["config"]["paths"] = paths.to_dict()
    state["host"] = detect_host(dry_run=cfg.dry_run)
    state["host"]["os"] = os_name
    state["execution"]["log_path"] = actual_log_path

    sudo = SudoSession(unattended=cfg.unattended, dry_run=cfg.dry_run, environ=environ)
    ctx = RunContext(
        paths=paths,
        sudo=sudo,
        environ=environ,
        dry_run=cfg.dry_run,
        unattended=cfg.unattended,
        debug=cfg.debug,
        git_user_name=cfg.git_user_name,
        git_user_email=cfg.git_user_email,
        tailnet_domain=cfg.tailnet_domain,
    )
    steps = build_steps(os_name, ctx)

    logger.info("Starting bootstrap (%s, dotfiles=%s)", os_name, paths.dotfiles)
    try:
        if cfg.unattended:
            logger.info("Running in unattended mode")
            # Fail early rather than half way through the package installs.
            sudo.ensure()

        result = run_pipeline(
            state=state,
            steps=steps,
            start_at=start_at,
            stop_after=stop_after,
            force=force,
        )
        state = result.state
        state["execution"]["summary"] = {
            "ran_steps": result.ran_steps,
            "skipped_steps": result.skipped_steps,
        }
        return state
    except Exception as e:
        logger.exception("Bootstrap failed")
        state.setdefault("execution", {}).setdefault("errors", []).append(
            {
                "step": (state.get("execution") or {}).get("current_step"),
                "error": str(e),
            }
        )
        raise
    finally:
        sudo.stop()
        save_state(state_path, state)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="dotstrap",
        description=DESCRIPTION,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("-d", "--debug", action="store_true", help="Enable verbose debug logging")
    p.add_argument("-u", "--unattended", action="store_true", help="Run without prompts (uses safe defaults)")
    p.add_argument("--dotfiles-dir", default=None, help="Dotfiles repository (default: $DOTFILES or ~/.dotfiles)")
    p.add_argument("--config", default=None, help="dotstrap YAML config (default: <dotfiles>/dotstrap.yaml)")
    p.add_argument("--state", default=None, help="Path to bootstrap state (json|yaml)")
    p.add_argument("--log", default=None, help="Path to bootstrap log")
    p.add_argument("--start-at", default=None, help="Start at step_id (e.g. 40_link_dotfiles)")
    p.add_argument("--stop-after", default=None, help="Stop after step_id")
    p.add_argument("--force", action="store_true", help="Re-run steps even if marked completed")
    p.add_argument("--dry-run", action="store_true", help="Log what would be done without doing it")
    return p


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    environ = dict(os.environ)

    try:
        cfg = load_config(
            args.config,
            environ=environ,
            overrides={
                "debug": args.debug,
                "unattended": args.unattended,
                "dry_run": args.dry_run,
                "dotfiles_dir": args.dotfiles_dir,
            },
        )
        run(
            cfg,
            environ=environ,
            state_path=args.state,
            log_path=args.log,
            start_at=args.start_at,
            stop_after=args.stop_after,
            force=args.force,
        )
    except BootstrapError as e:
        configure_logging(log_path=args.log)
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
