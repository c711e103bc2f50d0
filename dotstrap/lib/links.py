"""Dotbot-compatible link reconciliation.

The dotfiles repo normally ships the Dotbot ``install`` wrapper; when it does,
we run it. When only ``install.conf.yaml`` is present the ``link`` directives
are applied here with the same meaning:

    - defaults:
        link:
          relink: true
    - link:
        ~/.zshrc: zsh/zshrc
        ~/.config/nvim:
          path: config/nvim
          force: true
        ~/.gitconfig:            # null source -> "gitconfig"
        ~/.hammerspoon:
          path: hammerspoon
          if: '[ `uname` = Darwin ]'

Parent directories of a target are always created before linking.
"""

from __future__ import annotations

import enum
import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..errors import BootstrapError
from .command import run_cmd
from .env import Paths

logger = logging.getLogger(__name__)

SKIP_TOUCHID_ENV = {"DOTFILES_SKIP_TOUCHID_LINK": "true"}


class LinkStatus(str, enum.Enum):
    LINKED = "linked"
    MISSING = "missing"
    WRONG_TARGET = "wrong_target"
    CONFLICT = "conflict"
    SOURCE_MISSING = "source_missing"


@dataclass(frozen=True)
class LinkSpec:
    target: Path
    source: Path
    relink: bool = False
    force: bool = False
    ignore_missing: bool = False


@dataclass(frozen=True)
class LinkResult:
    spec: LinkSpec
    before: LinkStatus
    action: str  # unchanged | created | relinked | replaced | skipped | failed
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.action in {"unchanged", "created", "relinked", "replaced"}


@dataclass(frozen=True)
class LinkRun:
    mode: str  # dotbot | builtin
    ok: bool
    results: List[LinkResult]


def _expand_target(raw: str, home: Path) -> Path:
    value = os.path.expandvars(raw)
    if value == "~" or value.startswith("~/"):
        value = str(home) + value[1:]
    return Path(value)


def _default_source(target: str) -> str:
    name = Path(target.rstrip("/")).name
    return name[1:] if name.startswith(".") else name


def _condition_holds(condition: str, base_dir: Path) -> bool:
    return run_cmd(["sh", "-c", condition], check=False, cwd=str(base_dir)).ok


def parse_link_directives(
    directives: Any,
    *,
    base_dir: Path,
    home: Path,
    evaluate_conditions: bool = True,
) -> List[LinkSpec]:
    if isinstance(directives, dict):
        directives = [directives]
    if not isinstance(directives, list):
        raise ValueError("Dotbot config must be a list of directives")

    defaults: Dict[str, Any] = {}
    specs: List[LinkSpec] = []

    for directive in directives:
        if not isinstance(directive, dict):
            continue
        if "defaults" in directive:
            defaults = dict((directive.get("defaults") or {}).get("link") or {})
        links = directive.get("link")
        if not links:
            continue
        if not isinstance(links, dict):
            raise ValueError("link directive must be a mapping of target -> source")

        for target, value in links.items():
            opts: Dict[str, Any] = dict(defaults)
            if isinstance(value, dict):
                opts.update(value)
                source = opts.get("path")
            else:
                source = value

            condition = opts.get("if")
            if condition and evaluate_conditions and not _condition_holds(str(condition), base_dir):
                logger.info("Skipping %s (condition not met: %s)", target, condition)
                continue

            src = Path(os.path.expandvars(str(source or _default_source(str(target))))).expanduser()
            specs.append(
                LinkSpec(
                    target=_expand_target(str(target), home),
                    source=src if src.is_absolute() else base_dir / src,
                    relink=bool(opts.get("relink", False)),
                    force=bool(opts.get("force", False)),
                    ignore_missing=bool(opts.get("ignore-missing", False)),
                )
            )
    return specs


def load_link_config(path: Path, *, base_dir: Optional[Path] = None, home: Optional[Path] = None) -> List[LinkSpec]:
    """Parse a Dotbot YAML file into link specs, in file order."""

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or []
    except yaml.YAMLError as e:
        raise BootstrapError(f"Malformed link config {path}: {e}") from e
    return parse_link_directives(
        data,
        base_dir=base_dir or path.parent,
        home=home or Path.home(),
    )


def _points_to(target: Path, source: Path) -> bool:
    dest = os.readlink(target)
    if not os.path.isabs(dest):
        dest = os.path.join(os.path.dirname(target), dest)
    return os.path.normpath(dest) == os.path.normpath(str(source))


def link_status(spec: LinkSpec) -> LinkStatus:
    if spec.target.is_symlink() and _points_to(spec.target, spec.source):
        return LinkStatus.LINKED
    if not spec.source.exists() and not spec.ignore_missing:
        return LinkStatus.SOURCE_MISSING
    if spec.target.is_symlink():
        return LinkStatus.WRONG_TARGET
    if spec.target.exists():
        return LinkStatus.CONFLICT
    return LinkStatus.MISSING


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def apply_link(spec: LinkSpec, *, dry_run: bool = False) -> LinkResult:
    before = link_status(spec)

    if before is LinkStatus.LINKED:
        logger.debug("Already linked %s -> %s", spec.target, spec.source)
        return LinkResult(spec, before, "unchanged")
    if before is LinkStatus.SOURCE_MISSING:
        return LinkResult(spec, before, "skipped", f"source missing: {spec.source}")
    if before is LinkStatus.WRONG_TARGET and not spec.relink:
        return LinkResult(spec, before, "skipped", f"{spec.target} links elsewhere (set relink)")
    if before is LinkStatus.CONFLICT and not spec.force:
        return LinkResult(spec, before, "skipped", f"{spec.target} already exists (set force)")

    action = {
        LinkStatus.MISSING: "created",
        LinkStatus.WRONG_TARGET: "relinked",
        LinkStatus.CONFLICT: "replaced",
    }[before]

    if dry_run:
        logger.info("Would link %s -> %s (%s)", spec.target, spec.source, action)
        return LinkResult(spec, before, action)

    try:
        spec.target.parent.mkdir(parents=True, exist_ok=True)
        if before is not LinkStatus.MISSING:
            _remove(spec.target)
        spec.target.symlink_to(spec.source)
    except OSError as e:
        return LinkResult(spec, before, "failed", str(e))

    logger.info("Linked %s -> %s (%s)", spec.target, spec.source, action)
    return LinkResult(spec, before, action)


def apply_links(specs: List[LinkSpec], *, dry_run: bool = False) -> List[LinkResult]:
    results = [apply_link(s, dry_run=dry_run) for s in specs]
    for r in results:
        if not r.ok:
            logger.warning("Link %s %s: %s", r.spec.target, r.action, r.message)
    return results


def prepare_dotbot_dependencies(paths: Paths, *, dry_run: bool = False) -> None:
    """gitconfig.local from its template, plus directories zinit expects."""

    if paths.git_template.exists() and not paths.git_local.exists():
        logger.info("Creating %s from template", paths.git_local)
        if not dry_run:
            shutil.copyfile(paths.git_template, paths.git_local)

    if dry_run:
        return
    for d in (paths.zinit_dir, paths.config_home, paths.cache_home, paths.state_home):
        d.mkdir(parents=True, exist_ok=True)


def run_dotbot(paths: Paths, *, verbose: bool = False, dry_run: bool = False) -> LinkRun:
    """Link the dotfiles with Dotbot, or with the built-in reconciler."""

    prepare_dotbot_dependencies(paths, dry_run=dry_run)

    installer = paths.dotbot_install
    if installer.is_file() and os.access(installer, os.X_OK):
        argv = [str(installer)] + (["-v"] if verbose else [])
        r = run_cmd(
            argv,
            check=False,
            cwd=str(paths.dotfiles),
            env={**paths.xdg_env(), **SKIP_TOUCHID_ENV},
            dry_run=dry_run,
        )
        return LinkRun(mode="dotbot", ok=r.ok, results=[])

    config = paths.dotbot_config
    if config.is_file():
        logger.info("Dotbot installer not found; applying %s directly", config)
        specs = load_link_config(config, base_dir=paths.dotfiles, home=paths.home)
        results = apply_links(specs, dry_run=dry_run)
        return LinkRun(mode="builtin", ok=all(r.ok for r in results), results=results)

    raise BootstrapError(f"Dotbot installer not found at {installer} and no {config.name} to apply")
