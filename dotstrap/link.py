from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import List, Optional

from .errors import BootstrapError
from .lib.env import Paths
from .lib.links import LinkResult, LinkSpec, LinkStatus, apply_links, link_status, load_link_config
from .logging_utils import configure_logging

logger = logging.getLogger(__name__)


def check_links(specs: List[LinkSpec]) -> List[LinkSpec]:
    """Return the specs whose target is not (yet) the expected symlink."""

    bad = []
    for spec in specs:
        status = link_status(spec)
        if status is LinkStatus.LINKED:
            logger.info("ok       %s -> %s", spec.target, spec.source)
        else:
            logger.warning("%-8s %s -> %s", status.value, spec.target, spec.source)
            bad.append(spec)
    return bad


def summarize(results: List[LinkResult]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for r in results:
        counts[r.action] = counts.get(r.action, 0) + 1
    return counts


def run_link(
    *,
    config_path: Optional[str],
    base_dir: Optional[str],
    check: bool,
    dry_run: bool,
) -> int:
    paths = Paths.from_env(os.environ, dotfiles_dir=base_dir)
    config = Path(config_path).expanduser() if config_path else paths.dotbot_config
    if not config.is_file():
        raise BootstrapError(f"Link config not found: {config}")

    specs = load_link_config(
        config,
        base_dir=Path(base_dir).expanduser() if base_dir else config.parent,
        home=paths.home,
    )
    logger.info("Loaded %d link(s) from %s", len(specs), config)

    if check:
        bad = check_links(specs)
        return 1 if bad else 0

    results = apply_links(specs, dry_run=dry_run)
    logger.info("Link summary: %s", summarize(results))
    return 0 if all(r.ok for r in results) else 1


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(
        prog="dotstrap-link",
        description="Apply (or check) the link directives of a Dotbot install.conf.yaml.",
    )
    p.add_argument("--config", default=None, help="Dotbot config (default: <dotfiles>/install.conf.yaml)")
    p.add_argument("--base-dir", default=None, help="Directory link sources are relative to")
    p.add_argument("--check", action="store_true", help="Only report; exit 1 if any link is not in place")
    p.add_argument("--dry-run", action="store_true")
    p.add_argument("-d", "--debug", action="store_true")

    args = p.parse_args(argv)
    configure_logging(console_level=logging.DEBUG if args.debug else logging.INFO)

    try:
        return run_link(
            config_path=args.config,
            base_dir=args.base_dir,
            check=bool(args.check),
            dry_run=bool(args.dry_run),
        )
    except (BootstrapError, ValueError) as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
