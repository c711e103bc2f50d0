from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def has_line(path: Path, line: str) -> bool:
    if not path.exists():
        return False
    wanted = line.strip()
    return any(l.strip() == wanted for l in path.read_text(encoding="utf-8").splitlines())


def ensure_line(path: Path, line: str, *, dry_run: bool = False) -> bool:
    """Append ``line`` once. Returns True when the file changed."""

    if has_line(path, line):
        logger.debug("%s already contains %r", path, line)
        return False

    if dry_run:
        logger.info("Would append to %s: %s", path, line)
        return True

    path.parent.mkdir(parents=True, exist_ok=True)
    existing = path.read_text(encoding="utf-8") if path.exists() else ""
    prefix = "" if not existing or existing.endswith("\n") else "\n"
    with path.open("a", encoding="utf-8") as f:
        f.write(f"{prefix}{line}\n")
    logger.info("Appended to %s: %s", path, line)
    return True


def path_export_line(entry: str) -> str:
    return f'export PATH="{entry}:$PATH"'


def ensure_path_export(profile: Path, entry: str, *, dry_run: bool = False) -> bool:
    return ensure_line(profile, path_export_line(entry), dry_run=dry_run)
