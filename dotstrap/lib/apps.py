from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .command import CommandError
from .pkg import Installer, PackageReport, ensure_packages
from .sudo import SudoSession, SudoUnavailable

logger = logging.getLogger(__name__)

LOCAL_BIN = Path("/usr/local/bin")


@dataclass(frozen=True)
class AppEntry:
    tool: str
    method: str
    payload: str


def parse_apps_list(text: str) -> List[AppEntry]:
    """Parse ``tool|method|payload  # comment`` lines."""

    entries: List[AppEntry] = []
    for lineno, raw in enumerate(text.splitlines(), start=1):
        if not raw.strip() or raw.strip().startswith("#"):
            continue
        parts = raw.split("|", 2)
        if len(parts) < 2:
            logger.warning("apps list line %d is not tool|method|payload: %r", lineno, raw)
            continue
        tool = "".join(parts[0].split())
        method = "".join(parts[1].split())
        payload = parts[2].split("#", 1)[0].strip() if len(parts) > 2 else ""
        if tool:
            entries.append(AppEntry(tool=tool, method=method, payload=payload))
    return entries


def _alias(sudo: SudoSession, source_cmd: str, alias: str) -> Optional[bool]:
    """Symlink /usr/local/bin/<alias> to a Debian-renamed binary.

    None when there is nothing to do.
    """

    source = shutil.which(source_cmd)
    if not source or shutil.which(alias):
        return None
    try:
        sudo.run(["ln", "-sf", source, str(LOCAL_BIN / alias)])
    except (CommandError, SudoUnavailable) as e:
        logger.warning("Failed to create %s symlink in %s: %s", alias, LOCAL_BIN, e)
        return False
    logger.info("Created %s shortcut", alias)
    return True


def ensure_fd_alias(sudo: SudoSession) -> Optional[bool]:
    return _alias(sudo, "fdfind", "fd")


def ensure_bat_alias(sudo: SudoSession) -> Optional[bool]:
    return _alias(sudo, "batcat", "bat")


MANUAL_HANDLERS: Dict[str, Callable[[SudoSession], Optional[bool]]] = {
    "ensure_fd_alias": ensure_fd_alias,
    "ensure_bat_alias": ensure_bat_alias,
}


def install_apps(
    entries: List[AppEntry],
    *,
    installer: Installer,
    sudo: SudoSession,
    warn: Callable[[str], None],
) -> PackageReport:
    apt_packages: List[str] = []
    manual: List[AppEntry] = []
    for entry in entries:
        if entry.method == "apt":
            apt_packages.extend(entry.payload.split())
        elif entry.method == "provided":
            logger.info("%s provided by %s", entry.tool, entry.payload or "another installer")
        elif entry.method == "manual":
            manual.append(entry)
        else:
            warn(f"Unknown install method '{entry.method}' for {entry.tool}")

    report = ensure_packages(installer, apt_packages)

    # Manual handlers alias binaries the apt batch provides.
    done = set()
    for entry in manual:
        handler = MANUAL_HANDLERS.get(entry.payload)
        if handler is None:
            warn(f"Installer {entry.payload or '(none)'} for {entry.tool} is not available")
            continue
        done.add(entry.payload)
        if handler(sudo) is False:
            warn(f"Manual installer {entry.payload} for {entry.tool} failed")

    for name in ("ensure_fd_alias", "ensure_bat_alias"):
        if name not in done and MANUAL_HANDLERS[name](sudo) is False:
            warn(f"Shortcut helper {name} failed")
    return report
