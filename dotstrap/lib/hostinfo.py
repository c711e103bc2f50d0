from __future__ import annotations

import logging
import os
import platform
from pathlib import Path
from typing import Any, Dict, Optional

from .command import run_cmd

logger = logging.getLogger(__name__)

OS_RELEASE = Path("/etc/os-release")


def normalize_arch(machine: str) -> str:
    m = machine.lower()
    return {
        "x86_64": "amd64",
        "amd64": "amd64",
        "aarch64": "arm64",
        "arm64": "arm64",
    }.get(m, m)


def detect_os(system: Optional[str] = None) -> str:
    """Return ``darwin``, ``linux`` or ``unsupported``."""

    s = (system if system is not None else platform.system()).lower()
    if s in {"darwin", "linux"}:
        return s
    return "unsupported"


def is_root() -> bool:
    geteuid = getattr(os, "geteuid", None)
    return bool(geteuid and geteuid() == 0)


def read_os_release(path: Path = OS_RELEASE) -> Dict[str, str]:
    """Parse /etc/os-release (KEY=value, optionally quoted)."""

    out: Dict[str, str] = {}
    try:
        text = path.read_text(encoding="utf-8", errors="ignore")
    except OSError:
        return out

    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
            value = value[1:-1]
        out[key.strip()] = value
    return out


def is_ubuntu_like(release: Dict[str, str]) -> bool:
    return release.get("ID") == "ubuntu" or "ubuntu" in release.get("ID_LIKE", "").split()


def _macos_version(*, dry_run: bool) -> Optional[str]:
    r = run_cmd(["sw_vers", "-productVersion"], check=False, dry_run=dry_run)
    return r.stdout.strip() or None


def detect_host(*, dry_run: bool = False) -> Dict[str, Any]:
    os_name = detect_os()
    host: Dict[str, Any] = {
        "os": os_name,
        "arch": normalize_arch(platform.machine()),
    }
    if os_name == "darwin":
        host["macos_version"] = _macos_version(dry_run=dry_run)
    elif os_name == "linux":
        release = read_os_release()
        host["distro"] = {
            "id": release.get("ID"),
            "id_like": release.get("ID_LIKE"),
            "codename": release.get("UBUNTU_CODENAME") or release.get("VERSION_CODENAME"),
        }
        host["ubuntu_like"] = is_ubuntu_like(release)

    logger.info("Host detected: %s", host)
    return host
