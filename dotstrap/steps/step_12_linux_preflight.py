from __future__ import annotations

import logging
from typing import Any, Dict

from ..errors import BootstrapError
from ..lib.command import command_exists
from ..lib.pkg import detect_package_manager
from ..lib.sudo import SudoUnavailable
from ..state_store import record_decision
from ._base import BaseStep

logger = logging.getLogger(__name__)

REQUIRED_COMMANDS = {
    "apt": ["sudo", "apt-get", "dpkg"],
    "pacman": ["sudo", "pacman"],
}


class LinuxPreflightStep(BaseStep):
    step_id = "12_linux_preflight"
    title = "Detecting package manager"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        host = state.get("host") or {}
        if not host.get("ubuntu_like", False):
            distro = (host.get("distro") or {}).get("id") or "unknown"
            logger.warning("Non-Ubuntu distribution detected (ID=%s). Proceeding anyway.", distro)

        manager = detect_package_manager()
        record_decision(state, "package_manager", manager)
        logger.info("Detected %s", manager)

        if manager == "unknown":
            self.warn(state, "Could not detect a supported package manager")
            return state

        missing = [c for c in REQUIRED_COMMANDS[manager] if not command_exists(c)]
        if missing:
            raise BootstrapError(f"Missing required command(s): {' '.join(missing)}")

        try:
            self.ctx.sudo.ensure()
        except SudoUnavailable as e:
            raise BootstrapError(str(e)) from e
        return state
