from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

from ..lib.command import CommandError, run_cmd
from ..lib.pkg import brew_has, find_brew
from ..lib.prompts import DEFAULT_YES
from ..lib.sudo import SudoUnavailable
from ._base import BaseStep

logger = logging.getLogger(__name__)

SERVICES = ("tailscale", "dnsmasq")
LAUNCH_DAEMONS = Path("/Library/LaunchDaemons")


def launchd_label(service: str) -> str:
    return f"homebrew.mxcl.{service}"


class MacServicesStep(BaseStep):
    step_id = "60_macos_services"
    title = "Starting macOS background services"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        if not self.toggle(state, "install_services", "Install Tailscale and dnsmasq?", DEFAULT_YES):
            logger.info("Skipping services (user disabled)")
            return state

        brew = find_brew(str((state.get("host") or {}).get("arch") or ""))
        if not brew:
            logger.info("Brew not available, skipping service startup")
            return state

        try:
            self.ctx.sudo.ensure()
        except SudoUnavailable:
            self.warn(state, "Could not acquire sudo credentials, skipping service startup")
            return state

        for service in SERVICES:
            if not brew_has(brew, service):
                logger.info("%s not installed, skipping", service)
                continue
            try:
                self._start(state, service)
            except (CommandError, SudoUnavailable) as e:
                self.warn(state, f"Failed to start {service}: {e}")
        return state

    def _start(self, state: Dict[str, Any], service: str) -> None:
        label = launchd_label(service)
        plist = LAUNCH_DAEMONS / f"{label}.plist"
        sudo = self.ctx.sudo

        if not plist.exists():
            self.warn(state, f"LaunchDaemon not found at {plist}; try 'brew services start {service}' manually")
            return

        if run_cmd(["launchctl", "print", f"system/{label}"], check=False).ok:
            logger.info("%s already running; refreshing", service)
            sudo.run(["launchctl", "bootout", "system", str(plist)], check=False)

        if not sudo.run(["launchctl", "bootstrap", "system", str(plist)], check=False).ok:
            self.warn(state, f"Failed to bootstrap {service}; try 'sudo launchctl bootstrap system \"{plist}\"' manually")
            return

        sudo.run(["launchctl", "enable", f"system/{label}"], check=False)
        sudo.run(["launchctl", "kickstart", "-k", f"system/{label}"], check=False)
        logger.info("%s service started", service)
