from __future__ import annotations

import logging
from typing import Any, Dict, List

from ..lib.command import run_cmd
from ..lib.pkg import brew_has, find_brew
from ..lib.prompts import DEFAULT_NO, DEFAULT_YES
from ..lib.sudo import SudoUnavailable
from ._base import BaseStep

logger = logging.getLogger(__name__)

LOCAL_RESOLVER = "127.0.0.1"


def parse_network_services(output: str) -> List[str]:
    """Services from ``networksetup -listallnetworkservices``.

    The first line is a banner; disabled services carry a leading ``*``.
    VPN and Tailscale interfaces keep their own resolvers.
    """

    services = []
    for line in output.splitlines()[1:]:
        name = line.lstrip("*").strip()
        if not name or "VPN" in name or name.startswith("Tailscale"):
            continue
        services.append(name)
    return services


class MacDnsStep(BaseStep):
    step_id = "65_macos_dns"
    title = "Configuring DNS for dnsmasq"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        if not self.toggle(state, "install_services", "Install Tailscale and dnsmasq?", DEFAULT_YES):
            logger.info("Services not installed, skipping DNS configuration")
            return state

        brew = find_brew(str((state.get("host") or {}).get("arch") or ""))
        if not brew or not brew_has(brew, "dnsmasq"):
            logger.info("dnsmasq not installed, skipping DNS configuration")
            return state

        if not self.toggle(state, "configure_dns", "Configure system DNS to 127.0.0.1 for dnsmasq?", DEFAULT_NO):
            logger.info("Skipping DNS configuration")
            return state

        try:
            self.ctx.sudo.ensure()
        except SudoUnavailable:
            self.warn(state, "Could not acquire sudo credentials, skipping DNS configuration")
            return state

        listing = run_cmd(["networksetup", "-listallnetworkservices"], check=False)
        for service in parse_network_services(listing.stdout):
            if self.ctx.sudo.run(["networksetup", "-setdnsservers", service, LOCAL_RESOLVER], check=False).ok:
                logger.info("DNS configured for %s", service)
            else:
                self.warn(state, f"Failed DNS setup on {service}")
        return state
