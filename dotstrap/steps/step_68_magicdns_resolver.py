from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Dict

from ..lib.command import CommandError, run_cmd
from ..lib.pkg import brew_has, find_brew
from ..lib.prompts import DEFAULT_YES
from ..lib.sudo import SudoUnavailable
from ..state_store import record_decision
from ._base import BaseStep
from .step_65_macos_dns import parse_network_services

logger = logging.getLogger(__name__)

MAGICDNS_NAMESERVER = "100.100.100.100"

_DOMAIN_RE = re.compile(r"^[A-Za-z0-9-]+(\.[A-Za-z0-9-]+)+$")


def resolver_entry() -> str:
    return f"nameserver {MAGICDNS_NAMESERVER}\n"


class MagicDnsResolverStep(BaseStep):
    """Route the tailnet domain to Tailscale's MagicDNS resolver.

    Writes ``/etc/resolver/<tailnet>`` and adds the tailnet as a search
    domain on every non-VPN network service.
    """

    step_id = "68_magicdns_resolver"
    title = "Configuring MagicDNS resolver for Tailscale"

    resolver_dir = Path("/etc/resolver")

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        if not self.toggle(state, "install_services", "Install Tailscale and dnsmasq?", DEFAULT_YES):
            logger.info("Services not installed, skipping MagicDNS resolver")
            return state

        domain = (self.ctx.tailnet_domain or "").strip()
        if not domain:
            logger.info("No tailnet configured (tailscale.tailnet / TAILSCALE_TAILNET), skipping MagicDNS resolver")
            return state
        if not _DOMAIN_RE.match(domain):
            self.warn(state, f"Ignoring invalid tailnet domain: {domain}")
            return state

        brew = find_brew(str((state.get("host") or {}).get("arch") or ""))
        if not brew or not brew_has(brew, "tailscale"):
            logger.info("Tailscale not installed, skipping MagicDNS resolver")
            return state

        try:
            self.ctx.sudo.ensure()
            self._write_resolver(domain)
        except (CommandError, SudoUnavailable) as e:
            self.warn(state, f"Failed to write resolver for {domain}: {e}")
            return state

        listing = run_cmd(["networksetup", "-listallnetworkservices"], check=False)
        for service in parse_network_services(listing.stdout):
            current = run_cmd(["networksetup", "-getsearchdomains", service], check=False).stdout.split()
            if domain in current:
                logger.debug("Search domain already set on %s", service)
                continue
            if self.ctx.sudo.run(["networksetup", "-setsearchdomains", service, domain], check=False).ok:
                logger.info("Search domain %s set on %s", domain, service)
            else:
                self.warn(state, f"Failed to set search domain for {service}")

        record_decision(state, "magicdns_domain", domain)
        return state

    def _write_resolver(self, domain: str) -> None:
        target = self.resolver_dir / domain
        if target.is_file() and target.read_text(encoding="utf-8") == resolver_entry():
            logger.info("Resolver for %s already in place", domain)
            return
        sudo = self.ctx.sudo
        sudo.run(["mkdir", "-p", str(self.resolver_dir)])
        sudo.run(["tee", str(target)], input_text=resolver_entry())
        logger.info("Wrote %s", target)
