from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.apps import install_apps, parse_apps_list
from ._base import BaseStep

logger = logging.getLogger(__name__)


class RequestedAppsStep(BaseStep):
    step_id = "35_requested_apps"
    title = "Running additional Linux installers"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        manager = (state.get("execution") or {}).get("decisions", {}).get("package_manager", "unknown")
        if manager != "apt":
            logger.info("Apps list is apt-only; nothing to do for %s", manager)
            return state

        apps_list = self.ctx.paths.apps_list
        if not apps_list.is_file():
            self.warn(state, f"Apps list file not found at {apps_list}")
            return state

        entries = parse_apps_list(apps_list.read_text(encoding="utf-8"))
        report = install_apps(
            entries,
            installer=self.ctx.installer("apt"),
            sudo=self.ctx.sudo,
            warn=lambda message: self.warn(state, message),
        )
        if report.index_error:
            self.warn(state, f"Package index refresh failed: {report.index_error}")
        if not report.ok:
            self.warn(state, f"Some requested apps failed: {', '.join(report.failed)}")
        return state
