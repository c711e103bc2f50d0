from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.pkg import LINUX_MINIMAL_PACKAGES, PACMAN_BASE_PACKAGES, ensure_packages, read_package_list
from ._base import BaseStep

logger = logging.getLogger(__name__)


class BasePackagesStep(BaseStep):
    step_id = "30_base_packages"
    title = "Installing essential packages"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        manager = (state.get("execution") or {}).get("decisions", {}).get("package_manager", "unknown")
        if manager == "unknown":
            logger.warning("Unknown package manager; skipping package installation")
            return state

        if manager == "pacman":
            packages = list(PACMAN_BASE_PACKAGES)
        else:
            packages = list(LINUX_MINIMAL_PACKAGES)
            package_list = self.ctx.paths.package_list
            if package_list.is_file():
                packages += read_package_list(package_list)
            else:
                self.warn(state, f"Package list not found at {package_list}")

        report = ensure_packages(self.ctx.installer(manager), packages)
        state.setdefault("execution", {}).setdefault("packages", {})[manager] = {
            "installed": report.installed,
            "present": len(report.present),
            "failed": report.failed,
        }
        if report.index_error:
            self.warn(state, f"Package index refresh failed: {report.index_error}")
        if not report.ok:
            self.warn(state, f"Some {manager} packages failed: {', '.join(report.failed)}")
        else:
            logger.info("%d installed, %d already present", len(report.installed), len(report.present))
        return state
