from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.command import CommandError
from ..lib.pkg import system_update
from ..lib.sudo import SudoUnavailable
from ._base import BaseStep

logger = logging.getLogger(__name__)


class SystemUpdateStep(BaseStep):
    step_id = "25_system_update"
    title = "Updating base system packages"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        manager = (state.get("execution") or {}).get("decisions", {}).get("package_manager", "unknown")
        if manager == "unknown":
            logger.warning("Unknown package manager; skipping update")
            return state

        try:
            system_update(manager, self.ctx.sudo)
        except (CommandError, SudoUnavailable) as e:
            self.warn(state, f"System update failed after retries: {e}")
            return state

        logger.info("System packages updated")
        return state
