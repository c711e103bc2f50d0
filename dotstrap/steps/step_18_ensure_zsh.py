from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.command import CommandError, command_exists, retry_call
from ..lib.sudo import SudoUnavailable
from ._base import BaseStep

logger = logging.getLogger(__name__)


class EnsureZshStep(BaseStep):
    step_id = "18_ensure_zsh"
    title = "Ensuring zsh is installed"

    retry_wait_s = 2.0

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        if command_exists("zsh"):
            logger.info("zsh already installed")
            return state

        manager = (state.get("execution") or {}).get("decisions", {}).get("package_manager", "unknown")
        if manager == "unknown":
            self.warn(state, "Automatic zsh installation is unsupported on this distribution; install zsh manually")
            return state

        installer = self.ctx.installer(manager)
        try:
            retry_call(lambda: installer.install("zsh"), wait_s=self.retry_wait_s)
        except (CommandError, SudoUnavailable) as e:
            self.warn(state, f"zsh installation failed: {e}")
            return state

        logger.info("zsh installed")
        return state
