from __future__ import annotations

import logging
import time
from typing import Any, Dict

from ..errors import BootstrapError
from ..lib.command import run_cmd
from ._base import BaseStep

logger = logging.getLogger(__name__)

CLT_POLL_SECONDS = 10.0
CLT_TIMEOUT_SECONDS = 3600.0


def clt_installed() -> bool:
    return run_cmd(["xcode-select", "-p"], check=False).ok


class XcodeCLTStep(BaseStep):
    step_id = "20_xcode_clt"
    title = "Checking for Xcode Command Line Tools"

    poll_seconds = CLT_POLL_SECONDS
    timeout_seconds = CLT_TIMEOUT_SECONDS

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        if clt_installed():
            logger.info("Xcode Command Line Tools already installed")
            return state

        run_cmd(["xcode-select", "--install"], check=False, dry_run=self.ctx.dry_run)
        if self.ctx.dry_run:
            return state

        # The installer is a GUI dialog; all we can do is wait for it.
        logger.info("Waiting for Command Line Tools to be installed")
        deadline = time.monotonic() + self.timeout_seconds
        while not clt_installed():
            if time.monotonic() >= deadline:
                raise BootstrapError("Timed out waiting for Xcode Command Line Tools")
            time.sleep(self.poll_seconds)

        logger.info("Xcode Command Line Tools installed")
        return state
