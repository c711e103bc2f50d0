from __future__ import annotations

import logging
import os
from typing import Any, Dict

from ..lib.command import run_cmd
from ..lib.prompts import DEFAULT_YES
from ._base import BaseStep

logger = logging.getLogger(__name__)


class XdgCleanupStep(BaseStep):
    step_id = "85_xdg_cleanup"
    title = "Cleaning up legacy configuration via XDG script"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        if not self.toggle(state, "run_xdg_cleanup", "Run XDG cleanup to remove legacy config files?", DEFAULT_YES):
            logger.info("Skipping XDG cleanup")
            return state

        script = self.ctx.paths.xdg_cleanup_script
        if not (script.is_file() and os.access(script, os.X_OK)):
            self.warn(state, f"XDG cleanup script not found at {script}")
            return state

        argv = [str(script)]
        if self.ctx.unattended:
            argv.append("--unattended")
        argv.append("--from-bootstrap")

        r = run_cmd(
            argv,
            check=False,
            interactive=not self.ctx.unattended,
            env=self.ctx.command_env(),
            dry_run=self.ctx.dry_run,
        )
        if r.ok:
            logger.info("XDG cleanup complete")
        else:
            self.warn(state, "XDG cleanup script reported issues")
        return state
