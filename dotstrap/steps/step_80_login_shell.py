from __future__ import annotations

import getpass
import logging
import shutil
from typing import Any, Dict

from ..lib.command import run_cmd
from ..lib.prompts import DEFAULT_YES
from ._base import BaseStep

logger = logging.getLogger(__name__)


class LoginShellStep(BaseStep):
    step_id = "80_login_shell"
    title = "Evaluating default shell configuration"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        current = self.ctx.environ.get("SHELL") or "/bin/bash"
        logger.info("Checking default shell (current: %s)", current)

        if current.endswith("/zsh"):
            logger.info("Shell is already zsh, no change needed")
            return state

        if not self.toggle(state, "change_shell", "Change your default shell to zsh?", DEFAULT_YES):
            return state

        zsh = shutil.which("zsh")
        if not zsh:
            self.warn(state, "zsh not installed; cannot change default shell")
            return state

        user = self.ctx.environ.get("USER") or getpass.getuser()
        r = run_cmd(["chsh", "-s", zsh, user], check=False, interactive=True, dry_run=self.ctx.dry_run)
        if r.ok:
            logger.info("Default shell changed to %s", zsh)
        else:
            self.warn(state, f"Could not change default shell (exit code: {r.returncode}); run 'chsh -s {zsh}' manually")
        return state
