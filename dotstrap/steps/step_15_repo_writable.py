from __future__ import annotations

import logging
import os
from typing import Any, Dict

from ..lib.command import CommandError
from ..lib.sudo import SudoUnavailable
from ._base import BaseStep

logger = logging.getLogger(__name__)


class RepoWritableStep(BaseStep):
    step_id = "15_repo_writable"
    title = "Ensuring dotfiles repository is writable"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        repo = self.ctx.paths.dotfiles
        if not repo.exists():
            self.warn(state, f"Dotfiles repository not found at {repo}")
            return state
        if os.access(repo, os.W_OK):
            logger.info("Repository %s is writable", repo)
            return state

        logger.info("Dotfiles repo not writable by the current user; attempting chown")
        owner = f"{os.getuid()}:{os.getgid()}"
        try:
            self.ctx.sudo.run(["chown", "-R", owner, str(repo)])
        except (CommandError, SudoUnavailable) as e:
            self.warn(state, f"Could not chown {repo}: {e}")
        else:
            logger.info("Repository ownership fixed")
        return state
