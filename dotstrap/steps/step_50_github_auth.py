from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.command import command_exists, run_cmd
from ..lib.prompts import DEFAULT_YES
from ._base import BaseStep

logger = logging.getLogger(__name__)


class GitHubAuthStep(BaseStep):
    step_id = "50_github_auth"
    title = "Handling GitHub CLI authentication"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        if not self.toggle(state, "github_auth", "Login with GitHub CLI now?", DEFAULT_YES):
            logger.info("Skipping GitHub CLI authentication")
            return state

        if not command_exists("gh"):
            self.warn(state, "GitHub CLI not installed; skipping GitHub login")
            return state

        if run_cmd(["gh", "auth", "status", "--hostname", "github.com"], check=False).ok:
            logger.info("GitHub CLI already authenticated")
            return state

        r = run_cmd(
            ["gh", "auth", "login", "--hostname", "github.com", "--git-protocol", "ssh"],
            check=False,
            interactive=True,
            dry_run=self.ctx.dry_run,
        )
        if r.ok:
            logger.info("GitHub CLI authentication completed")
        else:
            self.warn(state, "GitHub CLI authentication failed")
        return state
