from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ..lib.command import command_exists, run_cmd
from ..lib.prompts import NoAnswer, ask_text, validate_email
from ._base import BaseStep

logger = logging.getLogger(__name__)


def _git_global(key: str) -> Optional[str]:
    r = run_cmd(["git", "config", "--global", key], check=False)
    return r.stdout.strip() or None


class GitIdentityStep(BaseStep):
    step_id = "45_git_identity"
    title = "Configuring global Git settings"

    def _wanted(self, key: str, preset: Optional[str]) -> Optional[str]:
        """Value to write, or None when git already has one and nothing overrides it."""
        current = _git_global(key)
        if preset:
            return None if preset == current else preset
        if current:
            logger.info("git %s already set to %s", key, current)
            return None
        if key == "user.email":
            return ask_text(
                "Enter global Git user.email: ",
                what="Email",
                validator=validate_email,
                invalid_message="Invalid email format. Please enter a valid email address (e.g., user@example.com)",
                input_fn=self.ctx.input_fn,
            )
        return ask_text("Enter global Git user.name: ", what="Name", input_fn=self.ctx.input_fn)

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        if not command_exists("git"):
            self.warn(state, "git not installed; skipping Git user configuration")
            return state

        email = self.ctx.git_user_email
        if email and not validate_email(email):
            self.warn(state, f"Ignoring invalid GIT_USER_EMAIL: {email}")
            email = None

        if self.ctx.unattended and not (self.ctx.git_user_name and email):
            logger.info(
                "Skipping Git user configuration (unattended mode). Configure later with: "
                "git config --global user.name 'Your Name'; git config --global user.email 'you@example.com'"
            )
            return state

        for key, preset in (("user.name", self.ctx.git_user_name), ("user.email", email)):
            try:
                value = self._wanted(key, preset)
            except NoAnswer as e:
                self.warn(state, f"Skipping Git user configuration: {e}")
                return state
            if value is None:
                continue
            r = run_cmd(["git", "config", "--global", key, value], check=False, dry_run=self.ctx.dry_run)
            if r.ok:
                logger.info("Git %s set to: %s", key, value)
            else:
                self.warn(state, f"Failed to set git {key}")
        return state
