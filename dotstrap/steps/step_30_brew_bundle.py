from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict

from ..lib.pkg import brew_bundle, filter_brewfile, find_brew
from ..lib.prompts import DEFAULT_NO, DEFAULT_YES
from ._base import BaseStep

logger = logging.getLogger(__name__)

# option key -> (question, default answer)
BREWFILE_QUESTIONS = [
    ("install_casks", "Install Homebrew cask apps?", DEFAULT_YES),
    ("install_mas_apps", "Install Mac App Store apps?", DEFAULT_NO),
    ("install_services", "Install Tailscale and dnsmasq?", DEFAULT_YES),
    ("install_office_tools", "Install Microsoft Office tools (Excel, PowerPoint, Word, Teams)?", DEFAULT_NO),
    ("install_slack", "Install Slack?", DEFAULT_NO),
    ("install_parallels", "Install Parallels virtualization software?", DEFAULT_NO),
]


class BrewBundleStep(BaseStep):
    step_id = "30_brew_bundle"
    title = "Applying Homebrew bundle"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        brewfile = self.ctx.paths.brewfile
        if not brewfile.is_file():
            self.warn(state, f"No Brewfile found at {brewfile}; skipping brew bundle")
            return state

        brew = find_brew(str((state.get("host") or {}).get("arch") or ""))
        if not brew:
            self.warn(state, "Homebrew not available; skipping brew bundle")
            return state

        choices = {key: self.toggle(state, key, question, default) for key, question, default in BREWFILE_QUESTIONS}
        filtered = filter_brewfile(brewfile.read_text(encoding="utf-8"), choices)

        fd, tmp = tempfile.mkstemp(prefix="Brewfile.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(filtered)
            logger.info("Running brew bundle")
            if brew_bundle(brew, Path(tmp), dry_run=self.ctx.dry_run):
                logger.info("Homebrew packages installed successfully")
            else:
                self.warn(state, "Some Homebrew packages failed to install")
        finally:
            os.unlink(tmp)
        return state
