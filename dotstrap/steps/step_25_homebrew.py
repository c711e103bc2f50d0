from __future__ import annotations

import logging
import os
from typing import Any, Dict

from ..errors import BootstrapError
from ..lib.command import run_cmd
from ..lib.pkg import BREW_INSTALL_URL, brew_prefix, brew_shellenv_line, find_brew
from ..lib.profile import ensure_line
from ..state_store import record_decision
from ._base import BaseStep

logger = logging.getLogger(__name__)


class HomebrewStep(BaseStep):
    step_id = "25_homebrew"
    title = "Installing Homebrew"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        arch = str((state.get("host") or {}).get("arch") or "")
        brew = find_brew(arch)

        if brew:
            logger.info("Homebrew already installed (%s)", brew)
        else:
            logger.info("Installing Homebrew")
            env = {"NONINTERACTIVE": "1"} if self.ctx.unattended else None
            r = run_cmd(
                ["/bin/bash", "-c", f'/bin/bash -c "$(curl -fsSL {BREW_INSTALL_URL})"'],
                check=False,
                env=env,
                interactive=True,
                dry_run=self.ctx.dry_run,
            )
            if not r.ok:
                raise BootstrapError("Homebrew installation failed")
            brew = str(brew_prefix(arch) / "bin" / "brew")

        # Runtime PATH for the rest of this run; the profile line makes it permanent.
        bin_dir = str(brew_prefix(arch) / "bin")
        if bin_dir not in os.environ.get("PATH", "").split(os.pathsep):
            os.environ["PATH"] = os.pathsep.join([bin_dir, os.environ.get("PATH", "")])

        ensure_line(self.ctx.paths.profile, brew_shellenv_line(arch), dry_run=self.ctx.dry_run)
        record_decision(state, "brew", brew)
        return state
