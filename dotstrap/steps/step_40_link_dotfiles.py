from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Dict

from ..lib.links import run_dotbot
from ..state_store import record_decision
from ._base import BaseStep

logger = logging.getLogger(__name__)


class LinkDotfilesStep(BaseStep):
    step_id = "40_link_dotfiles"
    title = "Linking dotfiles with Dotbot"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        result = run_dotbot(self.ctx.paths, verbose=self.ctx.debug, dry_run=self.ctx.dry_run)
        record_decision(state, "link_mode", result.mode)

        if result.results:
            counts = Counter(r.action for r in result.results)
            state.setdefault("execution", {})["links"] = dict(counts)
            for r in result.results:
                if not r.ok:
                    self.warn(state, f"{r.spec.target}: {r.message or r.action}")

        if result.mode == "dotbot" and not result.ok:
            self.warn(state, "Dotbot reported issues")
        elif result.ok:
            logger.info("Dotfiles linked (%s)", result.mode)
        return state
