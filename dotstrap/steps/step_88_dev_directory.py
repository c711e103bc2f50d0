from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.assets import bootstrap_dev_dir
from ..lib.prompts import DEFAULT_YES
from ._base import BaseStep

logger = logging.getLogger(__name__)


class DevDirectoryStep(BaseStep):
    step_id = "88_dev_directory"
    title = "Bootstrapping ~/dev directory structure"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        if not self.toggle(state, "setup_dev_dir", "Set up ~/dev directory structure?", DEFAULT_YES):
            logger.info("Skipping dev directory setup")
            return state

        paths = self.ctx.paths
        if not paths.dev_templates.is_dir():
            logger.info("No dev templates at %s; creating the bare tree", paths.dev_templates)

        seeded = bootstrap_dev_dir(paths.dev_root, paths.dev_templates, dry_run=self.ctx.dry_run)
        logger.info("Development directory structure ensured at %s (%d files seeded)", paths.dev_root, len(seeded))
        return state
