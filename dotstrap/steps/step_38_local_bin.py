from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.profile import ensure_path_export
from ._base import BaseStep

logger = logging.getLogger(__name__)


class LocalBinPathStep(BaseStep):
    step_id = "38_local_bin_path"
    title = "Adding ~/.local/bin to PATH"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        paths = self.ctx.paths
        if not self.ctx.dry_run:
            paths.local_bin.mkdir(parents=True, exist_ok=True)
        if not ensure_path_export(paths.profile, "$HOME/.local/bin", dry_run=self.ctx.dry_run):
            logger.info("%s already exports ~/.local/bin", paths.profile)
        return state
