from __future__ import annotations

import logging
from typing import Any, Dict

from ._base import BaseStep

logger = logging.getLogger(__name__)


class EnsureDirectoriesStep(BaseStep):
    step_id = "10_ensure_directories"
    title = "Ensuring XDG base directories exist"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        paths = self.ctx.paths
        wanted = [
            paths.config_home,
            paths.data_home,
            paths.cache_home,
            paths.state_home,
            paths.zsh_sessions,
            paths.ssh_sockets,
        ]

        if self.ctx.dry_run:
            for d in wanted:
                logger.info("Would create %s", d)
            return state

        for d in wanted:
            d.mkdir(parents=True, exist_ok=True)

        for d in (paths.ssh_dir, paths.ssh_sockets):
            try:
                d.chmod(0o700)
            except OSError as e:
                logger.debug("chmod 700 %s failed: %s", d, e)

        logger.info("XDG directories ready")
        return state
