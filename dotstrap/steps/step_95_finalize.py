from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from ..state_store import record_decision
from ._base import BaseStep

logger = logging.getLogger(__name__)


def restart_hint(environ: Mapping[str, str], os_name: str) -> str:
    """How the user should pick up the new shell configuration."""

    term = environ.get("TERM_PROGRAM", "")
    if environ.get("VSCODE_INJECTION") or environ.get("VSCODE_PID") or term == "vscode":
        return "VS Code: close this terminal and open a new one"
    if environ.get("SSH_CONNECTION") or environ.get("SSH_CLIENT") or environ.get("SSH_TTY"):
        return "SSH session: run 'exec zsh' or reconnect"
    if term == "ghostty":
        return "Ghostty: quit and reopen the application"
    if term == "Apple_Terminal":
        return "Terminal.app: quit and reopen the application"
    if os_name == "linux":
        return "Close this terminal and open a new one so zinit and the new environment initialize"
    return "Restart your terminal or run 'exec zsh'"


class FinalizeStep(BaseStep):
    step_id = "95_finalize"
    title = "Finishing up"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        options = (state.get("config") or {}).get("options") or {}
        for key in sorted(options):
            logger.info("  %s: %s", key, options[key])

        warnings = (state.get("execution") or {}).get("warnings") or []
        if warnings:
            logger.warning("Bootstrap finished with %d warning(s):", len(warnings))
            for w in warnings:
                logger.warning("  [%s] %s", w.get("step"), w.get("message"))

        hint = restart_hint(self.ctx.environ, str((state.get("host") or {}).get("os")))
        record_decision(state, "restart_hint", hint)
        logger.info("Bootstrap complete! %s", hint)
        return state
