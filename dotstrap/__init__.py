"""dotstrap: dotfiles machine bootstrap (Python-first, state-driven).

Core design goals:
- Idempotent steps (check first, then install or skip)
- Resumable runs backed by a small state file
- Best-effort installers: failures become warnings, not aborts
- Dotbot-compatible linking
- Centralized logging
"""

__all__ = []
