from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

DEFAULT_LOG_NAME = "bootstrap.log"


def default_log_path() -> str:
    state_home = os.environ.get("XDG_STATE_HOME") or str(Path.home() / ".local" / "state")
    return str(Path(state_home) / "dotstrap" / DEFAULT_LOG_NAME)


def configure_logging(
    log_path: Optional[str] = None,
    level: int = logging.DEBUG,
    also_console: bool = True,
    console_level: int = logging.INFO,
) -> str:
    """Configure logging.

    The file handler records everything (including captured command output at
    DEBUG); the console only shows ``console_level`` and above, so ``--debug``
    simply lowers the console threshold.

    Notes:
    - The log normally lives under $XDG_STATE_HOME/dotstrap. If that location
      cannot be written we fall back to a file in the working directory and
      keep going; logging must never be the reason a bootstrap fails.

    Returns the actual file path being used.
    """

    requested = log_path or default_log_path()

    logger = logging.getLogger()
    logger.setLevel(level)

    # Avoid duplicate handlers if configure_logging() is called multiple times.
    if getattr(logger, "_dotstrap_configured", False):
        return getattr(logger, "_dotstrap_log_path", requested)

    chosen_path = requested
    handlers: list[logging.Handler] = []

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    file_handler: Optional[logging.Handler] = None
    try:
        Path(os.path.dirname(requested) or ".").mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(requested)
        chosen_path = requested
    except OSError:
        fallback = str(Path.cwd() / "dotstrap.log")
        file_handler = logging.FileHandler(fallback)
        chosen_path = fallback
    file_handler.setFormatter(fmt)
    file_handler.setLevel(level)
    handlers.append(file_handler)

    if also_console:
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter(fmt="%(levelname)s %(message)s"))
        console.setLevel(console_level)
        handlers.append(console)

    for h in handlers:
        logger.addHandler(h)

    setattr(logger, "_dotstrap_configured", True)
    setattr(logger, "_dotstrap_log_path", chosen_path)

    logging.getLogger(__name__).info(
        "Logging initialized (requested=%s, actual=%s)", requested, chosen_path
    )
    return chosen_path
