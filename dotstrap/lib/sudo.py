from __future__ import annotations

import logging
import os
import threading
import time
from typing import Mapping, Optional, Sequence

from ..errors import BootstrapError
from .command import CmdResult, fmt_argv, run_cmd

logger = logging.getLogger(__name__)

DEFAULT_KEEPALIVE_INTERVAL = 60.0
DEFAULT_REFRESH_TIMEOUT = 120.0
DEFAULT_REFRESH_INTERVAL = 5.0


class SudoUnavailable(RuntimeError):
    """Interactive run where the user could not (or would not) authenticate."""


def _env_float(environ: Mapping[str, str], name: str, default: float) -> float:
    try:
        return float(environ.get(name, default))
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r", name, environ.get(name))
        return default


class SudoSession:
    """Cached sudo credentials for one bootstrap run.

    Privileged commands always go through ``sudo -n`` after ``ensure()`` so a
    failing command is never re-run just to get a password prompt. While the
    session is active a daemon thread refreshes the credential cache so long
    package installs do not prompt again.
    """

    def __init__(
        self,
        *,
        unattended: bool = False,
        dry_run: bool = False,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        env = environ if environ is not None else os.environ
        self.unattended = unattended
        self.dry_run = dry_run
        self.keepalive_interval = _env_float(env, "SUDO_KEEPALIVE_INTERVAL", DEFAULT_KEEPALIVE_INTERVAL)
        self.refresh_timeout = _env_float(env, "SUDO_REFRESH_TIMEOUT", DEFAULT_REFRESH_TIMEOUT)
        self.refresh_interval = _env_float(env, "SUDO_REFRESH_INTERVAL", DEFAULT_REFRESH_INTERVAL)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def has_cached_credentials(self) -> bool:
        return run_cmd(["sudo", "-n", "true"], check=False).ok

    def ensure(self) -> None:
        if self.dry_run:
            return

        if not self.has_cached_credentials():
            if self.unattended:
                self._wait_for_credentials()
            else:
                logger.info("Administrator privileges required for system operations")
                if not run_cmd(["sudo", "-v"], check=False, interactive=True).ok:
                    raise SudoUnavailable("Failed to acquire sudo credentials")
                logger.info("Administrator privileges confirmed")

        self.start_keepalive()

    def _wait_for_credentials(self) -> None:
        logger.error(
            "Administrator privileges are required but no cached sudo credentials were found. "
            "Run 'sudo -v' in another terminal; waiting up to %ss.",
            int(self.refresh_timeout),
        )
        deadline = time.monotonic() + self.refresh_timeout
        while time.monotonic() < deadline:
            time.sleep(self.refresh_interval)
            if self.has_cached_credentials():
                logger.info("Sudo credentials refreshed; resuming")
                return
        raise BootstrapError("Timed out waiting for sudo credentials")

    def run(
        self,
        argv: Sequence[str],
        *,
        check: bool = True,
        env: Optional[Mapping[str, str]] = None,
        input_text: Optional[str] = None,
    ) -> CmdResult:
        """Run ``argv`` as root. Raises SudoUnavailable / BootstrapError via ensure()."""

        self.ensure()
        prefix = ["sudo", "-n"]
        if env:
            prefix += ["env", *(f"{k}={v}" for k, v in env.items())]
        logger.debug("sudo %s", fmt_argv(argv))
        return run_cmd([*prefix, *argv], check=check, input_text=input_text, dry_run=self.dry_run)

    def start_keepalive(self) -> None:
        if self.dry_run or self.keepalive_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._keepalive_loop, name="sudo-keepalive", daemon=True)
        self._thread.start()

    def _keepalive_loop(self) -> None:
        while not self._stop.wait(self.keepalive_interval):
            if not run_cmd(["sudo", "-n", "-v"], check=False).ok:
                logger.warning("Cached sudo credentials expired; rerun 'sudo -v' to resume privileged steps")
                return

    @property
    def keepalive_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
