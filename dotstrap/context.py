from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from .lib.env import Paths
from .lib.pkg import AptInstaller, Installer, PacmanInstaller
from .lib.prompts import InputFn
from .lib.sudo import SudoSession


@dataclass
class RunContext:
    """Things steps share for one run and that do not belong in the state file."""

    paths: Paths
    sudo: SudoSession
    environ: Mapping[str, str]
    dry_run: bool = False
    unattended: bool = False
    debug: bool = False
    git_user_name: Optional[str] = None
    git_user_email: Optional[str] = None
    tailnet_domain: Optional[str] = None
    input_fn: InputFn = input
    _installers: Dict[str, Installer] = field(default_factory=dict, repr=False)

    def installer(self, manager: str) -> Installer:
        """One installer per package manager, so apt refreshes its index once."""
        if manager not in self._installers:
            if manager == "apt":
                self._installers[manager] = AptInstaller(self.sudo, dry_run=self.dry_run)
            elif manager == "pacman":
                self._installers[manager] = PacmanInstaller(self.sudo, dry_run=self.dry_run)
            else:
                raise ValueError(f"No installer for package manager {manager!r}")
        return self._installers[manager]

    def command_env(self) -> Dict[str, str]:
        return self.paths.xdg_env()
