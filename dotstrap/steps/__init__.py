from .step_10_ensure_directories import EnsureDirectoriesStep
from .step_12_linux_preflight import LinuxPreflightStep
from .step_15_repo_writable import RepoWritableStep
from .step_18_ensure_zsh import EnsureZshStep
from .step_20_xcode_clt import XcodeCLTStep
from .step_25_homebrew import HomebrewStep
from .step_25_system_update import SystemUpdateStep
from .step_30_base_packages import BasePackagesStep
from .step_30_brew_bundle import BrewBundleStep
from .step_35_requested_apps import RequestedAppsStep
from .step_38_local_bin import LocalBinPathStep
from .step_40_link_dotfiles import LinkDotfilesStep
from .step_45_git_identity import GitIdentityStep
from .step_50_github_auth import GitHubAuthStep
from .step_60_macos_services import MacServicesStep
from .step_65_macos_dns import MacDnsStep
from .step_68_magicdns_resolver import MagicDnsResolverStep
from .step_80_login_shell import LoginShellStep
from .step_85_xdg_cleanup import XdgCleanupStep
from .step_88_dev_directory import DevDirectoryStep
from .step_95_finalize import FinalizeStep

__all__ = [
    "EnsureDirectoriesStep",
    "LinuxPreflightStep",
    "RepoWritableStep",
    "EnsureZshStep",
    "XcodeCLTStep",
    "HomebrewStep",
    "SystemUpdateStep",
    "BasePackagesStep",
    "BrewBundleStep",
    "RequestedAppsStep",
    "LocalBinPathStep",
    "LinkDotfilesStep",
    "GitIdentityStep",
    "GitHubAuthStep",
    "MacServicesStep",
    "MacDnsStep",
    "MagicDnsResolverStep",
    "LoginShellStep",
    "XdgCleanupStep",
    "DevDirectoryStep",
    "FinalizeStep",
]
