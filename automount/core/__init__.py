"""Core auto-mount functionality."""

from automount.core.checker import MountChecker, Outcome, run_check
from automount.core.config import Settings, SettingsError, load_settings
from automount.core.context import Context
from automount.core.installer import Installer
from automount.core.output import Output
from automount.core.registry import (
    DuplicateName,
    InvalidName,
    NotFound,
    Registry,
    RegistryError,
)
from automount.core.server import (
    ConfigError,
    ConfigIncomplete,
    ConfigInvalid,
    ConfigMissing,
    ServerConfig,
)

__all__ = [
    "ConfigError",
    "ConfigIncomplete",
    "ConfigInvalid",
    "ConfigMissing",
    "Context",
    "DuplicateName",
    "Installer",
    "InvalidName",
    "MountChecker",
    "NotFound",
    "Outcome",
    "Output",
    "Registry",
    "RegistryError",
    "ServerConfig",
    "Settings",
    "SettingsError",
    "load_settings",
    "run_check",
]
