"""Settings loading: directories, scheduler choice and mount options."""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml


DEFAULT_SETTINGS_PATH = Path("/etc/auto-mount.yaml")
SETTINGS_ENV = "AUTO_MOUNT_SETTINGS"

SCHEDULERS = {"auto", "systemd", "cron"}

RELEASE_URL = "https://api.github.com/repos/caelen-cater/auto-mount/releases/latest"

PATH_KEYS = {
    "config_dir",
    "log_dir",
    "bin_dir",
    "service_dir",
    "cron_dir",
    "logrotate_dir",
}


class SettingsError(Exception):
    """Error loading or validating settings."""

    pass


@dataclass
class Settings:
    """Where auto-mount keeps its files and how it schedules checks."""

    config_dir: Path = Path("/etc/auto-mount")
    log_dir: Path = Path("/var/log/auto-mount")
    bin_dir: Path = Path("/usr/local/bin")
    service_dir: Path = Path("/etc/systemd/system")
    cron_dir: Path = Path("/etc/cron.d")
    logrotate_dir: Path = Path("/etc/logrotate.d")
    scheduler: str = "auto"
    sshfs_options: list[str] = field(default_factory=list)
    release_url: str = RELEASE_URL

    def config_path(self, name: str) -> Path:
        return self.config_dir / f"{name}.conf"

    def log_path(self, name: str) -> Path:
        return self.log_dir / f"{name}.log"

    def script_path(self, name: str) -> Path:
        return self.bin_dir / f"auto-mount-{name}"

    def service_path(self, name: str) -> Path:
        return self.service_dir / f"auto-mount-{name}.service"

    def timer_path(self, name: str) -> Path:
        return self.service_dir / f"auto-mount-{name}.timer"

    def cron_path(self, name: str) -> Path:
        return self.cron_dir / f"auto-mount-{name}"

    def logrotate_path(self, name: str) -> Path:
        return self.logrotate_dir / f"auto-mount-{name}"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Settings":
        """
        Build settings from a parsed mapping.

        Raises:
            SettingsError: On unknown keys or bad values
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise SettingsError(f"Unknown settings: {', '.join(sorted(unknown))}")

        values: dict[str, Any] = {}
        for key, value in data.items():
            if key in PATH_KEYS:
                if not isinstance(value, str) or not value.startswith("/"):
                    raise SettingsError(f"'{key}' must be an absolute path")
                values[key] = Path(value)
            elif key == "scheduler":
                if value not in SCHEDULERS:
                    raise SettingsError(
                        f"'scheduler' must be one of: {', '.join(sorted(SCHEDULERS))}"
                    )
                values[key] = value
            elif key == "sshfs_options":
                if not isinstance(value, list) or not all(isinstance(o, str) for o in value):
                    raise SettingsError("'sshfs_options' must be a list of strings")
                values[key] = list(value)
            else:
                if not isinstance(value, str) or not value:
                    raise SettingsError(f"'{key}' must be a non-empty string")
                values[key] = value

        return cls(**values)


def load_config_file(path: Path) -> dict[str, Any]:
    """
    Load a YAML settings file.

    Returns an empty dict when the file does not exist.

    Raises:
        SettingsError: If the file is not valid YAML or not a mapping
    """
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise SettingsError(f"Invalid YAML in settings {path}: {e}")
    except OSError as e:
        raise SettingsError(f"Cannot read settings {path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SettingsError(f"Settings must be a YAML mapping: {path}")
    return data


def resolve_settings_path(explicit: Path | None = None) -> Path:
    """Pick the settings file: explicit path -> $AUTO_MOUNT_SETTINGS -> default."""
    if explicit is not None:
        return explicit
    env_path = os.environ.get(SETTINGS_ENV)
    if env_path:
        return Path(env_path)
    return DEFAULT_SETTINGS_PATH


def load_settings(path: Path | None = None) -> Settings:
    """Load settings, falling back to defaults for anything not set."""
    return Settings.from_dict(load_config_file(resolve_settings_path(path)))
