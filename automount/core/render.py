"""Render the per-server files auto-mount installs."""

import json
import sys

from automount import __version__
from automount.core.config import Settings
from automount.core.server import ServerConfig


class SchedulerError(Exception):
    """A check interval the scheduler cannot express."""

    pass


def render_check_script(
    config: ServerConfig,
    settings: Settings,
    python: str | None = None,
) -> str:
    """Standalone check script with the config and log paths baked in."""
    python = python or sys.executable or "/usr/bin/env python3"
    config_file = settings.config_path(config.name)
    log_file = settings.log_path(config.name)
    return f'''#!{python}
# automount:
#   server: "{config.name}"
#   config: {json.dumps(str(config_file))}
#   log: {json.dumps(str(log_file))}
#   version: "{__version__}"

"""Keep the {config.name} sshfs mount alive.

Generated by auto-mount; regenerate with `auto-mount edit {config.name}`.
"""

import json
import sys

from automount.core.checker import main

CONFIG_FILE = {str(config_file)!r}
LOG_FILE = {str(log_file)!r}
SSHFS_OPTIONS = {list(settings.sshfs_options)!r}

if __name__ == "__main__":
    sys.exit(main(CONFIG_FILE, LOG_FILE, SSHFS_OPTIONS))
'''


def render_service_unit(config: ServerConfig, settings: Settings) -> str:
    """Oneshot unit that runs the check script as root."""
    return f"""[Unit]
Description=Auto-mount SFTP Service for {config.name}
After=network-online.target
Wants=network-online.target

[Service]
Type=oneshot
ExecStart={settings.script_path(config.name)}
User=root
StandardOutput=journal
StandardError=journal
"""


def render_timer_unit(config: ServerConfig) -> str:
    """Timer that fires the service every check interval."""
    return f"""[Unit]
Description=Run auto-mount check for {config.name} every {config.check_interval} minutes

[Timer]
OnBootSec=1min
OnUnitActiveSec={config.check_interval}min
Unit=auto-mount-{config.name}.service

[Install]
WantedBy=timers.target
"""


def cron_schedule(interval: int) -> str:
    """
    Cron time fields for an interval in minutes.

    Raises:
        SchedulerError: If cron cannot run at that interval
    """
    if interval < 1:
        raise SchedulerError(f"Check interval must be positive, got {interval}")
    if interval < 60:
        return f"*/{interval} * * * *"
    if interval % 60 == 0 and interval // 60 < 24:
        return f"0 */{interval // 60} * * *"
    raise SchedulerError(
        f"Cron cannot run every {interval} minutes; use 1-59 minutes or whole hours below 24"
    )


def render_cron_entry(config: ServerConfig, settings: Settings) -> str:
    """``/etc/cron.d`` entry running the check script as root."""
    schedule = cron_schedule(config.check_interval)
    return (
        f"# Auto-mount SFTP service for {config.name}\n"
        f"# Runs every {config.check_interval} minutes\n"
        f"{schedule} root {settings.script_path(config.name)}\n"
    )


def render_logrotate(config: ServerConfig, settings: Settings) -> str:
    """Daily rotation, seven compressed generations."""
    return f"""{settings.log_path(config.name)} {{
    daily
    missingok
    rotate 7
    compress
    delaycompress
    notifempty
    create 644 root root
}}
"""
