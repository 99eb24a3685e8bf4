"""Install and remove the per-server check script and its schedule."""

from automount import __version__
from automount.core.config import Settings
from automount.core.context import Context
from automount.core.metadata import MetadataError, parse_metadata
from automount.core.render import (
    cron_schedule,
    render_check_script,
    render_cron_entry,
    render_logrotate,
    render_service_unit,
    render_timer_unit,
)
from automount.core.runner import ScriptResult, run_script
from automount.core.server import ServerConfig
from automount.lib.filesystem import remove_files, write_file
from automount.lib.process import run_command


# Script states reported by Installer.script_status
SCRIPT_OK = "ok"
SCRIPT_MISSING = "missing"
SCRIPT_STALE = "stale"
SCRIPT_INVALID = "invalid"


class Installer:
    """
    Writes and removes everything derived from a server config.

    All filesystem and process calls go through the context.
    """

    def __init__(self, settings: Settings, context: Context | None = None):
        self.settings = settings
        self.context = context or Context()

    def has_systemd(self) -> bool:
        return self.context.check_tool("systemctl")

    def scheduler(self) -> str:
        """Scheduler to register with: ``systemd`` or ``cron``."""
        if self.settings.scheduler == "auto":
            return "systemd" if self.has_systemd() else "cron"
        return self.settings.scheduler

    def validate(self, config: ServerConfig) -> None:
        """
        Check the config can be scheduled before anything is written.

        Raises:
            SchedulerError: If cron cannot express the check interval
        """
        if self.scheduler() == "cron":
            cron_schedule(config.check_interval)

    def timer_unit(self, name: str) -> str:
        return f"auto-mount-{name}.timer"

    def artifact_paths(self, name: str) -> list[str]:
        """Every file derived from a server, including its log."""
        s = self.settings
        return [
            str(s.script_path(name)),
            str(s.service_path(name)),
            str(s.timer_path(name)),
            str(s.cron_path(name)),
            str(s.logrotate_path(name)),
            str(s.log_path(name)),
        ]

    def _systemctl(self, *args: str, check: bool = True) -> None:
        run_command(["systemctl", *args], context=self.context, check=check)

    def install(self, config: ServerConfig) -> list[str]:
        """
        Generate the check script, scheduler entry, logrotate config and log file.

        Re-running replaces existing files, so it also serves edits.

        Returns:
            Paths written

        Raises:
            SchedulerError: If cron cannot express the check interval
            FileError: If a file cannot be written
            CommandError: If systemctl fails
        """
        s = self.settings
        name = config.name
        scheduler = self.scheduler()
        written = []

        # Render everything first so a bad interval leaves nothing behind
        script = render_check_script(config, s)
        logrotate = render_logrotate(config, s)
        if scheduler == "systemd":
            schedule_files = {
                str(s.service_path(name)): render_service_unit(config, s),
                str(s.timer_path(name)): render_timer_unit(config),
            }
        else:
            schedule_files = {str(s.cron_path(name)): render_cron_entry(config, s)}

        write_file(str(s.script_path(name)), script, mode=0o755, context=self.context)
        written.append(str(s.script_path(name)))

        for path, content in schedule_files.items():
            write_file(path, content, mode=0o644, context=self.context)
            written.append(path)

        write_file(str(s.logrotate_path(name)), logrotate, mode=0o644, context=self.context)
        written.append(str(s.logrotate_path(name)))

        log_path = str(s.log_path(name))
        if not self.context.file_exists(log_path):
            write_file(log_path, "", mode=0o644, context=self.context)
            written.append(log_path)

        if scheduler == "systemd":
            remove_files([str(s.cron_path(name))], context=self.context)
            self._systemctl("daemon-reload")
            self._systemctl("enable", "--now", self.timer_unit(name))
        else:
            if self.has_systemd():
                self._systemctl("disable", "--now", self.timer_unit(name), check=False)
            removed = remove_files(
                [str(s.service_path(name)), str(s.timer_path(name))],
                context=self.context,
            )
            if removed and self.has_systemd():
                self._systemctl("daemon-reload")

        return written

    def teardown(self, config: ServerConfig) -> list[str]:
        """
        Remove every artifact of a server. Missing files are fine.

        Returns:
            Paths removed
        """
        name = config.name
        systemd = self.has_systemd()
        if systemd:
            self._systemctl("disable", "--now", self.timer_unit(name), check=False)

        removed = remove_files(self.artifact_paths(name), context=self.context)

        if systemd:
            self._systemctl("daemon-reload")
        return removed

    def purge(self) -> None:
        """Remove the config and log directories entirely."""
        self.context.remove_tree(str(self.settings.config_dir))
        self.context.remove_tree(str(self.settings.log_dir))

    def test_run(self, name: str) -> ScriptResult:
        """Run the generated check script once."""
        return run_script(self.settings.script_path(name), self.context)

    def script_status(self, config: ServerConfig) -> str:
        """Whether the installed check script matches this config."""
        path = str(self.settings.script_path(config.name))
        try:
            content = self.context.read_file(path)
        except FileNotFoundError:
            return SCRIPT_MISSING
        except OSError:
            return SCRIPT_INVALID

        try:
            metadata = parse_metadata(content)
        except MetadataError:
            return SCRIPT_INVALID
        if metadata is None:
            return SCRIPT_INVALID

        expected = {
            "server": config.name,
            "config": str(self.settings.config_path(config.name)),
            "log": str(self.settings.log_path(config.name)),
            "version": __version__,
        }
        if any(str(metadata[key]) != value for key, value in expected.items()):
            return SCRIPT_STALE
        return SCRIPT_OK
