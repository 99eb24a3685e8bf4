"""Tests for the mount health checker."""

import re

import pytest

from automount.core.checker import MountChecker, Outcome, run_check
from automount.core.logging import MountLogger
from tests.conftest import MockContext, completed


CONFIG_FILE = "/etc/auto-mount/plex-media.conf"
MOUNT_POINT = "/mnt/plex-media"

CONFIG = '''SERVER_NAME="plex-media"
SSH_KEY="/k"
USER_HOST="u@h"
REMOTE_PATH="/r"
MOUNT_POINT="/mnt/plex-media"
CHECK_INTERVAL="5"
'''

MOUNTPOINT_CMD = ("mountpoint", "-q", MOUNT_POINT)
SSHFS_CMD = ("sshfs", "-o", "IdentityFile=/k", "u@h:/r", MOUNT_POINT)
UMOUNT_FORCE_CMD = ("umount", "-f", MOUNT_POINT)
UMOUNT_LAZY_CMD = ("umount", "-l", MOUNT_POINT)

LINE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} - (.*)$")


def make_context(mounted: bool, accessible: bool = True, sshfs_rc: int = 0, sshfs_stderr: str = "", config: str | None = CONFIG) -> MockContext:
    files = {CONFIG_FILE: config} if config is not None else {}
    return MockContext(
        file_contents=files,
        directories=[MOUNT_POINT] if mounted else [],
        unlistable=[] if accessible else [MOUNT_POINT],
        command_outputs={
            MOUNTPOINT_CMD: completed(list(MOUNTPOINT_CMD), returncode=0 if mounted else 1),
            SSHFS_CMD: completed(list(SSHFS_CMD), returncode=sshfs_rc, stderr=sshfs_stderr),
            UMOUNT_FORCE_CMD: completed(list(UMOUNT_FORCE_CMD)),
            UMOUNT_LAZY_CMD: completed(list(UMOUNT_LAZY_CMD), returncode=1),
        },
    )


def run(ctx: MockContext, log_file) -> tuple[Outcome, list[str]]:
    with MountLogger(log_file) as logger:
        outcome = MountChecker(CONFIG_FILE, logger, ctx).run()
    messages = []
    for line in log_file.read_text().splitlines():
        match = LINE_PATTERN.match(line)
        assert match, f"bad log line: {line!r}"
        messages.append(match.group(1))
    return outcome, messages


def commands_named(ctx: MockContext, name: str) -> list[list[str]]:
    return [cmd for cmd in ctx.commands_run if cmd[0] == name]


class TestHealthyMount:
    """Tests for a mount that is up and answering."""

    def test_already_healthy(self, tmp_path):
        """Healthy mount: one log line, no mount or unmount attempted."""
        ctx = make_context(mounted=True, accessible=True)

        outcome, messages = run(ctx, tmp_path / "plex-media.log")

        assert outcome == Outcome.ALREADY_HEALTHY
        assert messages == ["Mount /mnt/plex-media is active and accessible"]
        assert commands_named(ctx, "sshfs") == []
        assert commands_named(ctx, "umount") == []
        assert ctx.sleeps == []

    def test_healthy_is_success(self):
        """Healthy outcome exits zero."""
        assert Outcome.ALREADY_HEALTHY.success is True
        assert Outcome.ALREADY_HEALTHY.exit_code == 0


class TestNotMounted:
    """Tests for a mount point with nothing mounted."""

    def test_mounted_fresh(self, tmp_path):
        """sshfs is invoked with the identity file, remote and mount point."""
        ctx = make_context(mounted=False)

        outcome, messages = run(ctx, tmp_path / "plex-media.log")

        assert outcome == Outcome.MOUNTED_FRESH
        assert commands_named(ctx, "sshfs") == [list(SSHFS_CMD)]
        assert commands_named(ctx, "umount") == []
        assert messages == [
            "Mount /mnt/plex-media is not mounted",
            "Attempting to mount u@h:/r to /mnt/plex-media",
            "Successfully mounted u@h:/r to /mnt/plex-media",
            "Auto-mount completed successfully",
        ]

    def test_mount_point_created(self, tmp_path):
        """The mount point directory is created before mounting."""
        ctx = make_context(mounted=False)

        run(ctx, tmp_path / "plex-media.log")

        assert MOUNT_POINT in ctx.directories

    def test_mount_failed(self, tmp_path):
        """sshfs failure is logged with its stderr."""
        ctx = make_context(mounted=False, sshfs_rc=1, sshfs_stderr="read: Connection reset by peer\n")

        outcome, messages = run(ctx, tmp_path / "plex-media.log")

        assert outcome == Outcome.MOUNT_FAILED
        assert outcome.exit_code == 1
        assert messages[-2] == (
            "Failed to mount u@h:/r to /mnt/plex-media: read: Connection reset by peer"
        )
        assert messages[-1] == "Auto-mount failed"

    def test_sshfs_missing(self, tmp_path):
        """sshfs that cannot be started counts as a failed mount."""
        ctx = make_context(mounted=False)
        ctx.command_outputs[SSHFS_CMD] = FileNotFoundError("sshfs")

        outcome, messages = run(ctx, tmp_path / "plex-media.log")

        assert outcome == Outcome.MOUNT_FAILED
        assert messages[-1] == "Auto-mount failed"


class TestStaleMount:
    """Tests for a mount that is listed but not answering."""

    def test_repaired(self, tmp_path):
        """Stale mount is force unmounted, lazily unmounted, then remounted."""
        ctx = make_context(mounted=True, accessible=False)

        outcome, messages = run(ctx, tmp_path / "plex-media.log")

        assert outcome == Outcome.REPAIRED_AND_MOUNTED
        assert commands_named(ctx, "umount") == [list(UMOUNT_FORCE_CMD), list(UMOUNT_LAZY_CMD)]
        assert ctx.sleeps == [2, 2]
        assert messages == [
            "Mount /mnt/plex-media is mounted but not accessible, attempting to fix",
            "Attempting to force unmount /mnt/plex-media",
            "Attempting to mount u@h:/r to /mnt/plex-media",
            "Successfully mounted u@h:/r to /mnt/plex-media",
            "Auto-mount completed successfully",
        ]

    def test_unmount_before_mount(self, tmp_path):
        """Both unmount attempts happen before sshfs runs."""
        ctx = make_context(mounted=True, accessible=False)

        run(ctx, tmp_path / "plex-media.log")

        names = [cmd[0] for cmd in ctx.commands_run if cmd[0] != "mountpoint"]
        assert names == ["umount", "umount", "sshfs"]

    def test_repair_failed(self, tmp_path):
        """Remount failure after a repair attempt has its own outcome."""
        ctx = make_context(mounted=True, accessible=False, sshfs_rc=1)

        outcome, messages = run(ctx, tmp_path / "plex-media.log")

        assert outcome == Outcome.REPAIR_ATTEMPTED_BUT_FAILED
        assert outcome.exit_code == 1
        assert messages[-2] == "Failed to mount u@h:/r to /mnt/plex-media"

    def test_unmount_errors_do_not_stop_remount(self, tmp_path):
        """A failing umount is not fatal."""
        ctx = make_context(mounted=True, accessible=False)
        ctx.command_outputs[UMOUNT_FORCE_CMD] = OSError("umount missing")

        outcome, _ = run(ctx, tmp_path / "plex-media.log")

        assert outcome == Outcome.REPAIRED_AND_MOUNTED

    def test_mount_point_not_a_directory(self, tmp_path):
        """A mounted path that is not a directory is treated as stale."""
        ctx = make_context(mounted=True)
        ctx.directories.clear()

        outcome, _ = run(ctx, tmp_path / "plex-media.log")

        assert outcome == Outcome.REPAIRED_AND_MOUNTED


class TestConfigErrors:
    """Tests for missing or broken config files."""

    def test_config_missing(self, tmp_path):
        """Missing config is logged and nothing is run."""
        ctx = make_context(mounted=False, config=None)

        outcome, messages = run(ctx, tmp_path / "plex-media.log")

        assert outcome == Outcome.CONFIG_MISSING
        assert messages == [f"ERROR: Configuration file {CONFIG_FILE} not found"]
        assert ctx.commands_run == []

    def test_config_incomplete(self, tmp_path):
        """Config without a required key is invalid and nothing is run."""
        ctx = make_context(mounted=False, config='SERVER_NAME="plex-media"\nSSH_KEY="/k"\n')

        outcome, messages = run(ctx, tmp_path / "plex-media.log")

        assert outcome == Outcome.CONFIG_INVALID
        assert messages == [
            "ERROR: Missing required configuration variables: USER_HOST, REMOTE_PATH, MOUNT_POINT"
        ]
        assert ctx.commands_run == []

    def test_empty_user_host(self, tmp_path):
        """An empty required value is invalid and exits non-zero."""
        ctx = make_context(mounted=False, config=CONFIG.replace('USER_HOST="u@h"', 'USER_HOST=""'))

        outcome, messages = run(ctx, tmp_path / "plex-media.log")

        assert outcome == Outcome.CONFIG_INVALID
        assert outcome.exit_code == 1
        assert messages == ["ERROR: Missing required configuration variables: USER_HOST"]
        assert ctx.commands_run == []

    def test_config_malformed(self, tmp_path):
        """A config with shell code in it is invalid and nothing is run."""
        ctx = make_context(mounted=False, config=CONFIG + "rm -rf /\n")

        outcome, messages = run(ctx, tmp_path / "plex-media.log")

        assert outcome == Outcome.CONFIG_INVALID
        assert messages == ["ERROR: Invalid configuration: line 7: expected KEY=value"]
        assert ctx.commands_run == []

    @pytest.mark.parametrize("outcome", [Outcome.CONFIG_MISSING, Outcome.CONFIG_INVALID])
    def test_config_errors_fail(self, outcome):
        """Config errors exit non-zero."""
        assert outcome.exit_code == 1


class TestRunCheck:
    """Tests for run_check."""

    def test_appends_to_log(self, tmp_path):
        """Successive runs append to the same log file."""
        log_file = tmp_path / "logs" / "plex-media.log"
        ctx = make_context(mounted=True)

        run_check(CONFIG_FILE, str(log_file), context=ctx)
        run_check(CONFIG_FILE, str(log_file), context=ctx)

        lines = log_file.read_text().splitlines()
        assert len(lines) == 2

    def test_extra_sshfs_options(self, tmp_path):
        """Configured sshfs options are passed before the remote."""
        cmd = ("sshfs", "-o", "IdentityFile=/k", "-o", "reconnect", "u@h:/r", MOUNT_POINT)
        ctx = make_context(mounted=False)
        ctx.command_outputs[cmd] = completed(list(cmd))

        outcome = run_check(
            CONFIG_FILE, str(tmp_path / "x.log"), context=ctx, sshfs_options=["reconnect"]
        )

        assert outcome == Outcome.MOUNTED_FRESH
        assert list(cmd) in ctx.commands_run

    def test_echo(self, tmp_path, capsys):
        """Lines are echoed to the given stream."""
        import sys

        ctx = make_context(mounted=True)

        run_check(CONFIG_FILE, str(tmp_path / "x.log"), context=ctx, echo=sys.stdout)

        assert "is active and accessible" in capsys.readouterr().out
