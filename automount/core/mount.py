"""Mount table probing, sshfs mounting and forced unmounting."""

import subprocess
from dataclasses import dataclass

from automount.core.context import Context


# Seconds to wait after each unmount attempt
UNMOUNT_SETTLE_SECONDS = 2


class MountProbe:
    """Answers questions about a mount point."""

    def __init__(self, context: Context):
        self.context = context

    def is_mounted(self, mount_point: str) -> bool:
        """Point-in-time check that ``mount_point`` is in the mount table."""
        try:
            result = self.context.run(["mountpoint", "-q", mount_point], timeout=None)
        except (OSError, subprocess.SubprocessError):
            return False
        return result.returncode == 0

    def is_accessible(self, mount_point: str) -> bool:
        """
        Check that a mount answers a directory listing.

        All three must hold: still mounted, a directory, listing succeeds.
        """
        if not self.is_mounted(mount_point):
            return False
        if not self.context.is_dir(mount_point):
            return False
        try:
            self.context.list_dir(mount_point)
        except OSError:
            return False
        return True


@dataclass
class MountResult:
    """Result of an sshfs invocation."""

    returncode: int | None
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0


class Mounter:
    """Attaches a remote directory with sshfs."""

    def __init__(self, context: Context, extra_options: list[str] | None = None):
        self.context = context
        self.extra_options = list(extra_options or [])

    def command(self, ssh_key: str, remote: str, mount_point: str) -> list[str]:
        cmd = ["sshfs", "-o", f"IdentityFile={ssh_key}"]
        for option in self.extra_options:
            cmd.extend(["-o", option])
        cmd.extend([remote, mount_point])
        return cmd

    def mount(self, ssh_key: str, remote: str, mount_point: str) -> MountResult:
        """
        Create the mount point if needed and run sshfs.

        Blocks until sshfs returns; no timeout is applied.
        """
        try:
            self.context.make_dirs(mount_point)
        except OSError as e:
            return MountResult(returncode=None, stderr=f"cannot create {mount_point}: {e}")

        try:
            result = self.context.run(
                self.command(ssh_key, remote, mount_point), timeout=None
            )
        except (OSError, subprocess.SubprocessError) as e:
            return MountResult(returncode=None, stderr=str(e))
        return MountResult(returncode=result.returncode, stderr=(result.stderr or "").strip())


class Unmounter:
    """Detaches stuck mounts."""

    def __init__(self, context: Context):
        self.context = context

    def _attempt(self, cmd: list[str]) -> bool:
        try:
            return self.context.run(cmd, timeout=None).returncode == 0
        except (OSError, subprocess.SubprocessError):
            return False

    def force_unmount(self, mount_point: str) -> bool:
        """
        Forced unmount, then lazy unmount, settling after each.

        Failures are not reported as errors; the mount attempt that
        follows shows whether the mount point was cleared.

        Returns:
            True if either unmount succeeded
        """
        forced = self._attempt(["umount", "-f", mount_point])
        self.context.sleep(UNMOUNT_SETTLE_SECONDS)
        lazy = self._attempt(["umount", "-l", mount_point])
        self.context.sleep(UNMOUNT_SETTLE_SECONDS)
        return forced or lazy
