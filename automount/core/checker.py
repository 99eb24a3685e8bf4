"""Mount health check: one run per scheduler tick.

Each run loads the server config, decides whether the mount is healthy
and, if not, clears and re-establishes it. Nothing is kept between runs;
retrying over time is left to the scheduler.
"""

import sys
from enum import Enum
from pathlib import Path
from typing import TextIO

from automount.core.config import load_settings
from automount.core.context import Context
from automount.core.logging import MountLogger
from automount.core.mount import Mounter, MountProbe, Unmounter
from automount.core.server import (
    ConfigIncomplete,
    ConfigInvalid,
    ConfigMissing,
    load_server_config,
)


class Outcome(Enum):
    """What a single check run ended with."""

    ALREADY_HEALTHY = "already_healthy"
    REPAIRED_AND_MOUNTED = "repaired_and_mounted"
    REPAIR_ATTEMPTED_BUT_FAILED = "repair_attempted_but_failed"
    MOUNTED_FRESH = "mounted_fresh"
    MOUNT_FAILED = "mount_failed"
    CONFIG_MISSING = "config_missing"
    CONFIG_INVALID = "config_invalid"

    @property
    def success(self) -> bool:
        return self in SUCCESS_OUTCOMES

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1


SUCCESS_OUTCOMES = {
    Outcome.ALREADY_HEALTHY,
    Outcome.REPAIRED_AND_MOUNTED,
    Outcome.MOUNTED_FRESH,
}


class MountChecker:
    """Checks one server's mount and repairs it when needed."""

    def __init__(
        self,
        config_file: str,
        logger: MountLogger,
        context: Context,
        probe: MountProbe | None = None,
        mounter: Mounter | None = None,
        unmounter: Unmounter | None = None,
    ):
        self.config_file = config_file
        self.logger = logger
        self.context = context
        self.probe = probe or MountProbe(context)
        self.mounter = mounter or Mounter(context)
        self.unmounter = unmounter or Unmounter(context)

    def run(self) -> Outcome:
        log = self.logger.log

        try:
            config = load_server_config(self.config_file, context=self.context)
        except ConfigMissing:
            log(f"ERROR: Configuration file {self.config_file} not found")
            return Outcome.CONFIG_MISSING
        except ConfigIncomplete as e:
            log(f"ERROR: {e}")
            return Outcome.CONFIG_INVALID
        except ConfigInvalid as e:
            log(f"ERROR: Invalid configuration: {e}")
            return Outcome.CONFIG_INVALID

        mount_point = config.mount_point
        repairing = False

        if self.probe.is_mounted(mount_point):
            if self.probe.is_accessible(mount_point):
                log(f"Mount {mount_point} is active and accessible")
                return Outcome.ALREADY_HEALTHY
            log(f"Mount {mount_point} is mounted but not accessible, attempting to fix")
            log(f"Attempting to force unmount {mount_point}")
            self.unmounter.force_unmount(mount_point)
            repairing = True
        else:
            log(f"Mount {mount_point} is not mounted")

        log(f"Attempting to mount {config.remote} to {mount_point}")
        result = self.mounter.mount(config.ssh_key, config.remote, mount_point)

        if result.success:
            log(f"Successfully mounted {config.remote} to {mount_point}")
            log("Auto-mount completed successfully")
            return Outcome.REPAIRED_AND_MOUNTED if repairing else Outcome.MOUNTED_FRESH

        message = f"Failed to mount {config.remote} to {mount_point}"
        if result.stderr:
            message = f"{message}: {result.stderr}"
        log(message)
        log("Auto-mount failed")
        return Outcome.REPAIR_ATTEMPTED_BUT_FAILED if repairing else Outcome.MOUNT_FAILED


def run_check(
    config_file: str,
    log_file: str,
    context: Context | None = None,
    sshfs_options: list[str] | None = None,
    echo: TextIO | None = None,
) -> Outcome:
    """Run one check with real capabilities bound to ``context``."""
    context = context or Context()
    with MountLogger(Path(log_file), echo=echo) as logger:
        checker = MountChecker(
            config_file,
            logger,
            context,
            mounter=Mounter(context, extra_options=sshfs_options),
        )
        return checker.run()


def main(config_file: str, log_file: str, sshfs_options: list[str] | None = None) -> int:
    """
    Entry point for generated check scripts.

    Returns:
        0 = healthy or repaired, 1 = any failure
    """
    return run_check(config_file, log_file, sshfs_options=sshfs_options).exit_code


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print("usage: python -m automount.core.checker CONFIG_FILE LOG_FILE", file=sys.stderr)
        sys.exit(1)
    sys.exit(main(sys.argv[1], sys.argv[2], load_settings().sshfs_options))
