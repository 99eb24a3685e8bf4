"""Shared utility library for auto-mount."""

from automount.lib.filesystem import FileError, remove_files, write_file
from automount.lib.packages import ensure_sshfs
from automount.lib.process import CommandError, check_tool, run_command

__all__ = [
    "CommandError",
    "FileError",
    "check_tool",
    "ensure_sshfs",
    "remove_files",
    "run_command",
    "write_file",
]
