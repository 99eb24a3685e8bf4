"""Package manager helpers for installing mount dependencies."""

from typing import TYPE_CHECKING

from automount.lib.process import CommandError, check_tool, run_command

if TYPE_CHECKING:
    from automount.core.context import Context


# Checked in order; first manager found on PATH wins
SSHFS_INSTALL_COMMANDS = [
    ("apt-get", [["apt-get", "update"], ["apt-get", "install", "-y", "sshfs"]]),
    ("yum", [["yum", "install", "-y", "fuse-sshfs"]]),
    ("dnf", [["dnf", "install", "-y", "fuse-sshfs"]]),
    ("pacman", [["pacman", "-S", "--noconfirm", "sshfs"]]),
]


def ensure_sshfs(context: "Context") -> str | None:
    """
    Make sure sshfs is installed.

    Args:
        context: Execution context

    Returns:
        Name of the package manager used, or None if sshfs was already present

    Raises:
        CommandError: If no supported package manager exists or install fails
    """
    if check_tool("sshfs", context=context):
        return None

    for manager, commands in SSHFS_INSTALL_COMMANDS:
        if not check_tool(manager, context=context):
            continue
        for cmd in commands:
            run_command(cmd, context=context, check=True, timeout=None)
        return manager

    raise CommandError(
        "Package manager not supported. Please install sshfs manually."
    )
