"""Process utilities."""

import subprocess
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from automount.core.context import Context


class CommandError(Exception):
    """Error running a command."""

    pass


def run_command(
    cmd: list[str],
    context: "Context | None" = None,
    check: bool = False,
    timeout: int | None = 60,
) -> str:
    """
    Run a command and return its output.

    Args:
        cmd: Command and arguments
        context: Execution context (for testing)
        check: Raise on non-zero exit
        timeout: Timeout in seconds (None waits forever)

    Returns:
        Command stdout

    Raises:
        CommandError: If the command cannot be started, times out,
            or exits non-zero while check=True
    """
    if context is None:
        from automount.core.context import Context
        context = Context()

    try:
        result = context.run(cmd, check=False, timeout=timeout)
    except (OSError, subprocess.SubprocessError) as e:
        raise CommandError(f"Command failed: {' '.join(cmd)}: {e}") from e

    if check and result.returncode != 0:
        detail = (result.stderr or "").strip()
        message = f"Command failed ({result.returncode}): {' '.join(cmd)}"
        if detail:
            message = f"{message}: {detail}"
        raise CommandError(message)

    return result.stdout


def check_tool(
    name: str,
    context: "Context | None" = None,
) -> bool:
    """
    Check if a tool exists in PATH.

    Args:
        name: Tool name to check
        context: Execution context (for testing)

    Returns:
        True if tool exists
    """
    if context is None:
        from automount.core.context import Context
        context = Context()

    return context.check_tool(name)
