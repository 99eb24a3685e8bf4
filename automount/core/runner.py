"""Running generated check scripts."""

import subprocess
from dataclasses import dataclass
from pathlib import Path

from automount.core.context import Context


@dataclass
class ScriptResult:
    """Result of running a check script."""

    script_name: str
    returncode: int | None
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def success(self) -> bool:
        """True if script completed successfully."""
        return self.returncode == 0 and not self.timed_out


def run_script(
    script_path: Path,
    context: Context,
    timeout: int | None = None,
) -> ScriptResult:
    """
    Run a check script and capture its output.

    Args:
        script_path: Path to the script to run
        context: Execution context
        timeout: Timeout in seconds (None waits for sshfs however long it takes)

    Returns:
        ScriptResult with output and exit code
    """
    try:
        result = context.run([str(script_path)], timeout=timeout)
    except subprocess.TimeoutExpired:
        return ScriptResult(
            script_name=script_path.name,
            returncode=None,
            stdout="",
            stderr="",
            timed_out=True,
        )
    except OSError as e:
        return ScriptResult(
            script_name=script_path.name,
            returncode=None,
            stdout="",
            stderr=str(e),
        )

    return ScriptResult(
        script_name=script_path.name,
        returncode=result.returncode,
        stdout=result.stdout,
        stderr=result.stderr,
    )
