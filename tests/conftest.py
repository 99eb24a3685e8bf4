"""Shared test fixtures."""

import subprocess
import sys
from pathlib import Path

import pytest

# Add project root to path for package imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from automount.core.config import Settings  # noqa: E402


class MockContext:
    """Mock Context for testing without real system access."""

    def __init__(
        self,
        tools_available: list[str] | None = None,
        command_outputs: dict[tuple, str | Exception | subprocess.CompletedProcess] | None = None,
        file_contents: dict[str, str] | None = None,
        directories: list[str] | None = None,
        unlistable: list[str] | None = None,
        root: bool = True,
    ):
        self.tools_available = set(tools_available or [])
        self.command_outputs = command_outputs or {}
        self.file_contents = file_contents or {}
        self.directories = set(directories or [])
        self.unlistable = set(unlistable or [])
        self.root = root
        self.commands_run: list[list[str]] = []
        self.sleeps: list[float] = []
        self.file_modes: dict[str, int] = {}
        self.removed_trees: list[str] = []

    def check_tool(self, name: str) -> bool:
        """Check if tool is in mocked available list."""
        return name in self.tools_available

    def run(
        self,
        cmd: list[str],
        check: bool = False,
        **kwargs,
    ) -> subprocess.CompletedProcess:
        """Return mocked command output."""
        self.commands_run.append(cmd)
        key = tuple(cmd)
        if key not in self.command_outputs:
            raise KeyError(f"No mock output for command: {cmd}")

        output = self.command_outputs[key]
        if isinstance(output, Exception):
            raise output

        # Allow passing CompletedProcess directly for non-zero return codes
        if isinstance(output, subprocess.CompletedProcess):
            return output

        return subprocess.CompletedProcess(
            cmd,
            returncode=0,
            stdout=output,
            stderr="",
        )

    def read_file(self, path: str) -> str:
        """Return mocked file content."""
        if path not in self.file_contents:
            raise FileNotFoundError(f"No mock content for: {path}")
        return self.file_contents[path]

    def write_file(self, path: str, content: str, mode: int = 0o644) -> None:
        """Store written content in the mocked files."""
        self.file_contents[path] = content
        self.file_modes[path] = mode

    def remove_file(self, path: str) -> bool:
        """Drop a mocked file."""
        return self.file_contents.pop(path, None) is not None

    def remove_tree(self, path: str) -> None:
        """Drop every mocked file below path."""
        self.removed_trees.append(path)
        prefix = path.rstrip("/") + "/"
        for name in [p for p in self.file_contents if p.startswith(prefix)]:
            del self.file_contents[name]

    def file_exists(self, path: str) -> bool:
        """Check if path is in mocked files."""
        return path in self.file_contents or path in self.directories

    def is_dir(self, path: str) -> bool:
        """A path is a directory if declared or if mocked files live under it."""
        if path in self.directories:
            return True
        path_with_slash = path.rstrip("/") + "/"
        return any(p.startswith(path_with_slash) for p in self.file_contents)

    def list_dir(self, path: str) -> list[str]:
        """List mocked children; unlistable paths fail like a dead mount."""
        if path in self.unlistable:
            raise OSError(5, "Input/output error", path)
        if not self.is_dir(path):
            raise FileNotFoundError(path)
        prefix = path.rstrip("/") + "/"
        return sorted({p[len(prefix):].split("/")[0] for p in self.file_contents if p.startswith(prefix)})

    def make_dirs(self, path: str) -> None:
        """Record a created directory."""
        self.directories.add(path)

    def sleep(self, seconds: float) -> None:
        """Record sleeps instead of blocking."""
        self.sleeps.append(seconds)

    def is_root(self) -> bool:
        return self.root


def completed(cmd: list[str], returncode: int = 0, stdout: str = "", stderr: str = "") -> subprocess.CompletedProcess:
    """Build a CompletedProcess for command_outputs."""
    return subprocess.CompletedProcess(cmd, returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def mock_context():
    """Factory fixture for creating MockContext instances."""
    def _create(**kwargs) -> MockContext:
        return MockContext(**kwargs)
    return _create


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings with every directory under tmp_path."""
    return Settings(
        config_dir=tmp_path / "etc" / "auto-mount",
        log_dir=tmp_path / "var" / "log" / "auto-mount",
        bin_dir=tmp_path / "usr" / "local" / "bin",
        service_dir=tmp_path / "etc" / "systemd" / "system",
        cron_dir=tmp_path / "etc" / "cron.d",
        logrotate_dir=tmp_path / "etc" / "logrotate.d",
    )
