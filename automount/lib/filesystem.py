"""Filesystem utilities."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from automount.core.context import Context


class FileError(Exception):
    """Error accessing a file."""

    pass


def write_file(
    path: str,
    content: str,
    mode: int = 0o644,
    context: "Context | None" = None,
) -> None:
    """
    Write file contents with the given permissions.

    Raises:
        FileError: If the file cannot be written
    """
    if context is None:
        from automount.core.context import Context
        context = Context()

    try:
        context.write_file(path, content, mode=mode)
    except OSError as e:
        raise FileError(f"Cannot write {path}: {e}") from e


def remove_files(
    paths: list[str],
    context: "Context | None" = None,
) -> list[str]:
    """
    Remove files, ignoring ones that are already gone.

    Returns:
        Paths that were actually removed

    Raises:
        FileError: If an existing file cannot be removed
    """
    if context is None:
        from automount.core.context import Context
        context = Context()

    removed = []
    for path in paths:
        try:
            if context.remove_file(path):
                removed.append(path)
        except OSError as e:
            raise FileError(f"Cannot remove {path}: {e}") from e
    return removed
