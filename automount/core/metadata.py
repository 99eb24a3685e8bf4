"""Metadata parsing from generated check script headers."""

from typing import Any

import yaml


class MetadataError(Exception):
    """Error parsing script metadata."""

    pass


# Required fields in metadata
REQUIRED_FIELDS = {"server", "config", "log", "version"}

# Maximum lines to search for header
MAX_HEADER_LINES = 20


def parse_metadata(content: str) -> dict[str, Any] | None:
    """
    Parse auto-mount metadata from a check script's header comments.

    Args:
        content: Full script content

    Returns:
        Parsed metadata dict, or None if no header found

    Raises:
        MetadataError: If header found but malformed or missing required fields
    """
    header_lines = content.split("\n")[:MAX_HEADER_LINES]

    start_idx = None
    for i, line in enumerate(header_lines):
        if line.strip() == "# automount:":
            start_idx = i
            break

    if start_idx is None:
        return None

    # Indented comment lines after the marker form a YAML mapping
    yaml_lines = []
    for line in header_lines[start_idx + 1:]:
        if not line.startswith("#   "):
            break
        yaml_lines.append(line[4:])

    if not yaml_lines:
        return None

    try:
        metadata = yaml.safe_load("\n".join(yaml_lines))
    except yaml.YAMLError as e:
        raise MetadataError(f"Invalid YAML in metadata: {e}")

    if not isinstance(metadata, dict):
        raise MetadataError("Metadata must be a YAML mapping")

    missing = REQUIRED_FIELDS - set(metadata.keys())
    if missing:
        raise MetadataError(f"Missing required fields: {', '.join(sorted(missing))}")

    return metadata
