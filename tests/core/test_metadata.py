"""Tests for check script metadata parsing."""

import pytest
from automount.core.metadata import parse_metadata, MetadataError


VALID_HEADER = '''#!/usr/bin/python3
# automount:
#   server: plex-media
#   config: /etc/auto-mount/plex-media.conf
#   log: /var/log/auto-mount/plex-media.log
#   version: "1.1.0"

"""Keep the plex-media sshfs mount alive."""
'''

NO_HEADER = '''#!/bin/bash
# Auto-mount script for plex-media
source /etc/auto-mount/plex-media.conf
'''

INVALID_YAML = '''#!/usr/bin/python3
# automount:
#   server: [unclosed
'''

MISSING_FIELDS = '''#!/usr/bin/python3
# automount:
#   server: plex-media
'''


class TestParseMetadata:
    """Tests for parse_metadata function."""

    def test_parses_valid_header(self):
        """Parses all fields from a generated script."""
        meta = parse_metadata(VALID_HEADER)
        assert meta["server"] == "plex-media"
        assert meta["config"] == "/etc/auto-mount/plex-media.conf"
        assert meta["log"] == "/var/log/auto-mount/plex-media.log"
        assert meta["version"] == "1.1.0"

    def test_returns_none_for_no_header(self):
        """Returns None for scripts without an automount header."""
        assert parse_metadata(NO_HEADER) is None

    def test_raises_on_invalid_yaml(self):
        """Raises MetadataError for malformed YAML."""
        with pytest.raises(MetadataError, match="Invalid YAML"):
            parse_metadata(INVALID_YAML)

    def test_raises_on_missing_fields(self):
        """Raises MetadataError when required fields are missing."""
        with pytest.raises(MetadataError, match="config, log, version"):
            parse_metadata(MISSING_FIELDS)

    def test_header_must_be_near_top(self):
        """Headers past the first lines are ignored."""
        content = "\n" * 25 + VALID_HEADER
        assert parse_metadata(content) is None
