"""Server records and their flat key=value config files.

A server config file looks like a shell script full of variable
assignments, but it is never sourced. Each line is parsed on its own:

    # Auto-mount configuration for plex-media
    SERVER_NAME="plex-media"
    SSH_KEY="/root/.ssh/id_ed25519"
    USER_HOST="media@nas.example.com"
    REMOTE_PATH="/srv/media"
    MOUNT_POINT="/mnt/plex-media"
    CHECK_INTERVAL="5"

Unknown keys, repeated keys and anything that is not ``KEY=value`` make
the whole file invalid.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from automount.core.context import Context


NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

DEFAULT_CHECK_INTERVAL = 5

# File key -> ServerConfig attribute, in file order
KEY_FIELDS = {
    "SERVER_NAME": "name",
    "SSH_KEY": "ssh_key",
    "USER_HOST": "user_host",
    "REMOTE_PATH": "remote_path",
    "MOUNT_POINT": "mount_point",
    "CHECK_INTERVAL": "check_interval",
}

KEY_COMMENTS = {
    "SERVER_NAME": "Server name",
    "SSH_KEY": "SSH Key path",
    "USER_HOST": "User@Host",
    "REMOTE_PATH": "Remote path on the server",
    "MOUNT_POINT": "Local mount point",
    "CHECK_INTERVAL": "Check interval in minutes",
}

REQUIRED_KEYS = ["SERVER_NAME", "SSH_KEY", "USER_HOST", "REMOTE_PATH", "MOUNT_POINT"]

ASSIGNMENT_PATTERN = re.compile(r"^([A-Z_][A-Z0-9_]*)=(.*)$")

# Characters that need a backslash inside double quotes
ESCAPED_CHARS = '"\\$`'


class ConfigError(Exception):
    """Error loading a server config."""

    pass


class ConfigMissing(ConfigError):
    """The server config file does not exist."""

    pass


class ConfigInvalid(ConfigError):
    """The server config file exists but cannot be used."""

    pass


class ConfigIncomplete(ConfigInvalid):
    """Required values are missing or empty."""

    pass


def default_mount_point(name: str) -> str:
    """Mount point used when the operator does not pick one."""
    return f"/mnt/{name}"


@dataclass(frozen=True)
class ServerConfig:
    """One registered remote mount."""

    name: str
    ssh_key: str
    user_host: str
    remote_path: str
    mount_point: str
    check_interval: int = DEFAULT_CHECK_INTERVAL

    @property
    def remote(self) -> str:
        """sshfs remote argument, ``user@host:/path``."""
        return f"{self.user_host}:{self.remote_path}"

    def validate(self) -> list[str]:
        """
        Check record invariants.

        Returns:
            List of problems (empty if valid)
        """
        problems = []

        if not NAME_PATTERN.match(self.name):
            problems.append(
                "name may only contain letters, numbers, hyphens and underscores"
            )

        for key in REQUIRED_KEYS:
            value = getattr(self, KEY_FIELDS[key])
            if not value:
                problems.append(f"{key} is empty")
            elif "\n" in value or "\r" in value:
                problems.append(f"{key} must be a single line")

        user, _, host = self.user_host.partition("@")
        if self.user_host and not (user and host):
            problems.append("USER_HOST must be in user@host form")

        if self.mount_point and not self.mount_point.startswith("/"):
            problems.append("MOUNT_POINT must be an absolute path")

        if (
            not isinstance(self.check_interval, int)
            or isinstance(self.check_interval, bool)
            or self.check_interval < 1
        ):
            problems.append("CHECK_INTERVAL must be a positive integer")

        return problems

    @classmethod
    def from_values(cls, values: dict[str, str]) -> "ServerConfig":
        """
        Build a record from parsed file values.

        Raises:
            ConfigIncomplete: If required values are missing or empty
            ConfigInvalid: If a value is invalid
        """
        missing = [key for key in REQUIRED_KEYS if not values.get(key)]
        if missing:
            raise ConfigIncomplete(
                f"Missing required configuration variables: {', '.join(missing)}"
            )

        raw_interval = values.get("CHECK_INTERVAL") or str(DEFAULT_CHECK_INTERVAL)
        try:
            interval = int(raw_interval)
        except ValueError:
            raise ConfigInvalid(f"CHECK_INTERVAL is not a number: {raw_interval!r}")

        config = cls(
            name=values["SERVER_NAME"],
            ssh_key=values["SSH_KEY"],
            user_host=values["USER_HOST"],
            remote_path=values["REMOTE_PATH"],
            mount_point=values["MOUNT_POINT"],
            check_interval=interval,
        )
        problems = config.validate()
        if problems:
            raise ConfigInvalid("; ".join(problems))
        return config


def _parse_value(raw: str, lineno: int) -> str:
    """Decode the right-hand side of an assignment."""
    if raw.startswith('"'):
        chars = []
        i = 1
        while i < len(raw):
            ch = raw[i]
            if ch == "\\" and i + 1 < len(raw) and raw[i + 1] in ESCAPED_CHARS:
                chars.append(raw[i + 1])
                i += 2
                continue
            if ch == '"':
                _check_trailing(raw[i + 1:], lineno)
                return "".join(chars)
            chars.append(ch)
            i += 1
        raise ConfigInvalid(f"line {lineno}: unterminated double quote")

    if raw.startswith("'"):
        end = raw.find("'", 1)
        if end == -1:
            raise ConfigInvalid(f"line {lineno}: unterminated single quote")
        _check_trailing(raw[end + 1:], lineno)
        return raw[1:end]

    value = raw.split(" #", 1)[0].strip()
    if any(c in value for c in " \t\"'$`\\"):
        raise ConfigInvalid(f"line {lineno}: unquoted value contains special characters")
    return value


def _check_trailing(rest: str, lineno: int) -> None:
    rest = rest.strip()
    if rest and not rest.startswith("#"):
        raise ConfigInvalid(f"line {lineno}: unexpected text after closing quote")


def parse_server_config(content: str) -> dict[str, str]:
    """
    Parse config file content into raw key/value pairs.

    Args:
        content: Full config file content

    Returns:
        Mapping of file keys (e.g. ``USER_HOST``) to decoded values

    Raises:
        ConfigInvalid: On malformed lines, unknown keys or repeated keys
    """
    values: dict[str, str] = {}

    for lineno, line in enumerate(content.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        match = ASSIGNMENT_PATTERN.match(stripped)
        if match is None:
            raise ConfigInvalid(f"line {lineno}: expected KEY=value")

        key, raw = match.groups()
        if key not in KEY_FIELDS:
            raise ConfigInvalid(f"line {lineno}: unknown key {key}")
        if key in values:
            raise ConfigInvalid(f"line {lineno}: duplicate key {key}")

        values[key] = _parse_value(raw, lineno)

    return values


def _quote(value: str) -> str:
    escaped = "".join("\\" + c if c in ESCAPED_CHARS else c for c in value)
    return f'"{escaped}"'


def render_server_config(config: ServerConfig, generated_at: datetime | None = None) -> str:
    """Serialize a record in the commented layout operators are used to."""
    generated_at = generated_at or datetime.now()
    lines = [
        f"# Auto-mount configuration for {config.name}",
        f"# Generated on {generated_at.strftime('%a %b %d %H:%M:%S %Y')}",
    ]
    for key, attr in KEY_FIELDS.items():
        lines.append("")
        lines.append(f"# {KEY_COMMENTS[key]}")
        lines.append(f"{key}={_quote(str(getattr(config, attr)))}")
    return "\n".join(lines) + "\n"


def load_server_config(path: str, context: "Context | None" = None) -> ServerConfig:
    """
    Read and parse a server config file.

    Raises:
        ConfigMissing: If the file does not exist
        ConfigInvalid: If the file cannot be read or parsed
    """
    if context is None:
        from automount.core.context import Context
        context = Context()

    try:
        content = context.read_file(path)
    except FileNotFoundError:
        raise ConfigMissing(f"Configuration file {path} not found")
    except OSError as e:
        raise ConfigInvalid(f"Cannot read {path}: {e}")

    return ServerConfig.from_values(parse_server_config(content))
