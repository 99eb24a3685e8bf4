"""Registry of server configs, one ``<name>.conf`` file per server."""

import dataclasses
from collections.abc import Callable, Iterator
from pathlib import Path

from automount.core.config import Settings
from automount.core.server import (
    NAME_PATTERN,
    ConfigError,
    ConfigInvalid,
    ServerConfig,
    load_server_config,
    render_server_config,
)


class RegistryError(Exception):
    """Error in a registry operation."""

    pass


class InvalidName(RegistryError):
    """Server name does not match the allowed pattern."""

    def __init__(self, name: str):
        super().__init__(
            f"Invalid server name '{name}': use letters, numbers, hyphens and underscores"
        )
        self.name = name


class DuplicateName(RegistryError):
    """A server with this name already exists."""

    def __init__(self, name: str):
        super().__init__(f"Server '{name}' already exists")
        self.name = name


class NotFound(RegistryError):
    """No server with this name exists."""

    def __init__(self, name: str):
        super().__init__(f"Server '{name}' not found")
        self.name = name


DeleteHook = Callable[[ServerConfig], None]


class Registry:
    """
    CRUD over server configs stored in ``settings.config_dir``.

    Operations are not locked; they are meant to be run by one operator
    at a time.
    """

    def __init__(self, settings: Settings, on_delete: list[DeleteHook] | None = None):
        self.settings = settings
        self._on_delete: list[DeleteHook] = list(on_delete or [])

    @property
    def directory(self) -> Path:
        return self.settings.config_dir

    def add_delete_hook(self, hook: DeleteHook) -> None:
        """Register a callable run with each deleted record."""
        self._on_delete.append(hook)

    def _path(self, name: str) -> Path:
        if not NAME_PATTERN.match(name):
            raise InvalidName(name)
        return self.settings.config_path(name)

    def _load(self, path: Path) -> ServerConfig:
        config = load_server_config(str(path))
        if config.name != path.stem:
            raise ConfigInvalid(
                f"SERVER_NAME '{config.name}' does not match file name {path.name}"
            )
        return config

    def exists(self, name: str) -> bool:
        return self._path(name).exists()

    def _write(self, config: ServerConfig) -> None:
        problems = config.validate()
        if problems:
            raise ConfigInvalid("; ".join(problems))
        path = self._path(config.name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_server_config(config))
        path.chmod(0o644)

    def create(self, config: ServerConfig) -> ServerConfig:
        """
        Register a new server.

        Raises:
            InvalidName: If the name fails the pattern check
            DuplicateName: If the name is already registered
            ConfigInvalid: If any other field is invalid
        """
        if self.exists(config.name):
            raise DuplicateName(config.name)
        self._write(config)
        return config

    def read(self, name: str) -> ServerConfig:
        """
        Load a server by name.

        Raises:
            NotFound: If no such server is registered
            ConfigInvalid: If its file is corrupt
        """
        path = self._path(name)
        if not path.exists():
            raise NotFound(name)
        return self._load(path)

    def update(self, name: str, config: ServerConfig) -> ServerConfig:
        """
        Replace every field of an existing server. The name is kept.

        Raises:
            NotFound: If no such server is registered
        """
        if not self.exists(name):
            raise NotFound(name)
        updated = dataclasses.replace(config, name=name)
        self._write(updated)
        return updated

    def delete(self, name: str) -> ServerConfig:
        """
        Remove a server and notify delete hooks.

        A corrupt config file is still removed; hooks then receive a
        record carrying only the name.

        Raises:
            NotFound: If no such server is registered
        """
        path = self._path(name)
        if not path.exists():
            raise NotFound(name)

        try:
            config = self._load(path)
        except ConfigError:
            config = ServerConfig(
                name=name, ssh_key="", user_host="", remote_path="", mount_point=""
            )

        path.unlink()
        for hook in self._on_delete:
            hook(config)
        return config

    def names(self) -> Iterator[str]:
        """Yield the name of every config file, valid or not, ordered by name."""
        if not self.directory.is_dir():
            return

        for path in sorted(self.directory.glob("*.conf")):
            if NAME_PATTERN.match(path.stem):
                yield path.stem

    def list(self) -> Iterator[ServerConfig]:
        """
        Yield every readable server config, ordered by file name.

        Storage is re-read on every call. Invalid files are skipped.
        """
        for name in self.names():
            try:
                yield self._load(self.settings.config_path(name))
            except ConfigError:
                # Skip unreadable configs
                continue
