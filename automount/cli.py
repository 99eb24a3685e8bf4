"""Command-line interface for auto-mount."""

import argparse
import sys
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from automount import __version__
from automount.core.checker import run_check
from automount.core.config import Settings, SettingsError, load_settings
from automount.core.context import Context
from automount.core.installer import Installer
from automount.core.logging import tail_log
from automount.core.output import Output
from automount.core.registry import NotFound, Registry, RegistryError
from automount.core.render import SchedulerError
from automount.core.server import (
    DEFAULT_CHECK_INTERVAL,
    NAME_PATTERN,
    ConfigError,
    ServerConfig,
    default_mount_point,
)
from automount.core.updates import REPO_URL, UpdateError, check_for_update
from automount.lib.filesystem import FileError
from automount.lib.packages import ensure_sshfs
from automount.lib.process import CommandError


# Commands that touch /etc, systemd or the mount table
PRIVILEGED_COMMANDS = {"add", "edit", "remove", "uninstall", "check"}


class CLIParser(argparse.ArgumentParser):
    """Argument parser that exits 1 on usage errors."""

    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


@dataclass
class Session:
    """Everything a command needs, built once per invocation."""

    settings: Settings
    context: Context
    registry: Registry
    installer: Installer
    prompt: Callable[[str], str]


def info(message: str) -> None:
    print(f"[INFO] {message}")


def warn(message: str) -> None:
    print(f"[WARNING] {message}")


def error(message: str) -> None:
    print(f"[ERROR] {message}", file=sys.stderr)


def positive_int(value: str) -> int:
    """argparse type for check intervals."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {value}")
    return number


def add_server_options(parser: argparse.ArgumentParser) -> None:
    """Flags that let add/edit run without prompts."""
    parser.add_argument("--ssh-key", help="Path to the SSH private key")
    parser.add_argument("--user-host", help="Remote login, e.g. user@server.com")
    parser.add_argument("--remote-path", help="Directory on the remote server")
    parser.add_argument("--mount-point", help="Local mount point (default: /mnt/NAME)")
    parser.add_argument(
        "--interval",
        type=positive_int,
        help=f"Check interval in minutes (default: {DEFAULT_CHECK_INTERVAL})",
    )
    parser.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")


def create_parser() -> CLIParser:
    """Create the argument parser."""
    parser = CLIParser(
        prog="auto-mount",
        description="Keep sshfs mounts alive with per-server health checks",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"auto-mount {__version__}",
    )
    parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="Settings file (default: $AUTO_MOUNT_SETTINGS or /etc/auto-mount.yaml)",
    )
    parser.add_argument(
        "--format",
        choices=["plain", "json"],
        default="plain",
        help="Output format for list and check (default: plain)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    add_parser = subparsers.add_parser("add", help="Add a new server configuration")
    add_parser.add_argument("--name", help="Unique server name (letters, digits, - and _)")
    add_server_options(add_parser)
    add_parser.add_argument(
        "--no-test",
        action="store_true",
        help="Skip the test run after installing",
    )

    edit_parser = subparsers.add_parser("edit", help="Edit an existing server configuration")
    edit_parser.add_argument("name", nargs="?", help="Server to edit")
    add_server_options(edit_parser)

    subparsers.add_parser("list", help="List all configured servers")

    remove_parser = subparsers.add_parser("remove", help="Remove a server configuration")
    remove_parser.add_argument("name", nargs="?", help="Server to remove")
    remove_parser.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")

    uninstall_parser = subparsers.add_parser("uninstall", help="Remove all servers and clean up")
    uninstall_parser.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")

    subparsers.add_parser("update", help="Check for updates")
    subparsers.add_parser("help", help="Show this help message")

    check_parser = subparsers.add_parser("check", help="Run a server's mount check now")
    check_parser.add_argument("name", help="Server to check")

    logs_parser = subparsers.add_parser("logs", help="Show a server's recent log lines")
    logs_parser.add_argument("name", help="Server whose log to show")
    logs_parser.add_argument(
        "-n",
        "--lines",
        type=positive_int,
        default=20,
        help="Number of lines to show (default: 20)",
    )

    return parser


def ask(session: Session, label: str, default: str | None = None, required: bool = False) -> str:
    """Prompt for a value; empty input keeps the default."""
    suffix = f" [{default}]" if default else ""
    value = session.prompt(f"{label}{suffix}: ").strip()
    while not value and not default and required:
        value = session.prompt(f"{label} (required): ").strip()
    return value or (default or "")


def ask_interval(session: Session, default: int) -> int:
    """Prompt until a positive number of minutes is given."""
    while True:
        raw = ask(session, "Check interval in minutes", default=str(default))
        try:
            return positive_int(raw)
        except argparse.ArgumentTypeError as e:
            error(f"Check interval {e}")


def confirm(session: Session, question: str) -> bool:
    answer = session.prompt(f"{question} (y/N): ").strip()
    return answer in ("y", "Y")


def ask_new_name(session: Session) -> str:
    """Prompt until the name is valid and unused."""
    while True:
        name = ask(
            session,
            "Enter a unique name for this server (e.g., plex-media, backup-server)",
            required=True,
        )
        if not NAME_PATTERN.match(name):
            error("Server name can only contain letters, numbers, hyphens, and underscores")
            continue
        if session.registry.exists(name):
            error(f"Server '{name}' already exists. Please choose a different name.")
            continue
        return name


def collect_config(
    args: argparse.Namespace,
    session: Session,
    name: str,
    current: ServerConfig | None = None,
) -> ServerConfig:
    """Build a config from flags, prompting for anything not given."""

    def field(flag_value, label, default, example=""):
        if flag_value is not None:
            return flag_value
        if default:
            return ask(session, label, default=default)
        return ask(session, f"{label}{example}", required=True)

    ssh_key = field(args.ssh_key, "SSH Key path", current and current.ssh_key)
    user_host = field(
        args.user_host, "User@Host", current and current.user_host, " (e.g., user@server.com)"
    )
    remote_path = field(
        args.remote_path, "Remote path", current and current.remote_path, " (e.g., /home/user/data)"
    )
    mount_point = field(
        args.mount_point,
        "Mount point",
        current.mount_point if current else default_mount_point(name),
    )
    if args.interval is not None:
        interval = args.interval
    else:
        interval = ask_interval(
            session, current.check_interval if current else DEFAULT_CHECK_INTERVAL
        )

    return ServerConfig(
        name=name,
        ssh_key=ssh_key,
        user_host=user_host,
        remote_path=remote_path,
        mount_point=mount_point,
        check_interval=interval,
    )


def print_config(config: ServerConfig) -> None:
    print(f"  SSH Key: {config.ssh_key}")
    print(f"  User@Host: {config.user_host}")
    print(f"  Remote Path: {config.remote_path}")
    print(f"  Mount Point: {config.mount_point}")
    print(f"  Check Interval: {config.check_interval} minutes")


def print_hints(session: Session, name: str) -> None:
    info(f"To view logs: auto-mount logs {name} (or tail -f {session.settings.log_path(name)})")
    info(f"To manually run: {session.settings.script_path(name)}")


def install_dependencies(session: Session) -> None:
    manager = ensure_sshfs(session.context)
    if manager is None:
        info("sshfs is already installed")
    else:
        info(f"Installed sshfs with {manager}")


def pick_server(session: Session, name: str | None, verb: str) -> str | None:
    """Use the given name, or list servers and ask for one."""
    if name:
        return name
    cmd_list_servers(session, "plain")
    print()
    if next(session.registry.names(), None) is None:
        warn(f"No servers to {verb}")
        return None
    return ask(session, f"Enter server name to {verb}")


def cmd_add(args: argparse.Namespace, session: Session) -> int:
    """Add a new server."""
    install_dependencies(session)

    if args.name:
        if session.registry.exists(args.name):
            error(f"Server '{args.name}' already exists")
            return 1
        name = args.name
    else:
        name = ask_new_name(session)

    info(f"Configuring server: {name}")
    config = collect_config(args, session, name)
    problems = config.validate()
    if problems:
        error("; ".join(problems))
        return 1
    session.installer.validate(config)

    print()
    info(f"Configuration summary for '{name}':")
    print_config(config)
    print()
    if not args.yes and not confirm(session, "Is this correct?"):
        error("Configuration cancelled")
        return 1

    session.registry.create(config)
    info(f"Configuration saved to {session.settings.config_path(name)}")

    try:
        session.installer.install(config)
    except (CommandError, FileError):
        # Drop the record so the server can be added again; the delete
        # hook also removes whatever install managed to write
        session.registry.delete(name)
        raise
    info(f"Check script generated: {session.settings.script_path(name)}")
    info(f"Scheduled with {session.installer.scheduler()} every {config.check_interval} minutes")

    if not args.no_test:
        info(f"Testing installation for {name}...")
        result = session.installer.test_run(name)
        if result.success:
            info("Test run successful!")
        else:
            warn(f"Test run failed. Check the log file: {session.settings.log_path(name)}")

    info(f"Server '{name}' added successfully!")
    print_hints(session, name)
    return 0


def cmd_edit(args: argparse.Namespace, session: Session) -> int:
    """Edit an existing server."""
    name = pick_server(session, args.name, "edit")
    if name is None:
        return 0
    if not name:
        error("Server name cannot be empty")
        return 1

    current = session.registry.read(name)
    install_dependencies(session)

    info(f"Editing server '{name}'...")
    info("Current configuration:")
    print_config(current)
    print()
    info("Enter new configuration (press Enter to keep current value):")

    config = collect_config(args, session, name, current=current)
    problems = config.validate()
    if problems:
        error("; ".join(problems))
        return 1
    session.installer.validate(config)

    print()
    info(f"New configuration summary for '{name}':")
    print_config(config)
    print()
    if not args.yes and not confirm(session, "Is this correct?"):
        error("Edit cancelled")
        return 1

    session.registry.update(name, config)
    info("Configuration updated")
    session.installer.install(config)

    info(f"Server '{name}' updated successfully!")
    print_hints(session, name)
    return 0


def cmd_list_servers(session: Session, format: str) -> int:
    """List configured servers."""
    output = Output()
    servers = []
    for config in session.registry.list():
        servers.append({
            "name": config.name,
            "host": config.user_host,
            "remote_path": config.remote_path,
            "mount": config.mount_point,
            "check": f"Every {config.check_interval} minutes",
            "log": str(session.settings.log_path(config.name)),
            "script": session.installer.script_status(config),
        })

    output.emit({"servers": servers})
    if servers:
        output.set_summary(f"Total: {len(servers)} server(s) configured")
    else:
        output.warning("No servers configured")
        output.set_summary("Total: 0 server(s) configured")

    output.render(format, "Configured Servers")
    return 0


def cmd_list(args: argparse.Namespace, session: Session) -> int:
    return cmd_list_servers(session, args.format)


def cmd_remove(args: argparse.Namespace, session: Session) -> int:
    """Remove a server and everything generated for it."""
    name = pick_server(session, args.name, "remove")
    if name is None:
        return 0
    if not name:
        error("Server name cannot be empty")
        return 1
    if not session.registry.exists(name):
        raise NotFound(name)

    if not args.yes:
        warn(f"This will remove all configuration and files for server '{name}'")
        if not confirm(session, "Are you sure?"):
            info("Removal cancelled")
            return 0

    info(f"Removing server '{name}'...")
    session.registry.delete(name)
    info(f"Server '{name}' removed successfully!")
    return 0


def cmd_uninstall(args: argparse.Namespace, session: Session) -> int:
    """Remove every server, then the config and log directories."""
    if not args.yes:
        warn("This will remove ALL server configurations and files")
        if not confirm(session, "Are you sure?"):
            info("Uninstall cancelled")
            return 0

    info("Removing all auto-mount services...")
    for name in list(session.registry.names()):
        info(f"Removing server: {name}")
        session.registry.delete(name)

    session.installer.purge()
    info("All auto-mount services removed successfully!")
    return 0


def cmd_update(args: argparse.Namespace, session: Session) -> int:
    """Check for a newer release."""
    info(f"Current version: {__version__}")
    info(f"Repository: {REPO_URL}")
    info("Checking for latest release...")

    try:
        status = check_for_update(session.settings.release_url)
    except UpdateError as e:
        warn(str(e))
        info(f"You can check manually at: {REPO_URL}/releases")
        return 1

    info(f"Latest version: {status.latest}")
    if status.update_available:
        warn("A newer version is available!")
        info(f"Download it from {REPO_URL}/releases, then reinstall with: pip install --upgrade .")
        info("Existing servers keep working; run 'auto-mount edit NAME' to regenerate their scripts.")
    else:
        info("You are running the latest version!")
    return 0


def cmd_check(args: argparse.Namespace, session: Session) -> int:
    """Run one mount check in the foreground."""
    name = args.name
    if not session.registry.exists(name):
        raise NotFound(name)

    outcome = run_check(
        str(session.settings.config_path(name)),
        str(session.settings.log_path(name)),
        context=session.context,
        sshfs_options=session.settings.sshfs_options,
        echo=sys.stdout if args.format == "plain" else None,
    )

    output = Output()
    output.emit({
        "server": name,
        "outcome": outcome.value,
        "status": "healthy" if outcome.success else "failed",
    })
    output.set_summary(f"Exit code: {outcome.exit_code}")
    output.render(args.format)
    return outcome.exit_code


def cmd_logs(args: argparse.Namespace, session: Session) -> int:
    """Show the tail of a server's log."""
    name = args.name
    log_path = session.settings.log_path(name)
    if not session.registry.exists(name) and not log_path.exists():
        raise NotFound(name)

    lines = tail_log(log_path, args.lines)
    if not lines:
        warn(f"No log entries for '{name}' in {log_path}")
        return 0
    for line in lines:
        print(line)
    return 0


COMMANDS = {
    "add": cmd_add,
    "edit": cmd_edit,
    "list": cmd_list,
    "remove": cmd_remove,
    "uninstall": cmd_uninstall,
    "update": cmd_update,
    "check": cmd_check,
    "logs": cmd_logs,
}


def main(
    argv: list[str] | None = None,
    context: Context | None = None,
    prompt: Callable[[str], str] = input,
) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command in (None, "help"):
        parser.print_help()
        return 0

    context = context or Context()

    if args.command in PRIVILEGED_COMMANDS and not context.is_root():
        error(f"'{args.command}' must be run as root")
        info(f"Usage: sudo auto-mount {args.command}")
        return 1

    try:
        settings = load_settings(args.settings)
    except SettingsError as e:
        error(str(e))
        return 1

    installer = Installer(settings, context)
    registry = Registry(settings, on_delete=[installer.teardown])
    session = Session(
        settings=settings,
        context=context,
        registry=registry,
        installer=installer,
        prompt=prompt,
    )

    try:
        return COMMANDS[args.command](args, session)
    except (RegistryError, ConfigError, SchedulerError, CommandError, FileError) as e:
        error(str(e))
        return 1
    except (KeyboardInterrupt, EOFError):
        print()
        error("Cancelled")
        return 1


if __name__ == "__main__":
    sys.exit(main())
