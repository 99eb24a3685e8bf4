"""auto-mount: keep sshfs mounts alive with per-server health checks."""

__version__ = "1.1.0"
