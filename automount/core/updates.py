"""Release version check.

Kept apart from the mount checker: nothing here runs on a schedule.
"""

import json
from dataclasses import dataclass
from urllib.error import URLError
from urllib.request import Request, urlopen

from automount import __version__


REPO_URL = "https://github.com/caelen-cater/auto-mount"


class UpdateError(Exception):
    """Could not determine the latest release."""

    pass


@dataclass
class UpdateStatus:
    """Installed version compared with the latest release."""

    current: str
    latest: str

    @property
    def update_available(self) -> bool:
        return is_newer(self.latest, self.current)


def _version_key(version: str) -> tuple[int, ...] | None:
    parts = version.strip().lstrip("vV").split(".")
    try:
        return tuple(int(p) for p in parts)
    except ValueError:
        return None


def is_newer(latest: str, current: str) -> bool:
    """
    True if ``latest`` is a newer release than ``current``.

    Numeric dotted versions are compared component-wise; anything else
    counts as newer when it differs.
    """
    latest_key = _version_key(latest)
    current_key = _version_key(current)
    if latest_key is not None and current_key is not None:
        return latest_key > current_key
    return latest.lstrip("vV") != current.lstrip("vV")


def fetch_latest_version(url: str, timeout: int = 10) -> str:
    """
    Fetch the latest release tag from a GitHub-style releases API.

    Raises:
        UpdateError: On network errors or an unexpected response
    """
    req = Request(url)
    req.add_header("Accept", "application/vnd.github+json")
    req.add_header("User-Agent", f"auto-mount/{__version__}")
    try:
        with urlopen(req, timeout=timeout) as response:
            payload = json.loads(response.read().decode("utf-8", errors="replace"))
    except (URLError, OSError) as e:
        raise UpdateError(f"Could not reach {url}: {e}") from e
    except json.JSONDecodeError as e:
        raise UpdateError(f"Invalid response from {url}: {e}") from e

    tag = payload.get("tag_name") if isinstance(payload, dict) else None
    if not isinstance(tag, str) or not tag:
        raise UpdateError("Could not fetch latest version information")
    return tag


def check_for_update(url: str, current: str = __version__, timeout: int = 10) -> UpdateStatus:
    """Compare the running version with the latest published release."""
    return UpdateStatus(current=current, latest=fetch_latest_version(url, timeout=timeout))
