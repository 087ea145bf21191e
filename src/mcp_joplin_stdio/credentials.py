"""Joplin API token auto-discovery.

Joplin desktop stores its Web Clipper token in ``settings.json`` under the
``api.token`` key. When ``JOPLIN_TOKEN`` is not set we read it from there so
the server works out of the box. Discovery never raises: every failure is
logged and reported as ``None``.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from pathlib import Path

from .logging import get_logger

logger = get_logger(__name__)

TOKEN_KEY = "api.token"
SETTINGS_DIR = "joplin-desktop"
SETTINGS_FILE = "settings.json"


class Platform(str, Enum):
    MACOS = "darwin"
    WINDOWS = "win32"
    LINUX = "linux"


def current_platform(sys_platform: str | None = None) -> Platform:
    value = sys_platform if sys_platform is not None else sys.platform
    if value == "darwin":
        return Platform.MACOS
    if value in ("win32", "cygwin"):
        return Platform.WINDOWS
    # Every other POSIX flavour uses the XDG layout.
    return Platform.LINUX


def settings_path(platform: Platform, *, home: Path, appdata: str | None = None) -> Path:
    """Return where Joplin desktop keeps ``settings.json`` on ``platform``."""
    if platform is Platform.MACOS:
        return home / "Library" / "Application Support" / SETTINGS_DIR / SETTINGS_FILE
    if platform is Platform.WINDOWS:
        base = Path(appdata) if appdata else home / "AppData" / "Roaming"
        return base / SETTINGS_DIR / SETTINGS_FILE
    return home / ".config" / SETTINGS_DIR / SETTINGS_FILE


def default_settings_path() -> Path:
    return settings_path(
        current_platform(),
        home=Path.home(),
        appdata=os.environ.get("APPDATA"),
    )


def mask_token(token: str | None) -> str:
    if not token:
        return "<none>"
    if len(token) <= 8:
        return "****"
    return f"{token[:4]}****"


def discover_token(path: Path | None = None) -> str | None:
    """Read the API token from Joplin's settings file, or return ``None``."""
    path = path if path is not None else default_settings_path()

    if not path.is_file():
        logger.warning("Joplin settings not found at %s", path)
        return None

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.warning("Failed to auto-discover Joplin token: cannot read %s: %s", path, exc)
        return None

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning("Failed to auto-discover Joplin token: malformed JSON in %s: %s", path, exc)
        return None

    if not isinstance(data, dict):
        logger.warning(
            "Failed to auto-discover Joplin token: %s does not contain a JSON object", path
        )
        return None

    if TOKEN_KEY not in data:
        logger.warning("API token not found in Joplin settings (%s has no %r key)", path, TOKEN_KEY)
        return None

    token = data[TOKEN_KEY]
    if token is None:
        logger.warning("API token not found in Joplin settings (%r is null)", TOKEN_KEY)
        return None
    if not isinstance(token, str) or not token:
        logger.warning("API token not found in Joplin settings (%r is empty or not a string)", TOKEN_KEY)
        return None

    logger.info("Discovered Joplin API token %s from %s", mask_token(token), path)
    return token


def resolve_token(explicit: str | None) -> str | None:
    """An explicit token always wins; discovery only runs without one."""
    if explicit:
        logger.debug("Using Joplin API token %s from JOPLIN_TOKEN", mask_token(explicit))
        return explicit
    return discover_token()
