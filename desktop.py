"""
Desktop wallpaper backends.

Setting the wallpaper is an OS concern: Windows goes through
SystemParametersInfoW, GNOME through gsettings and macOS through osascript.
All of them raise WallpaperError on failure.
"""

import ctypes
import logging
import os
import subprocess
import sys
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlsplit

from errors import WallpaperError

SPI_SETDESKWALLPAPER = 20
SPI_GETDESKWALLPAPER = 0x0073
SPIF_UPDATEINIFILE = 0x01
SPIF_SENDWININICHANGE = 0x02
MAX_PATH = 260
GNOME_SCHEMA = "org.gnome.desktop.background"
COMMAND_TIMEOUT = 15

logger = logging.getLogger(__name__)


class DesktopWallpaper:
    """Base class; ``create()`` returns the backend for the running platform."""

    name = "unsupported"

    def set_wallpaper(self, image_path: str) -> None:
        raise WallpaperError(f"Setting the wallpaper is not supported on {sys.platform}")

    def get_current_wallpaper(self) -> str:
        raise WallpaperError(f"Reading the wallpaper is not supported on {sys.platform}")

    @staticmethod
    def create() -> "DesktopWallpaper":
        if sys.platform.startswith("win"):
            return WindowsWallpaper()
        if sys.platform == "darwin":
            return MacWallpaper()
        return GnomeWallpaper()


class WindowsWallpaper(DesktopWallpaper):
    name = "windows"

    def set_wallpaper(self, image_path: str) -> None:
        result = ctypes.windll.user32.SystemParametersInfoW(
            SPI_SETDESKWALLPAPER, 0, os.path.abspath(image_path), SPIF_UPDATEINIFILE | SPIF_SENDWININICHANGE
        )
        if not result:
            raise WallpaperError(f"SystemParametersInfoW failed: {ctypes.WinError()}")

    def get_current_wallpaper(self) -> str:
        buffer = ctypes.create_unicode_buffer(MAX_PATH)
        result = ctypes.windll.user32.SystemParametersInfoW(SPI_GETDESKWALLPAPER, MAX_PATH, buffer, 0)
        if not result or not buffer.value:
            raise WallpaperError("No desktop wallpaper is set")
        return buffer.value


def _run(command, timeout: int = COMMAND_TIMEOUT) -> str:
    try:
        completed = subprocess.run(command, capture_output=True, text=True, check=True, timeout=timeout)
    except (OSError, subprocess.SubprocessError) as error:
        raise WallpaperError(f"{command[0]} failed: {error}") from error
    return completed.stdout.strip()


class GnomeWallpaper(DesktopWallpaper):
    name = "gnome"

    def set_wallpaper(self, image_path: str) -> None:
        uri = Path(image_path).expanduser().resolve().as_uri()
        _run(["gsettings", "set", GNOME_SCHEMA, "picture-uri", uri])
        # GNOME 42+ keeps a separate key for the dark style; older versions lack it
        try:
            _run(["gsettings", "set", GNOME_SCHEMA, "picture-uri-dark", uri])
        except WallpaperError:
            logger.debug("picture-uri-dark not available")

    def get_current_wallpaper(self) -> str:
        value = _run(["gsettings", "get", GNOME_SCHEMA, "picture-uri"]).strip("'\"")
        if not value:
            raise WallpaperError("No desktop wallpaper is set")
        parsed = urlsplit(value)
        if parsed.scheme == "file":
            return unquote(parsed.path)
        return value


class MacWallpaper(DesktopWallpaper):
    name = "macos"

    def set_wallpaper(self, image_path: str) -> None:
        path = os.path.abspath(image_path).replace('"', '\\"')
        _run(["osascript", "-e", f'tell application "System Events" to set picture of every desktop to "{path}"'])

    def get_current_wallpaper(self) -> str:
        value = _run(["osascript", "-e", 'tell application "System Events" to get picture of current desktop'])
        if not value:
            raise WallpaperError("No desktop wallpaper is set")
        return value


def describe_current(desktop: DesktopWallpaper, log: Optional[logging.Logger] = None) -> Optional[str]:
    """Current wallpaper path, or None when it cannot be read."""
    try:
        return desktop.get_current_wallpaper()
    except WallpaperError as error:
        (log or logger).warning("Unable to read current wallpaper: %s", error)
        return None
