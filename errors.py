class WallpaperError(RuntimeError):
    """Base class for every failure raised by the wallpaper pipeline."""


class NetworkError(WallpaperError):
    """Connection, timeout or HTTP status failure talking to a remote host."""


class DecodeError(WallpaperError):
    """Response body did not match the expected search schema."""


class ExhaustedError(WallpaperError):
    """No usable wallpaper left after selection (zero pages or empty page)."""


class FilesystemError(WallpaperError):
    """Cache directory or cache file could not be created or written."""


class ConfigError(WallpaperError):
    """A required setting is missing or invalid."""
