"""
Typed view of the user settings in config.py.

The rest of the app never reads config.py directly: it asks a ConfigHolder for
an immutable ConfigSnapshot and works with that for the whole operation.
"""

import logging
import os
import threading
from dataclasses import dataclass, field, replace
from datetime import timedelta
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CACHE_DIR = os.path.join("~", ".rngpaper", "cache")
TAG_MARKER = "@"

ORIENTATION_RESOLUTIONS = {
    "landscape": "1920x1080",
    "portrait": "1080x1920",
    "squarish": "1440x1440",
}


def _flag(value: bool) -> str:
    return "1" if value else "0"


@dataclass(frozen=True)
class Categories:
    general: bool = False
    anime: bool = True
    people: bool = False

    def as_flags(self) -> str:
        return _flag(self.general) + _flag(self.anime) + _flag(self.people)


@dataclass(frozen=True)
class Purity:
    sfw: bool = True
    sketchy: bool = False
    nsfw: bool = False

    def as_flags(self) -> str:
        return _flag(self.sfw) + _flag(self.sketchy) + _flag(self.nsfw)


@dataclass(frozen=True)
class SearchOptions:
    base_url: str = "https://wallhaven.cc/api/v1/search"
    timeout_seconds: float = 30
    empty_retries: int = 5
    empty_retry_delay_ms: int = 250
    include_last_page: bool = False


@dataclass(frozen=True)
class ConfigSnapshot:
    collections: Tuple[str, ...]
    hotkey: str
    interval_minutes: int = 10
    orientation: str = "landscape"
    image_resolution: str = ""
    api_key: Optional[str] = None
    categories: Categories = field(default_factory=Categories)
    purity: Purity = field(default_factory=Purity)
    cache_dir: str = DEFAULT_CACHE_DIR
    search: SearchOptions = field(default_factory=SearchOptions)
    scheduler_enabled: bool = False
    scheduler_initial_delay_minutes: int = 0
    apply_on_startup: bool = False

    @property
    def poll_interval(self) -> timedelta:
        return timedelta(minutes=self.interval_minutes)

    @property
    def resolution(self) -> str:
        return self.image_resolution or ORIENTATION_RESOLUTIONS.get(self.orientation, "")

    @property
    def cache_path(self) -> str:
        return os.path.abspath(os.path.expanduser(self.cache_dir or DEFAULT_CACHE_DIR))


def _dedupe(values: Iterable[Any]) -> Tuple[str, ...]:
    seen = []
    for value in values:
        tag = str(value).strip()
        if tag and tag not in seen:
            seen.append(tag)
    return tuple(seen)


def validate(snapshot: ConfigSnapshot) -> ConfigSnapshot:
    """Raise ConfigError if the snapshot cannot drive a wallpaper change."""
    if not snapshot.collections:
        raise ConfigError("At least one collection tag must be configured.")
    if any(not tag.strip() for tag in snapshot.collections):
        raise ConfigError("Collection tags must not be empty.")
    for tag in snapshot.collections:
        if not tag.startswith(TAG_MARKER):
            logger.warning("Collection '%s' does not start with '%s'; searching it as plain text.", tag, TAG_MARKER)
    if not snapshot.hotkey or not snapshot.hotkey.strip():
        raise ConfigError("A hotkey must be configured (e.g. 'ctrl+alt+w').")
    if snapshot.interval_minutes <= 0:
        raise ConfigError(f"Interval must be a positive number of minutes, got {snapshot.interval_minutes}.")
    if snapshot.orientation not in ORIENTATION_RESOLUTIONS:
        raise ConfigError(
            f"Unsupported orientation '{snapshot.orientation}'. "
            f"Use one of: {', '.join(sorted(ORIENTATION_RESOLUTIONS))}."
        )
    if snapshot.search.empty_retries < 1:
        raise ConfigError("empty_retries must be at least 1.")
    return snapshot


def build_snapshot(values: Mapping[str, Any]) -> ConfigSnapshot:
    """Build and validate a snapshot from config.py-style names."""
    categories = dict(values.get("Categories") or {})
    purity = dict(values.get("Purity") or {})
    cache_settings = dict(values.get("CacheSettings") or {})
    search_settings = dict(values.get("SearchSettings") or {})
    scheduler_settings = dict(values.get("SchedulerSettings") or {})
    search_defaults = SearchOptions()

    try:
        snapshot = ConfigSnapshot(
            collections=_dedupe(values.get("Collections") or []),
            hotkey=str(values.get("KeyBind") or "").strip(),
            interval_minutes=int(values.get("IntervalMinutes", 10)),
            orientation=str(values.get("Orientation") or "landscape").strip().lower(),
            image_resolution=str(values.get("ImageResolution") or "").strip(),
            api_key=str(values.get("ApiKey") or "").strip() or None,
            categories=Categories(
                general=bool(categories.get("general", False)),
                anime=bool(categories.get("anime", True)),
                people=bool(categories.get("people", False)),
            ),
            purity=Purity(
                sfw=bool(purity.get("sfw", True)),
                sketchy=bool(purity.get("sketchy", False)),
                nsfw=bool(purity.get("nsfw", False)),
            ),
            cache_dir=str(cache_settings.get("directory") or DEFAULT_CACHE_DIR),
            search=SearchOptions(
                base_url=str(search_settings.get("base_url") or search_defaults.base_url),
                timeout_seconds=float(search_settings.get("timeout_seconds", search_defaults.timeout_seconds)),
                empty_retries=int(
                    search_settings.get("empty_retries", search_defaults.empty_retries)
                ),
                empty_retry_delay_ms=int(
                    search_settings.get("empty_retry_delay_ms", search_defaults.empty_retry_delay_ms)
                ),
                include_last_page=bool(search_settings.get("include_last_page", False)),
            ),
            scheduler_enabled=bool(scheduler_settings.get("enabled", False)),
            scheduler_initial_delay_minutes=max(int(scheduler_settings.get("initial_delay_minutes", 0)), 0),
            apply_on_startup=bool(values.get("ApplyOnStartup", False)),
        )
    except (TypeError, ValueError) as error:
        raise ConfigError(f"Invalid setting: {error}") from error
    return validate(snapshot)


def load_config() -> ConfigSnapshot:
    """Read config.py and return a validated snapshot."""
    import config

    return build_snapshot(vars(config))


class ConfigHolder:
    """Process-wide holder handing out immutable snapshots to concurrent readers."""

    def __init__(self, snapshot: ConfigSnapshot):
        self._lock = threading.Lock()
        self._snapshot = validate(snapshot)

    def snapshot(self) -> ConfigSnapshot:
        with self._lock:
            return self._snapshot

    def update(self, **changes: Any) -> ConfigSnapshot:
        with self._lock:
            updated = validate(replace(self._snapshot, **changes))
            self._snapshot = updated
            return updated

    def describe(self) -> Dict[str, str]:
        snapshot = self.snapshot()
        return {
            "collections": ", ".join(snapshot.collections),
            "categories": snapshot.categories.as_flags(),
            "purity": snapshot.purity.as_flags(),
            "resolution": snapshot.resolution,
            "interval": f"{snapshot.interval_minutes} min",
            "api_key": "set" if snapshot.api_key else "not set",
        }
