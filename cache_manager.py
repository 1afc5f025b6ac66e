import logging
import os
import shutil
import subprocess
import sys
import threading
from contextlib import suppress
from typing import Callable, Dict, List, Optional
from urllib.parse import unquote, urlsplit

from errors import FilesystemError

FALLBACK_FILE_NAME = "wallpaper"
PARTIAL_SUFFIX = ".part"

Downloader = Callable[[str, str], None]


def file_name_for(remote_path: str) -> str:
    """Local cache file name for a remote URL: its last path segment."""
    segment = urlsplit(remote_path).path.rsplit("/", 1)[-1]
    name = os.path.basename(unquote(segment))
    if name in ("", ".", ".."):
        return FALLBACK_FILE_NAME
    return name


class CacheManager:
    """Flat directory of downloaded wallpapers keyed by remote file name.

    A file that exists under the derived name is a cache hit: it is never
    re-downloaded or overwritten. Downloads land in a ``.part`` file first and
    are renamed into place only once complete.
    """

    def __init__(self, directory: str, downloader: Downloader, logger: Optional[logging.Logger] = None):
        self.directory = os.path.abspath(os.path.expanduser(directory))
        self.downloader = downloader
        self.logger = logger or logging.getLogger(__name__)
        # serializes fetches against empty_cache
        self._lock = threading.Lock()

    @property
    def cache_dir(self) -> str:
        """Return cache directory path"""
        return self.directory

    def path_for(self, remote_path: str) -> str:
        return os.path.join(self.directory, file_name_for(remote_path))

    def is_cached(self, remote_path: str) -> bool:
        return os.path.isfile(self.path_for(remote_path))

    def resolve_or_fetch(self, remote_path: str) -> str:
        target_path = self.path_for(remote_path)
        with self._lock:
            try:
                os.makedirs(self.directory, exist_ok=True)
            except OSError as error:
                raise FilesystemError(f"Unable to create cache directory {self.directory}: {error}") from error

            if os.path.isfile(target_path):
                self.logger.info("[CACHE] Hit: %s", os.path.basename(target_path))
                return target_path

            self.logger.info("[CACHE] Miss, downloading %s", remote_path)
            tmp_path = f"{target_path}{PARTIAL_SUFFIX}"
            try:
                self.downloader(remote_path, tmp_path)
                os.replace(tmp_path, target_path)
            except OSError as error:
                self._discard(tmp_path)
                raise FilesystemError(f"Unable to write {target_path}: {error}") from error
            except Exception:
                self._discard(tmp_path)
                raise
            return target_path

    def empty_cache(self) -> bool:
        with self._lock:
            if not os.path.exists(self.directory):
                return True
            try:
                shutil.rmtree(self.directory)
            except OSError as error:
                self.logger.error("[CACHE] Failed to empty %s: %s", self.directory, error)
                return False
        self.logger.info("[CACHE] Emptied %s", self.directory)
        return True

    def list_entries(self) -> List[Dict]:
        """Return cached files, most recent first"""
        with self._lock:
            if not os.path.isdir(self.directory):
                return []
            entries = []
            with os.scandir(self.directory) as scan:
                for entry in scan:
                    if entry.is_file() and not entry.name.endswith(PARTIAL_SUFFIX):
                        stat = entry.stat()
                        entries.append(
                            {"name": entry.name, "path": entry.path, "timestamp": stat.st_mtime, "size": stat.st_size}
                        )
        entries.sort(key=lambda item: item["timestamp"], reverse=True)
        return entries

    def has_items(self) -> bool:
        return bool(self.list_entries())

    def open_folder(self) -> None:
        os.makedirs(self.directory, exist_ok=True)
        try:
            if sys.platform.startswith("win"):
                os.startfile(self.directory)
            elif sys.platform == "darwin":
                subprocess.Popen(["open", self.directory])
            else:
                subprocess.Popen(["xdg-open", self.directory])
        except OSError as error:
            self.logger.warning("[CACHE] Unable to open %s: %s", self.directory, error)

    @staticmethod
    def _discard(path: str) -> None:
        with suppress(OSError):
            os.remove(path)
