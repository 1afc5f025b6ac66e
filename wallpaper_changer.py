import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from cache_manager import CacheManager
from desktop import DesktopWallpaper, describe_current
from errors import WallpaperError
from result_selector import ResultSelector
from settings import ConfigHolder, ConfigSnapshot
from wallhaven_client import SearchClient

MAX_WORKERS = 2


class WallpaperChanger:
    """Runs fetch -> select -> cache -> set off the caller's thread.

    Each trigger becomes its own job on a small worker pool. Failures are
    logged and never reach the trigger handler. Concurrent jobs are not
    ordered: the last one to finish sets the wallpaper.
    """

    def __init__(
        self,
        config_holder: ConfigHolder,
        client: SearchClient,
        cache_manager: CacheManager,
        desktop: DesktopWallpaper,
        logger: Optional[logging.Logger] = None,
        max_workers: int = MAX_WORKERS,
    ) -> None:
        self.config_holder = config_holder
        self.client = client
        self.cache_manager = cache_manager
        self.desktop = desktop
        self.logger = logger or logging.getLogger(__name__)
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="WallpaperChange")

    def build_selector(self, snapshot: ConfigSnapshot) -> ResultSelector:
        options = snapshot.search
        return ResultSelector(
            self.client,
            max_retries=options.empty_retries,
            retry_delay=options.empty_retry_delay_ms / 1000.0,
            include_last_page=options.include_last_page,
            rng=self.client.rng,
            logger=self.logger,
        )

    def change_wallpaper(self, trigger: str = "manual") -> Optional[Future]:
        """Queue a wallpaper change and return immediately."""
        return self._submit(self.change_wallpaper_now, trigger)

    def change_wallpaper_now(self, trigger: str = "manual") -> Optional[str]:
        """Change the wallpaper on the calling thread; return the applied path or None."""
        self.logger.info("Changing wallpaper (trigger: %s)", trigger)
        try:
            snapshot = self.config_holder.snapshot()
            query = self.client.build_query(snapshot)
            self.logger.info(
                "Searching '%s' (categories=%s, purity=%s, resolution=%s)",
                query.tag,
                query.categories,
                query.purity,
                snapshot.resolution,
            )
            item = self.build_selector(snapshot).select(query)
            self.logger.info("Selected wallpaper %s (%s)", item.id, item.path)

            local_path = self.cache_manager.resolve_or_fetch(item.path)

            previous = describe_current(self.desktop, self.logger)
            if previous:
                self.logger.info("Current wallpaper: %s", previous)
            self.logger.info("Setting wallpaper to: %s", local_path)
            self.desktop.set_wallpaper(local_path)
            return local_path
        except WallpaperError as error:
            self.logger.error("Wallpaper change failed (trigger: %s): %s", trigger, error)
        except Exception as error:
            self.logger.exception("Unexpected error changing wallpaper (trigger: %s): %s", trigger, error)
        return None

    def empty_cache(self, trigger: str = "manual") -> Optional[Future]:
        """Delete the cache directory off the caller's thread."""
        self.logger.info("Emptying cache (trigger: %s)", trigger)
        return self._submit(self.cache_manager.empty_cache)

    def _submit(self, fn, *args) -> Optional[Future]:
        try:
            return self._executor.submit(fn, *args)
        except RuntimeError as error:
            # executor already shut down
            self.logger.warning("Ignoring request after shutdown: %s", error)
            return None

    def shutdown(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait)
