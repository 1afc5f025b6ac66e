import logging
import random
import time
from typing import Callable, Optional, Sequence

from errors import ExhaustedError
from wallhaven_client import SearchClient, SearchQuery, SearchResultPage, WallpaperItem

EMPTY_RETRIES = 5
EMPTY_RETRY_DELAY = 0.25


class ResultSelector:
    """Picks one wallpaper at random from a paginated search.

    The first page is fetched without an explicit page number. When the server
    reports zero pages the first page is requested again after a short delay, up
    to ``max_retries`` more times, then ExhaustedError is raised.

    Pages are drawn from ``[1, total_pages)``, so the last page is never chosen
    unless ``include_last_page`` is set.
    """

    def __init__(
        self,
        client: SearchClient,
        max_retries: int = EMPTY_RETRIES,
        retry_delay: float = EMPTY_RETRY_DELAY,
        include_last_page: bool = False,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], None] = time.sleep,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.client = client
        self.max_retries = max(int(max_retries), 1)
        self.retry_delay = retry_delay
        self.include_last_page = include_last_page
        self.rng = rng or random.Random()
        self.sleep = sleep
        self.logger = logger or logging.getLogger(__name__)

    def select(self, query: SearchQuery) -> WallpaperItem:
        first_page = self._fetch_first_page(query)
        total_pages = first_page.total_pages

        if total_pages == 1:
            return self._pick(first_page.items, query, 1)

        page = self.choose_page(total_pages)
        self.logger.info("Query '%s' has %d pages, picked page %d", query.tag, total_pages, page)
        if page == 1:
            return self._pick(first_page.items, query, 1)

        result = self.client.search(query, page=page)
        return self._pick(result.items, query, page)

    def choose_page(self, total_pages: int) -> int:
        upper = total_pages + 1 if self.include_last_page else total_pages
        return self.rng.randrange(1, upper)

    def _fetch_first_page(self, query: SearchQuery) -> SearchResultPage:
        attempts = self.max_retries + 1
        for attempt in range(1, attempts + 1):
            result = self.client.search(query)
            if result.total_pages > 0:
                return result
            self.logger.warning("Query '%s' returned no pages (attempt %d/%d)", query.tag, attempt, attempts)
            if attempt < attempts:
                self.sleep(self.retry_delay)

        raise ExhaustedError(f"Wallhaven reported no results for '{query.tag}' after {attempts} attempts")

    def _pick(self, items: Sequence[WallpaperItem], query: SearchQuery, page: int) -> WallpaperItem:
        if not items:
            raise ExhaustedError(f"Page {page} of '{query.tag}' contains no wallpapers")
        return self.rng.choice(items)
