import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlencode, urlsplit

import requests

from errors import ConfigError, DecodeError, NetworkError
from settings import ConfigSnapshot

REQUEST_TIMEOUT = 30
DOWNLOAD_CHUNK_SIZE = 8192
USER_AGENT = "rngpaper/1.0"


@dataclass(frozen=True)
class WallpaperItem:
    path: str
    id: str

    @classmethod
    def from_payload(cls, payload: Any) -> "WallpaperItem":
        if not isinstance(payload, dict):
            raise DecodeError(f"Expected a wallpaper object, got {type(payload).__name__}")
        path = payload.get("path")
        if not isinstance(path, str) or not path.strip():
            raise DecodeError("Wallpaper entry has no 'path'")
        wallpaper_id = payload.get("id")
        if not wallpaper_id:
            # wallhaven paths end in wallhaven-<id>.<ext>
            stem = urlsplit(path).path.rsplit("/", 1)[-1].rsplit(".", 1)[0]
            wallpaper_id = stem.replace("wallhaven-", "", 1) or path
        return cls(path=path, id=str(wallpaper_id))


@dataclass(frozen=True)
class SearchResultPage:
    items: Tuple[WallpaperItem, ...]
    total_pages: int
    page: int = 1


@dataclass(frozen=True)
class SearchQuery:
    """Base query for one wallpaper change; the tag stays fixed across pages."""

    base_url: str
    tag: str
    categories: str
    purity: str
    api_key: Optional[str] = None

    def params(self, page: Optional[int] = None) -> Dict[str, str]:
        params = {
            "q": self.tag,
            "categories": self.categories,
            "purity": self.purity,
        }
        if self.api_key:
            params["apikey"] = self.api_key
        if page is not None:
            params["page"] = str(page)
        return params

    def to_url(self, page: Optional[int] = None, redact: bool = True) -> str:
        params = self.params(page)
        if redact and "apikey" in params:
            params["apikey"] = "***"
        return f"{self.base_url}?{urlencode(params)}"


class SearchClient:
    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = REQUEST_TIMEOUT,
        rng: Optional[random.Random] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", USER_AGENT)
        self.timeout = timeout
        self.rng = rng or random.Random()
        self.logger = logger or logging.getLogger(__name__)

    def build_query(self, snapshot: ConfigSnapshot) -> SearchQuery:
        tags = [tag for tag in snapshot.collections if tag.strip()]
        if not tags:
            raise ConfigError("No collection tag available to search")
        return SearchQuery(
            base_url=snapshot.search.base_url,
            tag=self.rng.choice(tags),
            categories=snapshot.categories.as_flags(),
            purity=snapshot.purity.as_flags(),
            api_key=snapshot.api_key or None,
        )

    def search(self, query: SearchQuery, page: Optional[int] = None) -> SearchResultPage:
        self.logger.debug("Wallhaven search: %s", query.to_url(page))
        try:
            response = self.session.get(query.base_url, params=query.params(page), timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as error:
            raise NetworkError(f"Wallhaven request failed (q={query.tag}, page={page or 1}): {error}") from error

        try:
            data = response.json()
        except ValueError as error:
            raise DecodeError(f"Wallhaven returned invalid JSON: {error}") from error
        return self._parse_page(data, page or 1)

    def _parse_page(self, data: Any, page: int) -> SearchResultPage:
        if not isinstance(data, dict):
            raise DecodeError("Wallhaven response is not a JSON object")
        wallpapers = data.get("data")
        meta = data.get("meta")
        if not isinstance(wallpapers, list):
            raise DecodeError("Wallhaven response has no 'data' list")
        if not isinstance(meta, dict):
            raise DecodeError("Wallhaven response has no 'meta' object")
        last_page = meta.get("last_page")
        if isinstance(last_page, bool) or not isinstance(last_page, int):
            raise DecodeError(f"Wallhaven 'meta.last_page' is not an integer: {last_page!r}")

        items: List[WallpaperItem] = [WallpaperItem.from_payload(entry) for entry in wallpapers]
        return SearchResultPage(items=tuple(items), total_pages=last_page, page=page)

    def download(self, url: str, target_path: str) -> None:
        """Stream url into target_path. OSError from writing is left to the caller."""
        try:
            response = self.session.get(url, stream=True, timeout=self.timeout)
            response.raise_for_status()
            with open(target_path, "wb") as handle:
                for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    if chunk:
                        handle.write(chunk)
        except requests.RequestException as error:
            raise NetworkError(f"Download failed for {url}: {error}") from error
