import random
from typing import Dict, List, Optional

import pytest

from errors import ExhaustedError, NetworkError
from result_selector import ResultSelector
from wallhaven_client import SearchQuery, SearchResultPage, WallpaperItem

QUERY = SearchQuery("https://wallhaven.cc/api/v1/search", "@demo", "010", "100")


def _items(prefix: str, count: int) -> tuple:
    return tuple(
        WallpaperItem(path=f"https://w.wallhaven.cc/full/{prefix}/{prefix}{i}.jpg", id=f"{prefix}{i}")
        for i in range(count)
    )


class StubClient:
    """Serves canned pages; ``first_pages`` is consumed on each page-less call."""

    def __init__(self, first_pages: List[SearchResultPage], pages: Optional[Dict[int, SearchResultPage]] = None):
        self.first_pages = list(first_pages)
        self.pages = pages or {}
        self.calls: List[Optional[int]] = []

    def search(self, query, page=None):
        assert query is QUERY
        self.calls.append(page)
        if page is None:
            return self.first_pages.pop(0) if len(self.first_pages) > 1 else self.first_pages[0]
        return self.pages[page]


def _selector(client, **kwargs) -> ResultSelector:
    kwargs.setdefault("rng", random.Random(3))
    kwargs.setdefault("sleep", lambda _: None)
    return ResultSelector(client, **kwargs)


def test_single_page_never_requests_another_page():
    items = _items("a", 2)
    client = StubClient([SearchResultPage(items=items, total_pages=1)])
    selector = _selector(client)

    picked = {selector.select(QUERY) for _ in range(50)}

    assert picked == set(items)
    assert set(client.calls) == {None}


def test_page_choice_excludes_last_page():
    selector = _selector(StubClient([SearchResultPage(items=(), total_pages=1)]))

    chosen = {selector.choose_page(5) for _ in range(500)}

    assert chosen == {1, 2, 3, 4}


def test_page_choice_can_include_last_page():
    selector = _selector(StubClient([SearchResultPage(items=(), total_pages=1)]), include_last_page=True)

    chosen = {selector.choose_page(5) for _ in range(500)}

    assert chosen == {1, 2, 3, 4, 5}


def test_two_pages_reuse_first_page():
    items = _items("a", 3)
    client = StubClient([SearchResultPage(items=items, total_pages=2)])

    picked = _selector(client).select(QUERY)

    assert picked in items
    assert client.calls == [None]


def test_other_page_is_fetched_with_same_query():
    first = SearchResultPage(items=_items("a", 2), total_pages=3)
    second = SearchResultPage(items=_items("b", 2), total_pages=3, page=2)
    client = StubClient([first], {2: second})
    selector = _selector(client)
    selector.choose_page = lambda total: 2

    picked = selector.select(QUERY)

    assert picked in second.items
    assert client.calls == [None, 2]


def test_zero_pages_retried_then_succeeds():
    sleeps = []
    items = _items("a", 1)
    client = StubClient(
        [
            SearchResultPage(items=(), total_pages=0),
            SearchResultPage(items=(), total_pages=0),
            SearchResultPage(items=items, total_pages=1),
        ]
    )

    picked = _selector(client, retry_delay=0.25, sleep=sleeps.append).select(QUERY)

    assert picked == items[0]
    assert client.calls == [None, None, None]
    assert sleeps == [0.25, 0.25]


def test_zero_pages_exhausts_after_retries():
    sleeps = []
    client = StubClient([SearchResultPage(items=(), total_pages=0)])

    with pytest.raises(ExhaustedError):
        _selector(client, max_retries=2, sleep=sleeps.append).select(QUERY)

    assert client.calls == [None, None, None]
    assert len(sleeps) == 2


def test_retry_count_is_at_least_one():
    client = StubClient([SearchResultPage(items=(), total_pages=0)])

    with pytest.raises(ExhaustedError):
        _selector(client, max_retries=0).select(QUERY)

    assert len(client.calls) == 2


def test_empty_chosen_page_is_exhausted():
    client = StubClient([SearchResultPage(items=(), total_pages=1)])

    with pytest.raises(ExhaustedError):
        _selector(client).select(QUERY)


def test_network_error_propagates():
    class FailingClient:
        def search(self, query, page=None):
            raise NetworkError("offline")

    with pytest.raises(NetworkError):
        _selector(FailingClient()).select(QUERY)
