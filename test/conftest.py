"""Shared fixtures: config snapshots and fake Wallhaven responses."""

import os
import sys
from typing import Dict, List, Optional
from unittest.mock import MagicMock

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir)))

from settings import build_snapshot  # noqa: E402


def wallhaven_payload(paths: List[str], last_page: int) -> Dict:
    return {
        "data": [{"id": f"id{index}", "path": path, "resolution": "1920x1080"} for index, path in enumerate(paths)],
        "meta": {"current_page": 1, "last_page": last_page, "per_page": 24, "total": len(paths)},
    }


def fake_response(payload: Optional[Dict] = None, content: bytes = b"") -> MagicMock:
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    response.iter_content.return_value = [content]
    return response


@pytest.fixture
def config_values() -> Dict:
    return {
        "Collections": ["@demo"],
        "IntervalMinutes": 10,
        "Orientation": "landscape",
        "ImageResolution": "",
        "ApiKey": "",
        "Categories": {"general": False, "anime": True, "people": False},
        "Purity": {"sfw": True, "sketchy": False, "nsfw": False},
        "KeyBind": "ctrl+alt+w",
        "CacheSettings": {"directory": ""},
        "SearchSettings": {"empty_retries": 3, "empty_retry_delay_ms": 0},
        "SchedulerSettings": {"enabled": False},
    }


@pytest.fixture
def snapshot(config_values, tmp_path):
    config_values["CacheSettings"] = {"directory": str(tmp_path / "cache")}
    return build_snapshot(config_values)
