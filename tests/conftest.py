# tests/conftest.py
from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

import pytest

from rssreader.errors import FetchError
from rssreader.persistence import FeedStore
from rssreader.registry import Registry
from rssreader.schemas import Entry, FeedSnapshot
from rssreader.service import FeedService


class FakeFetcher:
    """
    Stands in for fetch_feed: returns canned snapshots by URL.

    Unknown URLs raise FetchError, like an unreachable feed.
    """

    def __init__(self, feeds: dict[str, FeedSnapshot] | None = None):
        self.feeds = dict(feeds or {})
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def __call__(self, url: str) -> FeedSnapshot:
        with self._lock:
            self.calls.append(url)
        if url not in self.feeds:
            raise FetchError(f"RSS_FETCH_FAIL: HTTP 404 for {url}", code="FETCH_PERMANENT")
        return self.feeds[url].model_copy(deep=True)


class StepClock:
    """Deterministic clock: every call is one second after the previous one."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 10, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now = self.now + timedelta(seconds=1)
        return self.now


def make_snapshot(url: str, title: str, *, description: str = "", items: int = 0) -> FeedSnapshot:
    entries = [
        Entry(
            title=f"{title} item {i}",
            summary=f"summary {i}",
            link=f"{url}#item-{i}",
            guid=f"{url}#item-{i}",
            published_at=datetime(2026, 1, 10, 12, i, 0, tzinfo=timezone.utc),
        )
        for i in range(items)
    ]
    return FeedSnapshot(url=url, title=title, description=description, entries=entries)


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher(
        {
            "https://a/feed.xml": make_snapshot("https://a/feed.xml", "A", description="Feed A", items=2),
            "https://b/feed.xml": make_snapshot("https://b/feed.xml", "B", description="Feed B", items=1),
        }
    )


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def registry(fetcher, clock) -> Registry:
    return Registry(fetcher, clock=clock)


@pytest.fixture
def feeds_path(tmp_path):
    return tmp_path / "data" / "feeds.json"


@pytest.fixture
def store(registry, feeds_path) -> FeedStore:
    return FeedStore(registry, feeds_path)


@pytest.fixture
def service(registry, store, fetcher) -> FeedService:
    # Synchronous saves only; autosave has its own tests
    return FeedService(registry, store, fetcher, auto_save=False)
