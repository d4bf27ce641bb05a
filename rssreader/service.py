"""
FeedService: the operations the HTTP layer calls.

Wires Registry, FeedStore, AutoSaver and the fetcher together. Instances are
built explicitly (build_service) and passed to create_app.
"""
from __future__ import annotations

import logging

from rssreader.autosave import AutoSaver
from rssreader.config import Settings
from rssreader.errors import CorruptStateError, FetchError, InvalidInputError
from rssreader.export import snapshot_to_rss
from rssreader.fetcher import Fetcher, make_fetcher
from rssreader.logging_utils import log_event
from rssreader.persistence import FeedStore
from rssreader.registry import Registry
from rssreader.schemas import FeedSnapshot, Subscription


class FeedService:
    def __init__(
        self,
        registry: Registry,
        store: FeedStore,
        fetcher: Fetcher,
        *,
        auto_save: bool = True,
        default_feeds: list[str] | None = None,
    ):
        self.registry = registry
        self.store = store
        self.fetcher = fetcher
        self.default_feeds = list(default_feeds or [])
        self.autosaver: AutoSaver | None = AutoSaver(store) if auto_save else None
        if self.autosaver is not None:
            registry.add_listener(self.autosaver.request)

    # --- lifecycle ---

    def open(self) -> None:
        """Load persisted feeds (corrupt file -> start empty), start auto-save, seed defaults."""
        try:
            self.store.load()
        except CorruptStateError as exc:
            log_event("feeds_load_corrupt", level=logging.ERROR, path=str(self.store.path), error=str(exc))
        if self.autosaver is not None:
            self.autosaver.start()
        if self.default_feeds:
            self.seed_defaults(self.default_feeds)

    def close(self) -> None:
        """Stop auto-save and flush pending changes."""
        if self.autosaver is not None:
            self.autosaver.stop()
        else:
            self.store.save_if_needed()

    # --- operations ---

    def add_subscription(self, url: str) -> Subscription:
        """Fetch the feed once to learn its metadata, then register it."""
        url = (url or "").strip()
        if not url:
            raise InvalidInputError("URL parameter is required")
        snapshot = self.fetcher(url)
        subscription = snapshot.to_subscription()
        # Key on the URL the user asked for, not whatever the feed reports
        subscription.url = url
        return self.registry.add(subscription)

    def is_subscribed(self, url: str) -> bool:
        return (url or "").strip() in self.registry

    def get_subscription_content(self, url: str) -> FeedSnapshot:
        return self.registry.get_content(url)

    def list_subscriptions(self) -> list[Subscription]:
        return self.registry.list()

    def remove_subscription(self, url: str) -> None:
        self.registry.remove(url)

    def export_as_feed(self, url: str) -> str:
        return snapshot_to_rss(self.get_subscription_content(url))

    def seed_defaults(self, urls: list[str]) -> int:
        """
        Add default feeds on first run (empty registry only).

        Feeds that fail to fetch are logged and skipped.
        Returns the number of feeds added.
        """
        if len(self.registry) > 0:
            return 0

        added = 0
        for url in urls:
            try:
                self.add_subscription(url)
            except (FetchError, InvalidInputError) as exc:
                log_event("seed_feed_failed", level=logging.WARNING, url=url, error=str(exc))
                continue
            added += 1
        log_event("feeds_seeded", requested=len(urls), added=added)
        return added


def build_service(settings: Settings, *, fetcher: Fetcher | None = None) -> FeedService:
    if fetcher is None:
        fetcher = make_fetcher(timeout_s=settings.fetch_timeout_s)
    registry = Registry(fetcher)
    store = FeedStore(registry, settings.feeds_path)
    return FeedService(
        registry,
        store,
        fetcher,
        auto_save=settings.auto_save,
        default_feeds=settings.default_feeds,
    )
