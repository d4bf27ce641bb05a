"""
Feed registry: thread-safe CRUD over subscribed-feed metadata.

The registry holds Subscriptions only. Entries are never stored; reading a
feed's content always goes through the fetcher (see Registry.get_content).
"""
from __future__ import annotations

from datetime import datetime
from typing import Callable

from rssreader.errors import InvalidInputError, NotFoundError
from rssreader.fetcher import Fetcher
from rssreader.logging_utils import log_event
from rssreader.rwlock import RWLock
from rssreader.schemas import FeedSnapshot, Subscription, utc_now


class Registry:
    """
    Mapping of feed URL -> Subscription behind a single reader/writer lock.

    Every mutation bumps a version counter and marks the registry dirty.
    Change listeners (e.g. the auto-saver) run after the lock is released.
    """

    def __init__(self, fetcher: Fetcher | None = None, *, clock: Callable[[], datetime] = utc_now):
        self._fetcher = fetcher
        self._clock = clock
        self._lock = RWLock()
        self._feeds: dict[str, Subscription] = {}
        self._version = 0
        self._saved_version = 0
        self._listeners: list[Callable[[], None]] = []

    def add_listener(self, callback: Callable[[], None]) -> None:
        self._listeners.append(callback)

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback()

    def _touch(self) -> None:
        # Caller holds the write lock
        self._version += 1

    # --- CRUD ---

    def add(self, subscription: Subscription | None) -> Subscription:
        """
        Insert a subscription, or update title/description of an existing one.

        Raises:
            InvalidInputError: subscription is None or its url is empty.
        """
        if subscription is None:
            raise InvalidInputError("subscription cannot be None")
        if not subscription.url:
            raise InvalidInputError("feed URL cannot be empty")

        now = self._clock()
        with self._lock.write_locked():
            existing = self._feeds.get(subscription.url)
            if existing is not None:
                existing.title = subscription.title
                existing.description = subscription.description
                existing.updated_at = now
                stored = existing
                event = "feed_updated"
            else:
                stored = Subscription(
                    url=subscription.url,
                    title=subscription.title,
                    description=subscription.description,
                    added_at=now,
                    updated_at=now,
                )
                self._feeds[stored.url] = stored
                event = "feed_added"
            self._touch()
            result = stored.model_copy()
            count = len(self._feeds)

        log_event(event, url=result.url, title=result.title, feeds=count)
        self._notify()
        return result

    def get(self, url: str) -> Subscription:
        """
        Return the stored (metadata-only) subscription.

        Raises:
            NotFoundError: url is empty or not registered.
        """
        if not url:
            raise NotFoundError("feed URL cannot be empty")
        with self._lock.read_locked():
            stored = self._feeds.get(url)
            if stored is None:
                raise NotFoundError(f"feed not found: {url}")
            return stored.model_copy()

    def get_content(self, url: str) -> FeedSnapshot:
        """
        Refresh-on-read.

        1. check the url is registered (read lock)
        2. fetch live content (no lock held)
        3. reconcile stored metadata with the fetch result (write lock)

        Returns the freshly fetched snapshot; FetchError propagates unchanged.
        """
        self.get(url)
        if self._fetcher is None:
            raise RuntimeError("registry has no fetcher configured")
        snapshot = self._fetcher(url)
        self.reconcile(url, snapshot)
        return snapshot

    def reconcile(self, url: str, snapshot: FeedSnapshot) -> bool:
        """
        Copy fetched metadata into the record stored under url.

        The record is looked up by the requested url; the feed may report a
        different one in snapshot.url.

        Returns True if title or description changed (the registry becomes dirty).
        A url removed while the fetch was in flight is not re-created.
        """
        now = self._clock()
        with self._lock.write_locked():
            stored = self._feeds.get(url)
            if stored is None:
                return False
            changed = stored.title != snapshot.title or stored.description != snapshot.description
            stored.title = snapshot.title
            stored.description = snapshot.description
            stored.updated_at = now
            if changed:
                self._touch()

        log_event("feed_refreshed", url=url, items=len(snapshot.entries), changed=changed)
        if changed:
            self._notify()
        return changed

    def list(self) -> list[Subscription]:
        """All subscriptions, metadata only. Order is not part of the contract."""
        with self._lock.read_locked():
            return [sub.model_copy() for sub in self._feeds.values()]

    def remove(self, url: str) -> None:
        """
        Raises:
            InvalidInputError: url is empty.
            NotFoundError: url is not registered (registry unchanged).
        """
        if not url:
            raise InvalidInputError("feed URL cannot be empty")
        with self._lock.write_locked():
            if url not in self._feeds:
                raise NotFoundError(f"feed not found: {url}")
            del self._feeds[url]
            self._touch()
            count = len(self._feeds)

        log_event("feed_removed", url=url, feeds=count)
        self._notify()

    def __contains__(self, url: object) -> bool:
        with self._lock.read_locked():
            return url in self._feeds

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._feeds)

    # --- Persistence hooks ---

    def has_pending_changes(self) -> bool:
        with self._lock.read_locked():
            return self._version != self._saved_version

    def snapshot(self) -> tuple[list[Subscription], int]:
        """Copies of all subscriptions plus the version they reflect."""
        with self._lock.read_locked():
            return [sub.model_copy() for sub in self._feeds.values()], self._version

    def mark_saved(self, version: int) -> None:
        """Clear the dirty flag unless a mutation happened after `version` was taken."""
        with self._lock.write_locked():
            if version > self._saved_version:
                self._saved_version = version

    def replace_all(self, subscriptions: list[Subscription]) -> None:
        """Swap the whole map (load is a full replace, not a merge). Leaves the registry clean."""
        feeds: dict[str, Subscription] = {}
        for sub in subscriptions:
            if sub.url:
                feeds[sub.url] = sub.model_copy()
        with self._lock.write_locked():
            self._feeds = feeds
            self._version += 1
            self._saved_version = self._version
