from __future__ import annotations

import json
import os

import pytest

from rssreader.errors import CorruptStateError, PersistenceError
from rssreader.persistence import FeedStore
from rssreader.registry import Registry
from rssreader.schemas import Subscription


def _key(s: Subscription):
    return (s.url, s.title, s.description, s.added_at)


def test_save_then_load_round_trip(registry, store, feeds_path, fetcher):
    registry.add(Subscription(url="https://a/feed.xml", title="A", description="Feed A"))
    registry.add(Subscription(url="https://b/feed.xml", title="B", description="Ünïcode"))
    store.save()

    fresh = Registry(fetcher)
    count = FeedStore(fresh, feeds_path).load()

    assert count == 2
    assert sorted(map(_key, fresh.list())) == sorted(map(_key, registry.list()))
    assert fresh.has_pending_changes() is False


def test_saved_file_layout(registry, store, feeds_path):
    registry.add(Subscription(url="https://a/feed.xml", title="A", description="Feed A"))
    store.save()

    data = json.loads(feeds_path.read_text(encoding="utf-8"))
    assert isinstance(data, list)
    assert set(data[0]) == {"url", "title", "description", "added_at", "updated_at"}
    assert data[0]["url"] == "https://a/feed.xml"
    assert "entries" not in data[0]


def test_save_clears_dirty_and_records_time(registry, store):
    registry.add(Subscription(url="https://a/feed.xml"))
    assert store.last_saved_at is None

    store.save()

    assert registry.has_pending_changes() is False
    assert store.last_saved_at is not None


def test_save_leaves_no_temp_file(registry, store, feeds_path):
    registry.add(Subscription(url="https://a/feed.xml"))
    store.save()
    assert feeds_path.exists()
    assert not store.temp_path.exists()


def test_save_creates_parent_directory(registry, tmp_path):
    path = tmp_path / "nested" / "dir" / "feeds.json"
    registry.add(Subscription(url="https://a/feed.xml"))
    FeedStore(registry, path).save()
    assert path.exists()


def test_save_if_needed_only_when_dirty(registry, store, feeds_path):
    assert store.save_if_needed() is False
    assert not feeds_path.exists()

    registry.add(Subscription(url="https://a/feed.xml"))
    assert store.save_if_needed() is True
    assert store.save_if_needed() is False


def test_load_missing_file_is_empty(registry, store):
    assert store.load() == 0
    assert registry.list() == []


def test_load_zero_byte_file_is_empty(registry, store, feeds_path):
    feeds_path.parent.mkdir(parents=True)
    feeds_path.write_bytes(b"")
    assert store.load() == 0
    assert registry.list() == []


def test_load_is_full_replace(registry, store, feeds_path):
    registry.add(Subscription(url="https://in-memory-only/feed.xml"))
    feeds_path.parent.mkdir(parents=True)
    feeds_path.write_text(json.dumps([{"url": "https://a/feed.xml", "title": "A", "description": ""}]))

    store.load()

    assert [s.url for s in registry.list()] == ["https://a/feed.xml"]


def test_load_skips_records_with_empty_url(registry, store, feeds_path):
    feeds_path.parent.mkdir(parents=True)
    feeds_path.write_text(
        json.dumps(
            [
                {"url": "", "title": "no url"},
                {"title": "missing url"},
                {"url": "https://a/feed.xml", "title": "A", "description": "d", "added_at": "2026-01-10T12:00:00Z"},
            ]
        )
    )

    assert store.load() == 1
    only = registry.get("https://a/feed.xml")
    assert only.title == "A"
    assert only.updated_at == only.added_at


def test_load_duplicate_urls_last_wins(registry, store, feeds_path):
    feeds_path.parent.mkdir(parents=True)
    feeds_path.write_text(
        json.dumps(
            [
                {"url": "https://a/feed.xml", "title": "first"},
                {"url": "https://a/feed.xml", "title": "second"},
            ]
        )
    )

    assert store.load() == 1
    assert registry.get("https://a/feed.xml").title == "second"


@pytest.mark.parametrize(
    "body",
    [
        "{not json",
        '{"url": "https://a/feed.xml"}',
        '["https://a/feed.xml"]',
        '[{"url": "https://a/feed.xml", "added_at": "yesterday-ish"}]',
    ],
)
def test_load_corrupt_file_raises_and_keeps_registry(registry, store, feeds_path, body):
    registry.add(Subscription(url="https://kept/feed.xml"))
    feeds_path.parent.mkdir(parents=True)
    feeds_path.write_text(body)

    with pytest.raises(CorruptStateError):
        store.load()

    assert [s.url for s in registry.list()] == ["https://kept/feed.xml"]


def test_rename_failure_falls_back_to_direct_write(registry, store, feeds_path, monkeypatch):
    def broken_replace(src, dst):
        raise OSError("EXDEV: cross-device link")

    monkeypatch.setattr(os, "replace", broken_replace)
    registry.add(Subscription(url="https://a/feed.xml", title="A"))

    store.save()

    data = json.loads(feeds_path.read_text(encoding="utf-8"))
    assert data[0]["title"] == "A"
    assert not store.temp_path.exists()
    assert registry.has_pending_changes() is False


def test_write_failure_raises_persistence_error_and_stays_dirty(registry, tmp_path):
    # Parent "directory" is a regular file, so nothing can be written under it
    blocker = tmp_path / "blocker"
    blocker.write_text("x")
    failing = FeedStore(registry, blocker / "feeds.json")
    registry.add(Subscription(url="https://a/feed.xml"))

    with pytest.raises(PersistenceError):
        failing.save()

    assert registry.has_pending_changes() is True


def test_save_overwrites_previous_file(registry, store, feeds_path):
    registry.add(Subscription(url="https://a/feed.xml"))
    registry.add(Subscription(url="https://b/feed.xml"))
    store.save()

    registry.remove("https://a/feed.xml")
    store.save()

    data = json.loads(feeds_path.read_text(encoding="utf-8"))
    assert [r["url"] for r in data] == ["https://b/feed.xml"]
