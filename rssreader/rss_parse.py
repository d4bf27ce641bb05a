# rssreader/rss_parse.py
from __future__ import annotations

import io
import time
from datetime import datetime, timezone
from typing import Any

import feedparser

from rssreader.schemas import Entry, FeedSnapshot


class RSSParseError(ValueError):
    """Raised when a document cannot be read as RSS or Atom (maps to PARSE_ERROR)."""


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _struct_to_datetime(st: time.struct_time | None) -> datetime | None:
    if not st:
        return None
    return datetime(*st[:6], tzinfo=timezone.utc)


def entry_published_at(entry: dict[str, Any]) -> datetime | None:
    """Published date, falling back to the updated date."""
    for key in ("published_parsed", "updated_parsed"):
        dt = _struct_to_datetime(entry.get(key))
        if dt is not None:
            return dt
    return None


def entry_content(entry: dict[str, Any]) -> str:
    content = entry.get("content")
    if isinstance(content, list) and content:
        return _text(content[0].get("value"))
    return ""


def entry_guid(entry: dict[str, Any]) -> str:
    for key in ("id", "guid", "link"):
        value = _text(entry.get(key))
        if value:
            return value
    return ""


def parse_feed(document: str | bytes, *, url: str) -> FeedSnapshot:
    """
    Convert an RSS or Atom document into a FeedSnapshot.

    Rules:
    - feed title/description from the channel (description falls back to subtitle)
    - every entry is kept, fields are best effort ("" when absent)
    - published_at from the published date, else the updated date, else None
    - a document with no feed version, no title and no entries -> RSSParseError
    - preserve entry order
    """
    # Always hand feedparser a stream: a bare string is treated as a path or URL
    if isinstance(document, str):
        document = document.encode("utf-8")
    parsed = feedparser.parse(io.BytesIO(document))
    feed = parsed.get("feed", {})
    entries = parsed.get("entries", [])

    title = _text(feed.get("title"))
    if not entries and not title and (parsed.get("bozo") or not parsed.get("version")):
        reason = parsed.get("bozo_exception") or "not an RSS or Atom document"
        raise RSSParseError(f"RSS_PARSE_FAIL: {reason}")

    description = _text(feed.get("description")) or _text(feed.get("subtitle"))

    out: list[Entry] = []
    for raw in entries:
        out.append(
            Entry(
                title=_text(raw.get("title")),
                summary=_text(raw.get("summary")),
                content=entry_content(raw),
                link=_text(raw.get("link")),
                published_at=entry_published_at(raw),
                guid=entry_guid(raw),
            )
        )

    return FeedSnapshot(url=url, title=title, description=description, entries=out)
