"""Fetcher: turns a feed URL into a FeedSnapshot, or raises FetchError."""
from __future__ import annotations

from typing import Callable
from urllib.parse import urlsplit

from rssreader.error_codes import INVALID_URL, PARSE_ERROR
from rssreader.errors import FetchError
from rssreader.logging_utils import log_event
from rssreader.rss_fetch import fetch_rss_with_retry
from rssreader.rss_parse import RSSParseError, parse_feed
from rssreader.schemas import FeedSnapshot

Fetcher = Callable[[str], FeedSnapshot]

ALLOWED_SCHEMES = ("http", "https")


def validate_feed_url(url: str) -> None:
    if not url or not url.strip():
        raise FetchError("URL cannot be empty", code=INVALID_URL)
    parts = urlsplit(url)
    if parts.scheme.lower() not in ALLOWED_SCHEMES or not parts.netloc:
        raise FetchError(f"Invalid feed URL: {url}", code=INVALID_URL)


def fetch_feed(url: str, *, timeout_s: float = 10.0, attempts: int = 3) -> FeedSnapshot:
    """
    Download and parse one feed.

    Raises:
        FetchError: empty/invalid URL, network failure after retries, or unparseable content.
            error.code is one of the fetch codes in rssreader.error_codes.
    """
    validate_feed_url(url)

    result = fetch_rss_with_retry(url, attempts=attempts, timeout_s=timeout_s)
    if not result.ok:
        log_event(
            "feed_fetch_failed",
            url=url,
            error_code=result.error_code,
            error_message=result.error_message,
        )
        raise FetchError(result.error_message or "fetch failed", code=result.error_code)

    try:
        snapshot = parse_feed(result.content or b"", url=url)
    except RSSParseError as exc:
        log_event("feed_parse_failed", url=url, error=str(exc))
        raise FetchError(str(exc), code=PARSE_ERROR) from exc

    log_event("feed_fetch_ok", url=url, items=len(snapshot.entries))
    return snapshot


def make_fetcher(*, timeout_s: float = 10.0, attempts: int = 3) -> Fetcher:
    """Bind fetch options into a one-argument fetcher for the registry."""

    def _fetch(url: str) -> FeedSnapshot:
        return fetch_feed(url, timeout_s=timeout_s, attempts=attempts)

    return _fetch
