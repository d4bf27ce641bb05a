# Enable type hint syntax from future Python versions (allows using | for union types)
from __future__ import annotations

from dataclasses import dataclass

from rssreader.error_codes import FETCH_TIMEOUT, FETCH_TRANSIENT, RATE_LIMITED, FETCH_PERMANENT

import socket
import time
import urllib.request
import urllib.error

USER_AGENT = "rss-reader/0.1"


class RSSFetchError(Exception):
    """
    Raised by fetch_rss when a feed cannot be downloaded.

    status is the HTTP status when the server answered, timeout is set when
    the request timed out. Neither set means a connection-level failure.
    """

    def __init__(self, message: str, *, status: int | None = None, timeout: bool = False):
        super().__init__(message)
        self.status = status
        self.timeout = timeout


@dataclass
class FetchResult:
    ok: bool
    # Raw response body; feedparser picks the encoding from the XML declaration
    content: bytes | None = None
    error_code: str | None = None
    error_message: str | None = None


# Fetch feed XML from a URL - base function without retries
def fetch_rss(url: str, *, timeout_s: float = 10.0) -> bytes:
    """Fetch feed XML from a URL and return the undecoded response body."""
    req = urllib.request.Request(
        url,
        headers={
            "User-Agent": USER_AGENT,
            "Accept": "application/rss+xml, application/atom+xml, application/xml;q=0.9, */*;q=0.8",
        },
    )

    try:
        with urllib.request.urlopen(req, timeout=timeout_s) as resp:
            # Some responses (file-like fakes, old handlers) have no status attribute
            status = getattr(resp, "status", None)
            body = resp.read()

            if status != 200:
                raise RSSFetchError(f"RSS_FETCH_FAIL: HTTP {status}", status=status)

            return body

    except urllib.error.HTTPError as exc:
        raise RSSFetchError(f"RSS_FETCH_FAIL: HTTP {exc.code}", status=exc.code) from exc
    # Connection refused, DNS failure; urlopen wraps socket timeouts here too
    except urllib.error.URLError as exc:
        if isinstance(exc.reason, (TimeoutError, socket.timeout)):
            raise RSSFetchError("RSS_FETCH_FAIL: timeout", timeout=True) from exc
        raise RSSFetchError(f"RSS_FETCH_FAIL: URL error: {exc.reason}") from exc
    except TimeoutError as exc:
        raise RSSFetchError("RSS_FETCH_FAIL: timeout", timeout=True) from exc


def classify_fetch_error(exc: RSSFetchError) -> tuple[str, bool]:
    """Map a download failure to (error_code, retryable)."""
    if exc.timeout:
        return FETCH_TIMEOUT, True
    if exc.status == 429:
        # Don't retry aggressively against a server that asked us to back off
        return RATE_LIMITED, False
    if exc.status is not None and 400 <= exc.status < 500:
        return FETCH_PERMANENT, False
    if exc.status is not None and exc.status >= 500:
        return FETCH_TRANSIENT, True
    return FETCH_TRANSIENT, False


# Fetch with retry and exponential backoff for transient failures
def fetch_rss_with_retry(url: str, *, attempts: int = 3, base_sleep_s: float = 0.5, timeout_s: float = 10.0) -> FetchResult:
    """Fetch feed XML, retrying timeouts and 5xx responses with exponential backoff."""
    last_msg: str | None = None

    for i in range(attempts):
        try:
            content = fetch_rss(url, timeout_s=timeout_s)
            return FetchResult(ok=True, content=content)

        except RSSFetchError as exc:
            last_msg = str(exc)
            code, retryable = classify_fetch_error(exc)
            if not retryable or i == attempts - 1:
                return FetchResult(ok=False, error_code=code, error_message=last_msg)

            time.sleep(base_sleep_s * (2 ** i))

    # Only reached with attempts <= 0
    return FetchResult(ok=False, error_code=FETCH_TRANSIENT, error_message=last_msg or "unknown")
