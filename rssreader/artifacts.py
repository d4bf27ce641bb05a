from __future__ import annotations

import html
from datetime import datetime
from urllib.parse import quote

from rssreader.schemas import Entry, FeedSnapshot, Subscription


# Inline styles that make feed content unreadable on the dark theme
DARK_MODE_REPLACEMENTS = [
    ('style="color: white"', 'style="color: #e0e0e0"'),
    ('style="color: #ffffff"', 'style="color: #e0e0e0"'),
    ('style="background-color: white"', 'style="background-color: transparent"'),
    ('style="background-color: #ffffff"', 'style="background-color: transparent"'),
    ("color: white;", "color: #e0e0e0;"),
    ("color: #ffffff;", "color: #e0e0e0;"),
    ("background-color: white;", "background-color: transparent;"),
    ("background-color: #ffffff;", "background-color: transparent;"),
]


def esc(s: str) -> str:
    return html.escape(s, quote=True)


def qs(url: str) -> str:
    """Quote a feed URL for use in a ?url= query string."""
    return quote(url, safe="")


def process_content_for_dark_mode(content: str) -> str:
    for old, new in DARK_MODE_REPLACEMENTS:
        content = content.replace(old, new)
    return content


def format_published(dt: datetime | None) -> str:
    if dt is None:
        return ""
    hour = dt.hour % 12 or 12
    return f"{dt:%B} {dt.day}, {dt.year} at {hour}:{dt:%M %p}"


def render_feed_list_item(sub: Subscription) -> str:
    """<li> for the sidebar; htmx loads the feed on click and deletes in place."""
    title = sub.title or sub.url
    return f"""
    <li class="feed-item" data-url="{esc(sub.url)}"
        hx-get="/feed?url={qs(sub.url)}"
        hx-target="#feed-content"
        hx-indicator="#loading-indicator">
      <div class="feed-row">
        <div class="feed-meta">
          <h3 class="feed-title">{esc(title)}</h3>
          <p class="feed-url">{esc(sub.url)}</p>
        </div>
        <div class="feed-actions">
          <a href="/export?url={qs(sub.url)}" target="_blank" title="View RSS Feed">RSS</a>
          <button hx-delete="/feed?url={qs(sub.url)}"
                  hx-target="closest li"
                  hx-swap="outerHTML"
                  hx-confirm="Are you sure you want to remove this feed subscription?"
                  title="Delete Feed">Delete</button>
        </div>
      </div>
    </li>
    """


def render_entry(entry: Entry) -> str:
    body = entry.summary or entry.content
    body = process_content_for_dark_mode(body)
    published = format_published(entry.published_at)
    return f"""
    <article class="entry">
      <h3 class="entry-title">
        <a href="{esc(entry.link)}" target="_blank" rel="noopener noreferrer">{esc(entry.title)}</a>
      </h3>
      <div class="entry-date">{esc(published)}</div>
      <div class="feed-content">
        {body}
      </div>
    </article>
    """


def render_feed_content(snapshot: FeedSnapshot) -> str:
    if not snapshot.entries:
        return """
    <div class="empty">
      <p>No items found in this feed</p>
      <p class="hint">This feed might be empty or temporarily unavailable</p>
    </div>
    """

    articles = "".join(render_entry(e) for e in snapshot.entries)
    return f"""
    <div class="entries">
      <h2 class="current-feed-title">{esc(snapshot.title or snapshot.url)}</h2>
      {articles}
    </div>
    """
