# rssreader/feeds.py
"""Default feed URLs for seeding. Supplied as a comma-separated string."""
from __future__ import annotations


def split_urls(text: str | None) -> list[str]:
    """
    Split a comma-separated list of feed URLs.

    - strip whitespace around each piece
    - drop empty pieces
    - preserve order
    """
    if not text:
        return []
    pieces = (piece.strip() for piece in text.split(","))
    return [piece for piece in pieces if piece]
