# rssreader/export.py
from __future__ import annotations

from datetime import datetime
from email.utils import format_datetime
import xml.etree.ElementTree as ET

from rssreader.schemas import FeedSnapshot

CONTENT_NS = "http://purl.org/rss/1.0/modules/content/"

ET.register_namespace("content", CONTENT_NS)


def _sub(parent: ET.Element, tag: str, text: str | None) -> ET.Element | None:
    if not text:
        return None
    elem = ET.SubElement(parent, tag)
    elem.text = text
    return elem


def _rfc822(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    return format_datetime(dt)


def snapshot_to_rss(snapshot: FeedSnapshot) -> str:
    """
    Re-serialize a fetched snapshot as an RSS 2.0 document.

    - channel: title, link (the feed URL), description, pubDate (fetch time)
    - item: title, link, description (summary), content:encoded, pubDate, guid
    - empty fields are omitted
    """
    rss = ET.Element("rss", {"version": "2.0"})
    channel = ET.SubElement(rss, "channel")

    ET.SubElement(channel, "title").text = snapshot.title
    ET.SubElement(channel, "link").text = snapshot.url
    ET.SubElement(channel, "description").text = snapshot.description
    _sub(channel, "pubDate", _rfc822(snapshot.fetched_at))

    for entry in snapshot.entries:
        item = ET.SubElement(channel, "item")
        _sub(item, "title", entry.title)
        _sub(item, "link", entry.link)
        _sub(item, "description", entry.summary)
        _sub(item, f"{{{CONTENT_NS}}}encoded", entry.content)
        _sub(item, "pubDate", _rfc822(entry.published_at))
        if entry.guid:
            guid = ET.SubElement(item, "guid", {"isPermaLink": "false"})
            guid.text = entry.guid

    body = ET.tostring(rss, encoding="unicode")
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + body
