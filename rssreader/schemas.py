from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Subscription(BaseModel):
    """
    A feed the user follows: URL plus last-known metadata.

    This is the only persisted unit. url is the identity and is used verbatim.
    """
    url: str
    title: str = ""
    description: str = ""
    added_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Entry(BaseModel):
    """One item of a fetched feed. Never persisted."""
    title: str = ""
    summary: str = ""
    content: str = ""
    link: str = ""
    published_at: datetime | None = None
    guid: str = ""


class FeedSnapshot(BaseModel):
    """Result of a live fetch: feed metadata plus its current entries."""
    url: str
    title: str = ""
    description: str = ""
    fetched_at: datetime = Field(default_factory=utc_now)
    entries: list[Entry] = Field(default_factory=list)

    def to_subscription(self) -> Subscription:
        return Subscription(
            url=self.url,
            title=self.title,
            description=self.description,
            added_at=self.fetched_at,
            updated_at=self.fetched_at,
        )


class AddFeedRequest(BaseModel):
    url: str = Field(..., min_length=1)
