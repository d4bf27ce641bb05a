from __future__ import annotations

from pydantic import BaseModel

from rssreader.error_codes import (
    CORRUPT_STATE,
    FETCH_TRANSIENT,
    INVALID_INPUT,
    NOT_FOUND,
    PERSISTENCE_ERROR,
)


class ProblemDetails(BaseModel):
    status: int
    code: str
    message: str
    request_id: str


def problem(*, status: int, code: str, message: str, request_id: str) -> ProblemDetails:
    return ProblemDetails(status=status, code=code, message=message, request_id=request_id)


class RSSReaderError(Exception):
    """Base class for registry, fetch and persistence failures."""

    code = "RSS_READER_ERROR"

    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        if code is not None:
            self.code = code


class InvalidInputError(RSSReaderError):
    """Empty URL or missing subscription passed to a mutating operation."""

    code = INVALID_INPUT


class NotFoundError(RSSReaderError):
    """Operation referenced a URL that is not in the registry."""

    code = NOT_FOUND


class FetchError(RSSReaderError):
    """Feed could not be downloaded or parsed."""

    code = FETCH_TRANSIENT


class CorruptStateError(RSSReaderError):
    """Feeds file exists and is non-empty but cannot be parsed."""

    code = CORRUPT_STATE


class PersistenceError(RSSReaderError):
    """Writing the feeds file failed. The registry stays dirty."""

    code = PERSISTENCE_ERROR
