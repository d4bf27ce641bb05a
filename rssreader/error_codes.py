"""Stable failure codes for registry, fetch and persistence operations.

Used by: errors, rss_fetch, fetcher, persistence, logging, ProblemDetails responses.
"""

# Fetch codes
FETCH_TIMEOUT = "FETCH_TIMEOUT"
FETCH_TRANSIENT = "FETCH_TRANSIENT"
RATE_LIMITED = "RATE_LIMITED"
FETCH_PERMANENT = "FETCH_PERMANENT"
INVALID_URL = "INVALID_URL"
PARSE_ERROR = "PARSE_ERROR"

# Registry codes
INVALID_INPUT = "INVALID_INPUT"
NOT_FOUND = "NOT_FOUND"

# Persistence codes
CORRUPT_STATE = "CORRUPT_STATE"            # feeds file exists, non-empty, unparseable
PERSISTENCE_ERROR = "PERSISTENCE_ERROR"    # write/rename failed during save
