"""Error classification: maps HTTP outcomes to categories and retry decisions."""

from __future__ import annotations

from enum import Enum

from leadsdb.errors.base import ApiError, TransportError


class ErrorCategory(str, Enum):
    """Named categories callers can branch on without reading messages."""

    NOT_FOUND = "not_found"
    """The requested lead or note does not exist."""

    UNAUTHORIZED = "unauthorized"
    """Missing or invalid API key."""

    FORBIDDEN = "forbidden"
    """The key is valid but not allowed to perform the operation."""

    RATE_LIMITED = "rate_limited"
    """Throttled; retried with the server's Retry-After hint."""

    INTERNAL = "internal"
    """Internal server error."""


_STATUS_CATEGORIES: dict[int, ErrorCategory] = {
    401: ErrorCategory.UNAUTHORIZED,
    403: ErrorCategory.FORBIDDEN,
    404: ErrorCategory.NOT_FOUND,
    429: ErrorCategory.RATE_LIMITED,
    500: ErrorCategory.INTERNAL,
}

# Rate limiting plus the usual transient gateway/server failures
RETRYABLE_STATUSES: frozenset[int] = frozenset({429, 500, 502, 503, 504})


def classify_status(status_code: int) -> ErrorCategory | None:
    """Map a status code to its named category, if it has one."""
    return _STATUS_CATEGORIES.get(status_code)


def is_retryable_status(status_code: int) -> bool:
    """Check if a response status warrants another attempt."""
    return status_code in RETRYABLE_STATUSES


def is_retryable(
    error: Exception, statuses: frozenset[int] = RETRYABLE_STATUSES
) -> bool:
    """Decide from a transport outcome whether to retry.

    Transport failures always are. API errors are retried only when their
    status is in ``statuses``. Anything else is terminal.
    """
    if isinstance(error, TransportError):
        return True
    if isinstance(error, ApiError):
        return error.status_code in statuses
    return False
