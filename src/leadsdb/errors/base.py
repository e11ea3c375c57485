"""Base error classes for leadsdb.

Provides a layered error hierarchy:
- LeadsDbError: Base class for all library errors
- ValidationError: Invalid caller input, rejected before any network call
- TransportError: Connection-level failures (retried)
- ApiError: Non-2xx responses with status classification
- DecodeError: Malformed success bodies (terminal)
- OperationCancelled: External cancellation (terminal, takes precedence)
- ProtocolError: Server responses that break a protocol invariant
- BulkRecordError: Per-record failure inside a bulk submission
"""

from __future__ import annotations

import contextlib
import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from leadsdb.errors.classification import ErrorCategory


@dataclass
class ErrorContext:
    """Structured error context for diagnostics.

    Provides actionable information for debugging and error handling.
    """

    field_path: str | None = None
    """Path to the problematic field (e.g., 'leads[3].name')"""

    details: dict[str, Any] = field(default_factory=dict)
    """Additional details about the error"""

    source: str | None = None
    """Error source (e.g., 'transport', 'remote', 'validation')"""

    hint: str | None = None
    """Actionable hint for resolving the error"""

    def __str__(self) -> str:
        parts = []
        if self.source:
            parts.append(f"[{self.source}]")
        if self.field_path:
            parts.append(f"at '{self.field_path}'")
        if self.hint:
            parts.append(f"(hint: {self.hint})")
        return " ".join(parts)


class LeadsDbError(Exception):
    """Base class for all leadsdb errors.

    Attributes:
        message: Human-readable error message
        context: Optional structured error context
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
    ) -> None:
        self.message = message
        self.context = context or ErrorContext()
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the full error message."""
        ctx_str = str(self.context)
        if ctx_str:
            return f"{self.message} {ctx_str}"
        return self.message

    def with_hint(self, hint: str) -> LeadsDbError:
        """Add a hint to this error."""
        self.context.hint = hint
        return self


class ValidationError(LeadsDbError):
    """Caller supplied invalid input.

    Never retried and never sent over the network.
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        field: str | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="validation")
        if field:
            ctx.field_path = field
        super().__init__(message, ctx)
        self.field = field


class TransportError(LeadsDbError):
    """The round trip could not be completed.

    Raised when:
    - Network connection failure
    - Timeout
    - Protocol errors while reading the response
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        url: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="transport")
        if url:
            ctx.details["url"] = url
        super().__init__(message, ctx)
        self.url = url
        self.__cause__ = cause


class DecodeError(LeadsDbError):
    """A successful response body did not match the requested shape."""

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        status_code: int | None = None,
        body: bytes | None = None,
        cause: Exception | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="decode")
        if status_code is not None:
            ctx.details["status_code"] = status_code
        super().__init__(message, ctx)
        self.status_code = status_code
        self.body = body
        self.__cause__ = cause


class OperationCancelled(LeadsDbError):
    """The operation was stopped by an external cancellation signal."""

    def __init__(self, message: str = "operation cancelled", reason: str | None = None) -> None:
        ctx = ErrorContext(source="cancel")
        if reason:
            ctx.details["reason"] = reason
        super().__init__(message, ctx)
        self.reason = reason


class ProtocolError(LeadsDbError):
    """The server answered with a response that breaks the API contract."""

    def __init__(self, message: str, context: ErrorContext | None = None) -> None:
        super().__init__(message, context or ErrorContext(source="protocol"))


class BulkRecordError(LeadsDbError):
    """A single record of a bulk submission was rejected by the server.

    Attributes:
        index: Position of the record in the submitted batch
    """

    def __init__(self, index: int, message: str) -> None:
        super().__init__(f"index {index}: {message}")
        self.index = index
        self.reason = message


def _parse_retry_after(value: str | None) -> float | None:
    """Whole seconds from a Retry-After header; HTTP dates are ignored."""
    if not value:
        return None
    value = value.strip()
    if not (value.isascii() and value.isdigit()):
        return None
    return float(int(value))


class ApiError(LeadsDbError):
    """Error response from the LeadsDB API.

    Attributes:
        status_code: HTTP status code
        code: Machine-readable error code from the body, if any
        retry_after: Server-requested delay in seconds (429 only)
        raw_error: Parsed error body
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        code: str | None = None,
        retry_after: float | None = None,
        raw_error: dict[str, Any] | None = None,
    ) -> None:
        self.status_code = status_code
        self.code = code or None
        self.retry_after = retry_after
        self.raw_error = raw_error or {}

        ctx = ErrorContext()
        ctx.details["status_code"] = status_code
        if code:
            ctx.details["code"] = code
        super().__init__(message, ctx)

    def _format_message(self) -> str:
        if self.code:
            return f"{self.code}: {self.message} (status {self.status_code})"
        return f"{self.message} (status {self.status_code})"

    @property
    def category(self) -> ErrorCategory | None:
        """Named category derived from the status code alone."""
        from leadsdb.errors.classification import classify_status

        return classify_status(self.status_code)

    def is_category(self, category: ErrorCategory) -> bool:
        """Check whether this error belongs to the given category."""
        return self.category is category

    @property
    def retryable(self) -> bool:
        """Whether the status is in the transient set."""
        from leadsdb.errors.classification import is_retryable_status

        return is_retryable_status(self.status_code)

    @classmethod
    def from_response(
        cls,
        status_code: int,
        body: bytes | None = None,
        headers: httpx.Headers | dict[str, str] | None = None,
    ) -> ApiError:
        """Create ApiError from a fully read HTTP response.

        Args:
            status_code: HTTP status code
            body: Raw response body
            headers: Response headers

        Returns:
            ApiError with message falling back to the reason phrase
        """
        parsed: dict[str, Any] = {}
        if body:
            with contextlib.suppress(ValueError):
                data = json.loads(body)
                if isinstance(data, dict):
                    parsed = data

        code = parsed.get("code") if isinstance(parsed.get("code"), str) else None
        message = parsed.get("message") if isinstance(parsed.get("message"), str) else None
        if not message:
            message = httpx.codes.get_reason_phrase(status_code) or f"HTTP {status_code}"

        retry_after = None
        if status_code == httpx.codes.TOO_MANY_REQUESTS and headers:
            retry_after = _parse_retry_after(
                headers.get("retry-after") or headers.get("Retry-After")
            )

        return cls(
            message,
            status_code=status_code,
            code=code,
            retry_after=retry_after,
            raw_error=parsed,
        )
