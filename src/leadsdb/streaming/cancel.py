"""
Cooperative cancellation.

Provides cancellation tokens and handles that every suspension point of the
client (round trips, backoff waits, channel operations) races against.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

from leadsdb.errors import OperationCancelled
from leadsdb.telemetry import get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

T = TypeVar("T")

logger = get_logger("leadsdb.streaming.cancel")


class CancelReason(str, Enum):
    """Reasons for cancellation."""

    USER_REQUEST = "user_request"
    TIMEOUT = "timeout"
    ERROR = "error"
    SHUTDOWN = "shutdown"


@dataclass
class CancelState:
    """State of a cancellation token.

    Attributes:
        cancelled: Whether cancellation was requested
        reason: Reason for cancellation
        timestamp: Time of cancellation
    """

    cancelled: bool = False
    reason: CancelReason | None = None
    timestamp: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class CancelToken:
    """Cancellation token for controlling async operations.

    A CancelToken is passed to client operations; every network round
    trip, backoff wait and channel operation resolves in its favor once
    it fires.

    Example:
        >>> token = CancelToken()
        >>> outlets = client.bulk_create_stream(source, token=token)
        >>> # From another task
        >>> token.cancel(CancelReason.USER_REQUEST)
    """

    def __init__(self, timeout: float | None = None) -> None:
        """Initialize cancellation token.

        Args:
            timeout: Optional deadline in seconds, starts with the running loop
        """
        self._state = CancelState()
        self._event = asyncio.Event()
        self._callbacks: list[Callable[[CancelReason], Any]] = []
        self._timeout = timeout
        self._timeout_handle: asyncio.TimerHandle | None = None

        if timeout:
            self._start_timeout()

    def _start_timeout(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No running loop; the deadline is not armed
            return
        self._timeout_handle = loop.call_later(
            self._timeout,  # type: ignore[arg-type]
            self.cancel,
            CancelReason.TIMEOUT,
        )

    def cancel(
        self,
        reason: CancelReason = CancelReason.USER_REQUEST,
        **metadata: Any,
    ) -> bool:
        """Request cancellation.

        Args:
            reason: Reason for cancellation
            **metadata: Additional metadata

        Returns:
            True if cancellation was newly requested, False if already cancelled
        """
        if self._state.cancelled:
            return False

        self._state.cancelled = True
        self._state.reason = reason
        self._state.timestamp = time.time()
        self._state.metadata.update(metadata)

        self._event.set()

        if self._timeout_handle is not None:
            self._timeout_handle.cancel()

        for callback in self._callbacks:
            self._invoke(callback, reason)

        return True

    @staticmethod
    def _invoke(callback: Callable[[CancelReason], Any], reason: CancelReason) -> None:
        try:
            result = callback(reason)
            if asyncio.iscoroutine(result):
                _ = asyncio.ensure_future(result)  # noqa: RUF006
        except Exception:
            logger.exception("Cancel callback failed", reason=reason.value)

    @property
    def is_cancelled(self) -> bool:
        """Check if cancellation was requested."""
        return self._state.cancelled

    @property
    def reason(self) -> CancelReason | None:
        """Get cancellation reason."""
        return self._state.reason

    @property
    def state(self) -> CancelState:
        """Get full cancellation state."""
        return self._state

    async def wait(self) -> CancelReason:
        """Wait until cancellation is requested."""
        await self._event.wait()
        return self._state.reason or CancelReason.USER_REQUEST

    async def wait_with_timeout(self, timeout: float) -> bool:
        """Wait for cancellation with a timeout.

        Returns:
            True if cancelled, False if timeout occurred
        """
        try:
            await asyncio.wait_for(self._event.wait(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            return False

    def on_cancel(self, callback: Callable[[CancelReason], Any]) -> CancelToken:
        """Register a callback to be called on cancellation."""
        self._callbacks.append(callback)
        if self._state.cancelled and self._state.reason:
            self._invoke(callback, self._state.reason)
        return self

    def raise_if_cancelled(self) -> None:
        """Raise OperationCancelled if cancelled."""
        if self._state.cancelled:
            reason = self._state.reason.value if self._state.reason else None
            raise OperationCancelled(reason=reason)


class CancelHandle:
    """Public side of a token: lets callers cancel without exposing waits.

    Example:
        >>> handle, token = create_cancel_pair()
        >>> outlets = client.iterate_outlets(options, token=token)
        >>> handle.cancel()
    """

    def __init__(self, token: CancelToken) -> None:
        self._token = token

    def cancel(
        self,
        reason: CancelReason = CancelReason.USER_REQUEST,
        **metadata: Any,
    ) -> bool:
        """Request cancellation."""
        return self._token.cancel(reason, **metadata)

    @property
    def is_cancelled(self) -> bool:
        """Check if cancellation was requested."""
        return self._token.is_cancelled

    @property
    def reason(self) -> CancelReason | None:
        """Get cancellation reason."""
        return self._token.reason


def create_cancel_pair(
    timeout: float | None = None,
) -> tuple[CancelHandle, CancelToken]:
    """Create a cancel handle and token pair."""
    token = CancelToken(timeout=timeout)
    return CancelHandle(token), token


async def run_cancellable(awaitable: Awaitable[T], token: CancelToken | None) -> T:
    """Await ``awaitable`` unless ``token`` fires first.

    On cancellation the in-flight work is cancelled and awaited so that
    open responses are released before OperationCancelled is raised.
    """
    if token is None:
        return await awaitable

    token.raise_if_cancelled()

    work = asyncio.ensure_future(awaitable)
    cancelled = asyncio.ensure_future(token.wait())
    try:
        await asyncio.wait({work, cancelled}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        if not work.done():
            work.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await work
        cancelled.cancel()

    if work.cancelled():
        token.raise_if_cancelled()
        raise asyncio.CancelledError
    # Work that finished in the same tick as the token still counts
    return work.result()
