"""
Bounded async channels with close-once semantics.

A Channel delivers items in send order, blocks senders when full, ends
iteration for receivers once it is closed and drained, and lets every
blocking send/receive be aborted by a CancelToken.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING, Generic, TypeVar

from leadsdb.errors import LeadsDbError

if TYPE_CHECKING:
    from leadsdb.streaming.cancel import CancelToken

T = TypeVar("T")


class ChannelClosed(LeadsDbError):
    """Raised when sending to, or receiving from, a closed channel."""

    def __init__(self, message: str = "channel closed") -> None:
        super().__init__(message)


class Channel(Generic[T]):
    """Ordered, bounded, closable message channel.

    Example:
        >>> channel: Channel[Lead] = Channel()
        >>> await channel.send(lead)
        >>> channel.close()
        >>> async for item in channel:
        ...     print(item.name)
    """

    def __init__(self, capacity: int = 1) -> None:
        """Initialize channel.

        Args:
            capacity: Number of items buffered before send blocks (min 1)
        """
        self._capacity = max(1, capacity)
        self._queue: asyncio.Queue[T] = asyncio.Queue(maxsize=self._capacity)
        self._closed = asyncio.Event()

    @property
    def capacity(self) -> int:
        """Maximum number of buffered items."""
        return self._capacity

    @property
    def closed(self) -> bool:
        """Whether close() has been called."""
        return self._closed.is_set()

    def qsize(self) -> int:
        """Number of buffered items."""
        return self._queue.qsize()

    def close(self) -> bool:
        """Close the channel.

        Buffered items stay receivable. Blocked senders are released with
        ChannelClosed.

        Returns:
            True on the first call, False if already closed
        """
        if self._closed.is_set():
            return False
        self._closed.set()
        return True

    async def send(self, item: T, token: CancelToken | None = None) -> None:
        """Send an item, waiting for buffer space.

        Raises:
            ChannelClosed: If the channel is or becomes closed
            OperationCancelled: If the token fires while blocked
        """
        if self.closed:
            raise ChannelClosed("send on closed channel")
        if token is not None:
            token.raise_if_cancelled()

        with contextlib.suppress(asyncio.QueueFull):
            self._queue.put_nowait(item)
            return

        put = asyncio.ensure_future(self._queue.put(item))
        await self._race(put, token)
        if put.cancelled():
            if token is not None:
                token.raise_if_cancelled()
            raise ChannelClosed("send on closed channel")
        put.result()

    async def receive(self, token: CancelToken | None = None) -> T:
        """Receive the next item.

        Raises:
            ChannelClosed: If the channel is closed and drained
            OperationCancelled: If the token fires while waiting
        """
        with contextlib.suppress(asyncio.QueueEmpty):
            return self._queue.get_nowait()
        if self.closed:
            raise ChannelClosed()
        if token is not None:
            token.raise_if_cancelled()

        get = asyncio.ensure_future(self._queue.get())
        await self._race(get, token)
        if not get.cancelled():
            return get.result()

        # Items sent just before close are still delivered
        with contextlib.suppress(asyncio.QueueEmpty):
            return self._queue.get_nowait()
        if token is not None:
            token.raise_if_cancelled()
        raise ChannelClosed()

    async def _race(self, op: asyncio.Future[object], token: CancelToken | None) -> None:
        """Wait for ``op``, cancelling it if the channel closes or the token fires."""
        waiters: set[asyncio.Future[object]] = {op, asyncio.ensure_future(self._closed.wait())}
        if token is not None:
            waiters.add(asyncio.ensure_future(token.wait()))
        try:
            await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for waiter in waiters:
                if not waiter.done():
                    waiter.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await op

    def __aiter__(self) -> Channel[T]:
        return self

    async def __anext__(self) -> T:
        try:
            return await self.receive()
        except ChannelClosed:
            raise StopAsyncIteration from None
