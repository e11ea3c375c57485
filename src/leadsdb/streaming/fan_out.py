"""
Result/error outlet pairs fed by a background producer task.

The producer owns both channels: it is the only sender, and both outlets are
closed exactly once when it returns, fails or is cancelled.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Generic, TypeVar

from leadsdb.errors import OperationCancelled
from leadsdb.streaming.channel import Channel
from leadsdb.telemetry import get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from leadsdb.streaming.cancel import CancelToken

T = TypeVar("T")

logger = get_logger("leadsdb.streaming.fan_out")


class Outlets(Generic[T]):
    """Pair of delivery channels exposing asynchronous results and errors.

    Example:
        >>> outlets = client.bulk_create_stream(source)
        >>> results, errors = await outlets.drain()
    """

    def __init__(self, results_capacity: int = 1, errors_capacity: int = 1) -> None:
        """Initialize outlets.

        Args:
            results_capacity: Buffered results before the producer blocks
            errors_capacity: Buffered errors (at least one, so a final error
                can always be handed over before closing)
        """
        self.results: Channel[T] = Channel(results_capacity)
        self.errors: Channel[Exception] = Channel(max(1, errors_capacity))
        self._task: asyncio.Task[None] | None = None
        self._token: CancelToken | None = None

    @classmethod
    def spawn(
        cls,
        producer: Callable[[Outlets[T]], Awaitable[None]],
        token: CancelToken | None = None,
        *,
        name: str | None = None,
        results_capacity: int = 1,
        errors_capacity: int = 1,
    ) -> Outlets[T]:
        """Run ``producer`` as a task feeding a fresh pair of outlets.

        Must be called with a running event loop.
        """
        outlets: Outlets[T] = cls(results_capacity, errors_capacity)
        outlets._token = token
        outlets._task = asyncio.get_running_loop().create_task(
            outlets._run(producer), name=name
        )
        return outlets

    async def _run(self, producer: Callable[[Outlets[T]], Awaitable[None]]) -> None:
        try:
            await producer(self)
        except OperationCancelled:
            logger.debug("Producer cancelled", task=self._task_name)
        finally:
            self.close()

    @property
    def _task_name(self) -> str | None:
        return self._task.get_name() if self._task else None

    @property
    def token(self) -> CancelToken | None:
        """Token the producer honors."""
        return self._token

    @property
    def done(self) -> bool:
        """Whether the producer has finished."""
        return self._task is not None and self._task.done()

    def close(self) -> None:
        """Close both outlets (idempotent)."""
        self.results.close()
        self.errors.close()

    async def emit(self, item: T) -> None:
        """Deliver a result, aborting if the token fires."""
        await self.results.send(item, self._token)

    async def emit_error(self, error: Exception) -> None:
        """Deliver an error, aborting if the token fires."""
        await self.errors.send(error, self._token)

    async def wait(self) -> None:
        """Wait for the producer task to finish.

        Re-raises unexpected producer failures; a cancelled producer is
        treated as finished.
        """
        if self._task is None:
            return
        await asyncio.wait({self._task})
        if not self._task.cancelled():
            self._task.result()

    def cancel(self) -> None:
        """Stop the producer task; outlets are closed as it unwinds."""
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def drain(self) -> tuple[list[T], list[Exception]]:
        """Collect every result and error until both outlets close.

        Both outlets are read concurrently so a producer blocked on one of
        them never stalls the other.
        """

        async def collect(channel: Channel) -> list:
            return [item async for item in channel]

        results, errors = await asyncio.gather(collect(self.results), collect(self.errors))
        await self.wait()
        return results, errors
