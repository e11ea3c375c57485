"""
Streaming batcher for bulk lead creation.

Groups an open-ended stream of leads into bulk requests, flushing when a
batch is full, when the stream goes quiet for ``flush_timeout`` seconds
after the first record of a batch, and once more when the stream ends.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import TYPE_CHECKING

from leadsdb.batch.config import BatchConfig
from leadsdb.errors import BulkRecordError, LeadsDbError, OperationCancelled, ProtocolError
from leadsdb.streaming import Outlets
from leadsdb.telemetry import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable

    from leadsdb.streaming import CancelToken
    from leadsdb.types import BulkCreateResult, BulkLeadResult, Lead

    Submit = Callable[[list[Lead], CancelToken | None], Awaitable[BulkCreateResult]]

logger = get_logger("leadsdb.batch")


class BatcherState(str, Enum):
    """Lifecycle of a streaming batcher."""

    IDLE = "idle"
    ACCUMULATING = "accumulating"
    FLUSHING = "flushing"
    DONE = "done"


class StreamingBatcher:
    """Batches a lead stream into bulk create requests.

    Created leads are delivered on the results outlet in batch order.
    Rejected records arrive on the errors outlet as ``BulkRecordError``;
    a batch that fails as a whole is reported once and discarded.

    Example:
        >>> batcher = StreamingBatcher(client.bulk_create, BatchConfig(flush_timeout=1.0))
        >>> outlets = batcher.start(lead_source())
        >>> created, errors = await outlets.drain()
    """

    def __init__(
        self,
        submit: Submit,
        config: BatchConfig | None = None,
        token: CancelToken | None = None,
    ) -> None:
        """Initialize the batcher.

        Args:
            submit: Coroutine performing one bulk create
            config: Batch configuration
            token: Cancellation token; once fired, unflushed records are
                abandoned and nothing more is submitted
        """
        self._submit = submit
        self._config = config or BatchConfig.default()
        self._token = token
        self._batch: list[Lead] = []
        self._state = BatcherState.IDLE
        self._flushes = 0

    @property
    def config(self) -> BatchConfig:
        return self._config

    @property
    def state(self) -> BatcherState:
        """Current lifecycle state."""
        return self._state

    @property
    def pending(self) -> int:
        """Records accumulated but not yet submitted."""
        return len(self._batch)

    @property
    def flushes(self) -> int:
        """Number of batches submitted so far."""
        return self._flushes

    def start(self, source: AsyncIterable[Lead]) -> Outlets[BulkLeadResult]:
        """Consume ``source`` in a background task.

        Must be called with a running event loop. Both outlets close when
        the source is exhausted and the final batch is flushed, or when the
        token fires.
        """

        async def produce(outlets: Outlets[BulkLeadResult]) -> None:
            await self._run(source, outlets)

        return Outlets.spawn(
            produce,
            self._token,
            name="leadsdb-batcher",
            results_capacity=self._config.results_capacity,
        )

    async def _run(
        self, source: AsyncIterable[Lead], outlets: Outlets[BulkLeadResult]
    ) -> None:
        loop = asyncio.get_running_loop()
        iterator = aiter(source)
        next_item: asyncio.Future[Lead | None] | None = None
        cancelled = (
            asyncio.ensure_future(self._token.wait()) if self._token is not None else None
        )
        deadline: float | None = None

        try:
            while True:
                if next_item is None:
                    next_item = asyncio.ensure_future(_next(iterator))
                waiters: set[asyncio.Future] = {next_item}
                if cancelled is not None:
                    waiters.add(cancelled)
                timeout = None if deadline is None else max(0.0, deadline - loop.time())

                done, _ = await asyncio.wait(
                    waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
                )

                if cancelled is not None and cancelled in done:
                    self._abandon()
                    self._token.raise_if_cancelled()

                if next_item in done:
                    received, next_item = next_item, None
                    try:
                        lead = received.result()
                    except OperationCancelled:
                        raise
                    except Exception as e:
                        logger.warning(
                            "Lead source failed", error=str(e), error_type=type(e).__name__
                        )
                        await self._flush(outlets, "source error")
                        await outlets.emit_error(e)
                        return
                    if lead is None:
                        await self._flush(outlets, "end of stream")
                        return

                    self._batch.append(lead)
                    if len(self._batch) == 1:
                        self._state = BatcherState.ACCUMULATING
                        deadline = loop.time() + self._config.flush_timeout
                    if len(self._batch) >= self._config.max_batch_size:
                        deadline = None
                        await self._flush(outlets, "size")
                elif not done:
                    deadline = None
                    await self._flush(outlets, "timeout")
        finally:
            self._state = BatcherState.DONE
            if cancelled is not None:
                cancelled.cancel()
            if next_item is not None:
                await _discard(next_item)

    async def _flush(self, outlets: Outlets[BulkLeadResult], trigger: str) -> None:
        batch, self._batch = self._batch, []
        if not batch:
            self._state = BatcherState.IDLE
            return

        self._state = BatcherState.FLUSHING
        self._flushes += 1
        logger.debug("Submitting batch", size=len(batch), trigger=trigger, batch=self._flushes)
        try:
            try:
                result = await self._submit(batch, self._token)
            except OperationCancelled:
                raise
            except LeadsDbError as e:
                logger.warning("Batch failed", size=len(batch), error=str(e))
                await outlets.emit_error(e)
                return

            logger.info(
                "Flushed batch",
                size=len(batch),
                trigger=trigger,
                batch=self._flushes,
                created=len(result.created),
                failed=len(result.errors),
            )
            for created in sorted(result.created, key=lambda c: c.index):
                await outlets.emit(created)
            for failure in sorted(result.errors, key=lambda f: f.index):
                await outlets.emit_error(BulkRecordError(failure.index, failure.message))

            if not result.accounts_for(len(batch)):
                await outlets.emit_error(
                    ProtocolError(
                        f"batch of {len(batch)} reported {len(result.created)} created "
                        f"and {len(result.errors)} failed"
                    )
                )
        finally:
            self._state = BatcherState.IDLE

    def _abandon(self) -> None:
        if self._batch:
            logger.debug("Abandoning unflushed records", count=len(self._batch))
        self._batch = []


async def _next(iterator: AsyncIterator[Lead]) -> Lead | None:
    try:
        return await anext(iterator)
    except StopAsyncIteration:
        return None


async def _discard(future: asyncio.Future[Lead | None]) -> None:
    """Cancel a pending read-ahead and collect its outcome."""
    if not future.done():
        future.cancel()
    await asyncio.wait({future})
    if not future.cancelled() and future.exception() is not None:
        logger.debug("Discarded pending read failed", error=str(future.exception()))
