"""Tests for streaming bulk creation."""

from __future__ import annotations

import asyncio
import io
import json
import logging
from typing import TYPE_CHECKING

import pytest

from leadsdb.batch import BatchConfig, BatcherState, StreamingBatcher
from leadsdb.errors import ApiError, BulkRecordError, ProtocolError, ValidationError
from leadsdb.streaming import CancelToken, Channel
from leadsdb.telemetry import JsonFormatter, LeadsDbLogger
from leadsdb.types import BulkCreateResult, BulkLeadError, BulkLeadResult, Lead

if TYPE_CHECKING:
    from collections.abc import Callable


def lead(i: int) -> Lead:
    return Lead(name=f"lead-{i}", source="test")


def all_created(leads: list[Lead]) -> BulkCreateResult:
    return BulkCreateResult(
        total=len(leads),
        success=len(leads),
        created=[BulkLeadResult(index=i, id=f"id-{l.name}") for i, l in enumerate(leads)],
    )


class FakeBulk:
    """Records submitted batches and answers with a scripted result."""

    def __init__(self, respond: Callable[[list[Lead]], BulkCreateResult] | None = None) -> None:
        self.respond = respond or all_created
        self.batches: list[list[str]] = []
        self.times: list[float] = []

    async def __call__(self, leads: list[Lead], token: CancelToken | None) -> BulkCreateResult:
        self.batches.append([l.name for l in leads])
        self.times.append(asyncio.get_running_loop().time())
        await asyncio.sleep(0)
        return self.respond(leads)

    @property
    def sizes(self) -> list[int]:
        return [len(b) for b in self.batches]


async def leads_from(count: int):
    for i in range(count):
        yield lead(i)


class TestBatchConfig:
    """Tests for BatchConfig."""

    def test_defaults(self) -> None:
        """Test default configuration."""
        config = BatchConfig.default()
        assert config.max_batch_size == 100
        assert config.flush_timeout == 2.0

    def test_batch_size_capped(self) -> None:
        """Test the server limit caps the batch size."""
        assert BatchConfig(max_batch_size=500).max_batch_size == 100
        assert BatchConfig(max_batch_size=0).max_batch_size == 1

    def test_flush_timeout_must_be_positive(self) -> None:
        """Test a zero timeout is rejected."""
        with pytest.raises(ValidationError):
            BatchConfig(flush_timeout=0)


class TestStreamingBatcher:
    """Tests for StreamingBatcher."""

    @pytest.mark.asyncio
    async def test_partial_batch_on_close(self) -> None:
        """Test 37 records then end of stream flush one partial batch."""
        bulk = FakeBulk()
        batcher = StreamingBatcher(bulk, BatchConfig(flush_timeout=5.0))

        outlets = batcher.start(leads_from(37))
        results, errors = await asyncio.wait_for(outlets.drain(), timeout=2.0)

        assert bulk.sizes == [37]
        assert len(results) == 37
        assert errors == []
        assert outlets.results.closed and outlets.errors.closed
        assert batcher.state is BatcherState.DONE

    @pytest.mark.asyncio
    async def test_exactly_full_batch_no_timer_flush(self) -> None:
        """Test 100 records produce one size flush and nothing from the timer."""
        bulk = FakeBulk()
        source: Channel[Lead] = Channel(100)
        batcher = StreamingBatcher(bulk, BatchConfig(flush_timeout=0.05))
        outlets = batcher.start(source)
        collected = asyncio.ensure_future(outlets.drain())

        for i in range(100):
            await source.send(lead(i))
        await asyncio.sleep(0.2)
        assert bulk.sizes == [100]

        source.close()
        results, errors = await asyncio.wait_for(collected, timeout=2.0)

        assert bulk.sizes == [100]
        assert len(results) == 100
        assert errors == []

    @pytest.mark.asyncio
    async def test_size_flushes_split_stream(self) -> None:
        """Test a long stream is split at the batch size in arrival order."""
        bulk = FakeBulk()
        batcher = StreamingBatcher(bulk, BatchConfig(max_batch_size=10, flush_timeout=5.0))

        results, _ = await asyncio.wait_for(batcher.start(leads_from(25)).drain(), timeout=2.0)

        assert bulk.sizes == [10, 10, 5]
        assert [b[0] for b in bulk.batches] == ["lead-0", "lead-10", "lead-20"]
        assert [r.id for r in results] == [f"id-lead-{i}" for i in range(25)]

    @pytest.mark.asyncio
    async def test_idle_timeout_flushes_single_record(self) -> None:
        """Test one record followed by silence is flushed by the timer."""
        bulk = FakeBulk()
        source: Channel[Lead] = Channel()
        batcher = StreamingBatcher(bulk, BatchConfig(flush_timeout=0.05))
        outlets = batcher.start(source)

        await source.send(lead(0))
        created = await asyncio.wait_for(outlets.results.receive(), timeout=2.0)

        assert created.id == "id-lead-0"
        assert bulk.sizes == [1]
        assert not outlets.done

        source.close()
        results, errors = await asyncio.wait_for(outlets.drain(), timeout=2.0)
        assert results == []
        assert errors == []
        assert bulk.sizes == [1]

    @pytest.mark.asyncio
    async def test_timer_not_reset_by_later_records(self) -> None:
        """Test the flush deadline counts from the first record of a batch."""
        bulk = FakeBulk()
        source: Channel[Lead] = Channel()
        batcher = StreamingBatcher(bulk, BatchConfig(flush_timeout=0.3))
        outlets = batcher.start(source)
        collected = asyncio.ensure_future(outlets.drain())
        loop = asyncio.get_running_loop()

        started = loop.time()
        await source.send(lead(0))
        await asyncio.sleep(0.15)
        await source.send(lead(1))
        await asyncio.sleep(0.1)
        await source.send(lead(2))
        await asyncio.sleep(0.3)
        source.close()
        await asyncio.wait_for(collected, timeout=2.0)

        assert bulk.sizes == [3]
        # A timer restarted by each record would fire no earlier than 0.55s
        assert bulk.times[0] - started < 0.5

    @pytest.mark.asyncio
    async def test_per_record_failures(self) -> None:
        """Test 2 created and 1 rejected are delivered on separate outlets."""

        def respond(leads: list[Lead]) -> BulkCreateResult:
            return BulkCreateResult(
                total=3,
                success=2,
                failed=1,
                created=[BulkLeadResult(index=2, id="c"), BulkLeadResult(index=0, id="a")],
                errors=[BulkLeadError(index=1, message="invalid email")],
            )

        bulk = FakeBulk(respond)
        batcher = StreamingBatcher(bulk)

        results, errors = await asyncio.wait_for(batcher.start(leads_from(3)).drain(), timeout=2.0)

        assert [r.id for r in results] == ["a", "c"]
        assert len(errors) == 1
        assert isinstance(errors[0], BulkRecordError)
        assert errors[0].index == 1
        assert str(errors[0]) == "index 1: invalid email"

    @pytest.mark.asyncio
    async def test_whole_batch_failure_is_reported_once(self) -> None:
        """Test a failed request yields one error and the next batch still runs."""
        calls = 0

        async def submit(leads: list[Lead], token: CancelToken | None) -> BulkCreateResult:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise ApiError("bad request", status_code=400)
            return all_created(leads)

        batcher = StreamingBatcher(submit, BatchConfig(max_batch_size=2, flush_timeout=5.0))
        results, errors = await asyncio.wait_for(batcher.start(leads_from(4)).drain(), timeout=2.0)

        assert calls == 2
        assert len(results) == 2
        assert len(errors) == 1
        assert isinstance(errors[0], ApiError)
        assert errors[0].status_code == 400

    @pytest.mark.asyncio
    async def test_count_mismatch_is_protocol_error(self) -> None:
        """Test unaccounted records raise a protocol error after what was reported."""

        def respond(leads: list[Lead]) -> BulkCreateResult:
            return BulkCreateResult(total=3, success=1, created=[BulkLeadResult(index=0, id="a")])

        batcher = StreamingBatcher(FakeBulk(respond))
        results, errors = await asyncio.wait_for(batcher.start(leads_from(3)).drain(), timeout=2.0)

        assert [r.id for r in results] == ["a"]
        assert len(errors) == 1
        assert isinstance(errors[0], ProtocolError)

    @pytest.mark.asyncio
    async def test_cancel_abandons_unflushed_records(self) -> None:
        """Test cancellation closes the outlets without submitting pending records."""
        bulk = FakeBulk()
        token = CancelToken()
        source: Channel[Lead] = Channel(10)
        batcher = StreamingBatcher(bulk, BatchConfig(flush_timeout=5.0), token)
        outlets = batcher.start(source)

        for i in range(5):
            await source.send(lead(i))
        await asyncio.sleep(0.01)
        assert batcher.pending == 5
        assert batcher.state is BatcherState.ACCUMULATING

        token.cancel()
        results, errors = await asyncio.wait_for(outlets.drain(), timeout=2.0)

        assert bulk.batches == []
        assert results == []
        assert errors == []
        assert batcher.pending == 0
        assert batcher.state is BatcherState.DONE

    @pytest.mark.asyncio
    async def test_empty_source(self) -> None:
        """Test an empty stream submits nothing."""
        bulk = FakeBulk()
        results, errors = await asyncio.wait_for(
            StreamingBatcher(bulk).start(leads_from(0)).drain(), timeout=2.0
        )
        assert bulk.batches == []
        assert results == []
        assert errors == []

    @pytest.mark.asyncio
    async def test_source_failure_flushes_pending_then_reports(self) -> None:
        """Test a failing source still submits what it produced, then reports the failure."""
        bulk = FakeBulk()

        async def broken_csv():
            yield lead(0)
            yield lead(1)
            raise ValueError("csv row broken")

        batcher = StreamingBatcher(bulk, BatchConfig(flush_timeout=5.0))
        outlets = batcher.start(broken_csv())
        results, errors = await asyncio.wait_for(outlets.drain(), timeout=2.0)

        assert bulk.batches == [["lead-0", "lead-1"]]
        assert [r.id for r in results] == ["id-lead-0", "id-lead-1"]
        assert len(errors) == 1
        assert isinstance(errors[0], ValueError)
        assert str(errors[0]) == "csv row broken"
        assert batcher.state is BatcherState.DONE

    @pytest.mark.asyncio
    async def test_source_failure_before_any_record(self) -> None:
        """Test a source failing immediately submits nothing and reports the error."""
        bulk = FakeBulk()

        async def unreadable():
            raise OSError("file vanished")
            yield  # pragma: no cover

        results, errors = await asyncio.wait_for(
            StreamingBatcher(bulk).start(unreadable()).drain(), timeout=2.0
        )

        assert bulk.batches == []
        assert results == []
        assert [type(e) for e in errors] == [OSError]

    @pytest.mark.asyncio
    async def test_flush_log_reports_counts(self) -> None:
        """Test each flush is logged with its created and failed counts."""
        stream = io.StringIO()
        LeadsDbLogger.configure(logging.INFO, stream=stream, formatter=JsonFormatter())

        def one_rejected(leads: list[Lead]) -> BulkCreateResult:
            return BulkCreateResult(
                total=len(leads),
                success=len(leads) - 1,
                failed=1,
                created=[BulkLeadResult(index=i, id=f"id-{i}") for i in range(1, len(leads))],
                errors=[BulkLeadError(index=0, message="duplicate")],
            )

        try:
            await asyncio.wait_for(
                StreamingBatcher(FakeBulk(one_rejected)).start(leads_from(3)).drain(),
                timeout=2.0,
            )
        finally:
            LeadsDbLogger.configure(logging.WARNING)

        records = [json.loads(line) for line in stream.getvalue().splitlines()]
        flushed = [r for r in records if r["message"] == "Flushed batch"]
        assert len(flushed) == 1
        assert flushed[0]["size"] == 3
        assert flushed[0]["created"] == 2
        assert flushed[0]["failed"] == 1
        assert flushed[0]["trigger"] == "end of stream"
