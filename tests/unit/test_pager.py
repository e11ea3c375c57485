"""Tests for cursor pagination."""

from __future__ import annotations

import asyncio

import pytest

from leadsdb.errors import ApiError, OperationCancelled, ProtocolError
from leadsdb.pagination import Paginator
from leadsdb.query import AND, ListOptions
from leadsdb.streaming import CancelToken
from leadsdb.types import Lead, ListResult


def lead(name: str) -> Lead:
    return Lead(name=name, source="test")


def page(names: list[str], next_cursor: str | None = None) -> ListResult:
    return ListResult(
        leads=[lead(n) for n in names],
        count=len(names),
        has_more=next_cursor is not None,
        next_cursor=next_cursor,
    )


class FakePages:
    """Serves scripted pages and records the options of every fetch."""

    def __init__(self, *outcomes: ListResult | Exception) -> None:
        self.outcomes = list(outcomes)
        self.requests: list[ListOptions] = []

    async def __call__(self, options: ListOptions, token: CancelToken | None) -> ListResult:
        self.requests.append(options)
        await asyncio.sleep(0)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class TestPaginator:
    """Tests for Paginator."""

    @pytest.mark.asyncio
    async def test_two_pages_two_requests(self) -> None:
        """Test [A, B] then [C] yields A, B, C with two requests."""
        fetch = FakePages(page(["A", "B"], "c2"), page(["C"]))
        options = ListOptions(limit=2, filters=(AND.city.eq("Berlin"),))

        names = [lead.name async for lead in Paginator(fetch, options)]

        assert names == ["A", "B", "C"]
        assert len(fetch.requests) == 2
        assert fetch.requests[0].cursor is None
        assert fetch.requests[1].cursor == "c2"
        assert fetch.requests[1].filters == options.filters
        assert fetch.requests[1].limit == 2

    @pytest.mark.asyncio
    async def test_early_exit_stops_fetching(self) -> None:
        """Test abandoning iteration issues no further requests."""
        fetch = FakePages(page(["A", "B"], "c2"), page(["C"]))
        items = Paginator(fetch).items()

        async for first in items:
            assert first.name == "A"
            break
        await items.aclose()

        assert len(fetch.requests) == 1

    @pytest.mark.asyncio
    async def test_error_after_previous_records(self) -> None:
        """Test a page failure surfaces after earlier records were yielded."""
        fetch = FakePages(page(["A"], "c2"), ApiError("down", status_code=503))
        seen: list[str] = []

        with pytest.raises(ApiError):
            async for item in Paginator(fetch):
                seen.append(item.name)

        assert seen == ["A"]

    @pytest.mark.asyncio
    async def test_has_more_without_cursor(self) -> None:
        """Test a page claiming more results without a cursor is a protocol error."""
        broken = ListResult(leads=[lead("A")], count=1, has_more=True, next_cursor="")
        fetch = FakePages(broken)
        seen: list[str] = []

        with pytest.raises(ProtocolError):
            async for item in Paginator(fetch):
                seen.append(item.name)

        assert seen == ["A"]
        assert len(fetch.requests) == 1

    @pytest.mark.asyncio
    async def test_pages(self) -> None:
        """Test page-level iteration."""
        fetch = FakePages(page(["A"], "c2"), page([]))
        pages = [p async for p in Paginator(fetch).pages()]
        assert [p.count for p in pages] == [1, 0]

    @pytest.mark.asyncio
    async def test_cancelled_between_pages(self) -> None:
        """Test a fired token stops before the next request."""
        fetch = FakePages(page(["A"], "c2"), page(["B"]))
        token = CancelToken()

        with pytest.raises(OperationCancelled):
            async for _ in Paginator(fetch).items(token):
                token.cancel()

        assert len(fetch.requests) == 1


class TestPaginatorOutlets:
    """Tests for push-based pagination."""

    @pytest.mark.asyncio
    async def test_outlets_deliver_in_order(self) -> None:
        """Test leads arrive in server order and both outlets close."""
        fetch = FakePages(page(["A", "B"], "c2"), page(["C"]))
        outlets = Paginator(fetch).to_outlets()

        results, errors = await asyncio.wait_for(outlets.drain(), timeout=1.0)

        assert [r.name for r in results] == ["A", "B", "C"]
        assert errors == []
        assert outlets.results.closed and outlets.errors.closed

    @pytest.mark.asyncio
    async def test_outlets_report_error(self) -> None:
        """Test a failing page is reported on the errors outlet."""
        fetch = FakePages(page(["A"], "c2"), ApiError("forbidden", status_code=403))
        outlets = Paginator(fetch).to_outlets()

        results, errors = await asyncio.wait_for(outlets.drain(), timeout=1.0)

        assert [r.name for r in results] == ["A"]
        assert len(errors) == 1
        assert isinstance(errors[0], ApiError)
        assert errors[0].status_code == 403

    @pytest.mark.asyncio
    async def test_outlets_cancelled(self) -> None:
        """Test cancellation closes both outlets without further fetches."""
        fetch = FakePages(page(["A", "B", "C", "D"], "c2"), page(["E"]))
        token = CancelToken()
        outlets = Paginator(fetch).to_outlets(token)

        first = await asyncio.wait_for(outlets.results.receive(), timeout=1.0)
        token.cancel()
        await asyncio.wait_for(outlets.wait(), timeout=1.0)

        assert first.name == "A"
        assert outlets.results.closed
        assert outlets.errors.closed
        assert len(fetch.requests) == 1
