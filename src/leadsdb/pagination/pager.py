"""
Cursor-based paging over lead listings.

Pages are fetched lazily: each request reuses the original options with the
cursor returned by the previous page, and nothing is fetched ahead of the
consumer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from leadsdb.errors import LeadsDbError, OperationCancelled, ProtocolError
from leadsdb.query import ListOptions
from leadsdb.streaming import Outlets
from leadsdb.telemetry import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from leadsdb.streaming import CancelToken
    from leadsdb.types import Lead, ListResult

    PageFetcher = Callable[[ListOptions, CancelToken | None], Awaitable[ListResult]]

logger = get_logger("leadsdb.pagination")


class Paginator:
    """Walks every page of a listing.

    Example:
        >>> async for lead in Paginator(client.list_page, options):
        ...     print(lead.name)

    Args:
        fetch_page: Coroutine fetching one page for the given options
        options: Listing options; ``cursor`` is replaced page by page
    """

    def __init__(self, fetch_page: PageFetcher, options: ListOptions | None = None) -> None:
        self._fetch_page = fetch_page
        self._options = options or ListOptions()

    @property
    def options(self) -> ListOptions:
        return self._options

    async def pages(self, token: CancelToken | None = None) -> AsyncIterator[ListResult]:
        """Yield pages in server order until ``has_more`` is false.

        Raises:
            ProtocolError: If a page claims more results without a cursor
            OperationCancelled: If the token fires between pages
        """
        options = self._options
        number = 0
        while True:
            if token is not None:
                token.raise_if_cancelled()
            page = await self._fetch_page(options, token)
            number += 1
            logger.debug(
                "Fetched page",
                page=number,
                count=len(page.leads),
                has_more=page.has_more,
            )
            yield page
            if not page.has_more:
                return
            if not page.next_cursor:
                raise ProtocolError(
                    f"page {number} reports more results but no next_cursor"
                )
            options = options.with_cursor(page.next_cursor)

    async def items(self, token: CancelToken | None = None) -> AsyncIterator[Lead]:
        """Yield leads one at a time across pages.

        Errors surface at the point they occur, after every lead from
        earlier pages has been yielded.
        """
        async for page in self.pages(token):
            for lead in page.leads:
                yield lead

    def __aiter__(self) -> AsyncIterator[Lead]:
        return self.items()

    def to_outlets(
        self, token: CancelToken | None = None, *, capacity: int = 1
    ) -> Outlets[Lead]:
        """Deliver leads on a results outlet from a background task.

        The first failure is sent on the errors outlet; both outlets close
        once the listing is exhausted, fails or is cancelled.
        """

        async def produce(outlets: Outlets[Lead]) -> None:
            leads = self.items(token)
            try:
                async for lead in leads:
                    await outlets.emit(lead)
            except OperationCancelled:
                raise
            except LeadsDbError as e:
                logger.warning("Listing failed", error=str(e))
                await outlets.emit_error(e)
            finally:
                await leads.aclose()

        return Outlets.spawn(
            produce, token, name="leadsdb-paginator", results_capacity=capacity
        )
