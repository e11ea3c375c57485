"""
Core LeadsClient implementation.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from leadsdb.batch import MAX_BATCH_SIZE, BatchConfig, StreamingBatcher
from leadsdb.client.builder import LeadsClientBuilder
from leadsdb.errors import ApiError, ValidationError
from leadsdb.pagination import Paginator
from leadsdb.query import ListOptions
from leadsdb.resilience import RequestDescriptor, ResilientExecutor, RetryConfig
from leadsdb.streaming import run_cancellable
from leadsdb.telemetry import get_logger
from leadsdb.transport import HttpTransport, resolve_api_key
from leadsdb.types import (
    BulkCreateRequest,
    BulkCreateResult,
    ExportFormat,
    Lead,
    ListResult,
    Note,
    NoteContent,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator, Sequence

    import httpx

    from leadsdb.streaming import CancelToken, Outlets
    from leadsdb.types import BulkLeadResult, UpdateLeadInput

logger = get_logger("leadsdb.client")


def _require(value: str | None, field: str) -> str:
    if not value:
        raise ValidationError(f"{field} is required", field=field)
    return value


def _segment(value: str) -> str:
    return quote(value, safe="")


def _validate_new_lead(lead: Lead | None, path: str = "lead") -> None:
    if lead is None:
        raise ValidationError(f"{path} is required", field=path)
    for name in ("name", "source"):
        if not getattr(lead, name):
            raise ValidationError(f"{path}: {name} is required", field=f"{path}.{name}")


class LeadsClient:
    """Asynchronous client for the LeadsDB API.

    Every operation accepts an optional ``token`` for cooperative
    cancellation. Transient failures (connection errors, 429 and 5xx
    responses) are retried with exponential backoff.

    Example:
        >>> async with LeadsClient("key-123") as client:
        ...     lead = await client.create(Lead(name="Acme", source="manual"))
        ...     async for lead in client.iterate():
        ...         print(lead.name)

        >>> # Streaming bulk import
        >>> outlets = client.bulk_create_stream(read_leads())
        >>> created, errors = await outlets.drain()
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        retry: RetryConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: API key; falls back to LEADSDB_API_KEY, then the keyring
            base_url: API base URL; falls back to LEADSDB_BASE_URL
            timeout: Per-request timeout in seconds
            retry: Retry configuration
            http_client: Caller-owned httpx client, left open by ``close``
            transport: Custom httpx transport for the owned client

        Raises:
            ValidationError: If no API key can be found
        """
        key = resolve_api_key(api_key)
        if not key:
            raise ValidationError("API key is required", field="api_key").with_hint(
                "pass api_key or set LEADSDB_API_KEY"
            )
        self._transport = HttpTransport(
            key,
            base_url=base_url,
            timeout=timeout,
            client=http_client,
            transport=transport,
        )
        self._executor = ResilientExecutor(self._transport, retry)

    @classmethod
    def builder(cls) -> LeadsClientBuilder:
        """Get a builder for advanced configuration.

        Example:
            >>> client = (
            ...     LeadsClient.builder()
            ...     .api_key("key-123")
            ...     .max_retries(5)
            ...     .build()
            ... )
        """
        return LeadsClientBuilder()

    @property
    def base_url(self) -> str:
        return self._transport.base_url

    @property
    def executor(self) -> ResilientExecutor:
        """Executor used for every JSON request."""
        return self._executor

    async def _call(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        body: Any = None,
        params: Sequence[tuple[str, str]] = (),
        result_type: Any = None,
        token: CancelToken | None = None,
    ) -> Any:
        descriptor = RequestDescriptor(
            method,
            path,
            body=body,
            params=tuple(params),
            result_type=result_type,
            operation=operation,
        )
        return await self._executor.execute(descriptor, token)

    # Leads

    async def get(self, lead_id: str, *, token: CancelToken | None = None) -> Lead:
        """Retrieve a lead by ID."""
        _require(lead_id, "lead_id")
        return await self._call(
            "GET", f"/leads/{_segment(lead_id)}", operation="get_lead", result_type=Lead, token=token
        )

    async def create(self, lead: Lead, *, token: CancelToken | None = None) -> Lead:
        """Create a lead.

        Raises:
            ValidationError: If the lead has no name or source
        """
        _validate_new_lead(lead)
        return await self._call(
            "POST", "/leads", operation="create_lead", body=lead, result_type=Lead, token=token
        )

    async def update(
        self,
        lead_id: str,
        update: UpdateLeadInput,
        *,
        token: CancelToken | None = None,
    ) -> Lead:
        """Partially update a lead; unset fields are left untouched."""
        _require(lead_id, "lead_id")
        if update is None:
            raise ValidationError("update is required", field="update")
        return await self._call(
            "PATCH",
            f"/leads/{_segment(lead_id)}",
            operation="update_lead",
            body=update,
            result_type=Lead,
            token=token,
        )

    async def delete(self, lead_id: str, *, token: CancelToken | None = None) -> None:
        """Delete a lead."""
        _require(lead_id, "lead_id")
        await self._call("DELETE", f"/leads/{_segment(lead_id)}", operation="delete_lead", token=token)

    # Notes

    async def create_note(
        self, lead_id: str, content: str, *, token: CancelToken | None = None
    ) -> Note:
        """Attach a note to a lead."""
        _require(lead_id, "lead_id")
        _require(content, "content")
        return await self._call(
            "POST",
            f"/leads/{_segment(lead_id)}/notes",
            operation="create_note",
            body=NoteContent(content=content),
            result_type=Note,
            token=token,
        )

    async def list_notes(self, lead_id: str, *, token: CancelToken | None = None) -> list[Note]:
        """List every note of a lead."""
        _require(lead_id, "lead_id")
        notes = await self._call(
            "GET",
            f"/leads/{_segment(lead_id)}/notes",
            operation="list_notes",
            result_type=list[Note],
            token=token,
        )
        return notes or []

    async def update_note(
        self, note_id: str, content: str, *, token: CancelToken | None = None
    ) -> Note:
        """Replace a note's content."""
        _require(note_id, "note_id")
        _require(content, "content")
        return await self._call(
            "PUT",
            f"/leads/notes/{_segment(note_id)}",
            operation="update_note",
            body=NoteContent(content=content),
            result_type=Note,
            token=token,
        )

    async def delete_note(self, note_id: str, *, token: CancelToken | None = None) -> None:
        """Delete a note."""
        _require(note_id, "note_id")
        await self._call(
            "DELETE", f"/leads/notes/{_segment(note_id)}", operation="delete_note", token=token
        )

    # Listing

    async def list(
        self, options: ListOptions | None = None, *, token: CancelToken | None = None
    ) -> ListResult:
        """Fetch a single page of leads."""
        options = options or ListOptions()
        return await self._call(
            "GET",
            "/leads",
            operation="list_leads",
            params=options.to_params(),
            result_type=ListResult,
            token=token,
        )

    async def _fetch_page(self, options: ListOptions, token: CancelToken | None) -> ListResult:
        return await self.list(options, token=token)

    def paginator(self, options: ListOptions | None = None) -> Paginator:
        """Paginator over every lead matching ``options``."""
        return Paginator(self._fetch_page, options)

    def iterate(
        self, options: ListOptions | None = None, *, token: CancelToken | None = None
    ) -> AsyncIterator[Lead]:
        """Iterate every matching lead, fetching pages on demand.

        Example:
            >>> async for lead in client.iterate(ListOptions(limit=50)):
            ...     print(lead.name)
        """
        return self.paginator(options).items(token)

    def iterate_outlets(
        self,
        options: ListOptions | None = None,
        *,
        token: CancelToken | None = None,
        capacity: int = 1,
    ) -> Outlets[Lead]:
        """Deliver every matching lead on outlets from a background task."""
        return self.paginator(options).to_outlets(token, capacity=capacity)

    # Bulk

    async def bulk_create(
        self, leads: Sequence[Lead], *, token: CancelToken | None = None
    ) -> BulkCreateResult:
        """Create up to 100 leads in one request.

        Raises:
            ValidationError: If the batch is empty, too large, or a lead
                lacks a name or source
        """
        if not leads:
            raise ValidationError("leads is required", field="leads")
        if len(leads) > MAX_BATCH_SIZE:
            raise ValidationError(
                f"maximum {MAX_BATCH_SIZE} leads allowed, got {len(leads)}", field="leads"
            )
        for i, lead in enumerate(leads):
            _validate_new_lead(lead, f"leads[{i}]")

        return await self._call(
            "POST",
            "/leads/batch",
            operation="bulk_create",
            body=BulkCreateRequest(leads=list(leads)),
            result_type=BulkCreateResult,
            token=token,
        )

    async def _submit_batch(
        self, leads: list[Lead], token: CancelToken | None
    ) -> BulkCreateResult:
        return await self.bulk_create(leads, token=token)

    def bulk_create_stream(
        self,
        source: AsyncIterable[Lead],
        config: BatchConfig | None = None,
        *,
        token: CancelToken | None = None,
    ) -> Outlets[BulkLeadResult]:
        """Create leads from an async stream in batches.

        Returns outlets delivering each created lead and each failure.
        Read both outlets concurrently (``Outlets.drain`` does).
        """
        batcher = StreamingBatcher(self._submit_batch, config, token)
        return batcher.start(source)

    # Export

    @asynccontextmanager
    async def export(
        self,
        format: ExportFormat | str = ExportFormat.CSV,
        *,
        token: CancelToken | None = None,
    ) -> AsyncIterator[httpx.Response]:
        """Open an export of all leads as a streaming response.

        Exports are not retried. The response is closed when the context
        exits.

        Example:
            >>> async with client.export(ExportFormat.JSON) as response:
            ...     async for chunk in response.aiter_bytes():
            ...         out.write(chunk)

        Raises:
            ApiError: If the server rejects the export
        """
        try:
            export_format = ExportFormat(format)
        except ValueError as e:
            raise ValidationError(f"unsupported export format: {format}", field="format") from e
        if token is not None:
            token.raise_if_cancelled()
        logger.debug("Starting export", format=export_format.value)
        async with self._transport.stream(
            "POST", "/leads/export", params=[("format", export_format.value)]
        ) as response:
            if not response.is_success:
                body = await response.aread()
                raise ApiError.from_response(response.status_code, body, response.headers)
            yield response

    async def export_bytes(
        self,
        format: ExportFormat | str = ExportFormat.CSV,
        *,
        token: CancelToken | None = None,
    ) -> bytes:
        """Export all leads and return the whole file."""

        async def read() -> bytes:
            async with self.export(format) as response:
                return await response.aread()

        return await run_cancellable(read(), token)

    # Lifecycle

    async def close(self) -> None:
        """Close the client and release the connection pool."""
        await self._transport.close()

    async def __aenter__(self) -> LeadsClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
