"""HTTP transport using httpx for async requests.

Provides:
- A pooled async client shared by every operation of a LeadsClient
- Configurable timeouts
- Proxy support via environment (opt-in)
- Automatic header management
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager, suppress
from typing import TYPE_CHECKING, Any

import httpx

from leadsdb.errors import TransportError
from leadsdb.telemetry import SensitiveDataMasker
from leadsdb.transport.auth import get_auth_header

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence

DEFAULT_BASE_URL = "https://getleadsdb.com/api/v1"
DEFAULT_TIMEOUT = 60.0
_DEFAULT_CONNECT_TIMEOUT = 10.0

_UA_VERSION: str | None = None


def _trust_env_enabled() -> bool:
    """Use env proxy settings only when explicitly enabled."""
    return os.getenv("LEADSDB_TRUST_ENV", "0") == "1"


def _get_ua_version() -> str:
    """Get package version for User-Agent (cached)."""
    global _UA_VERSION
    if _UA_VERSION is None:
        from importlib.metadata import PackageNotFoundError, version

        try:
            _UA_VERSION = version("leadsdb")
        except PackageNotFoundError:
            _UA_VERSION = "0.1.0"
    return _UA_VERSION


def resolve_base_url(base_url: str | None = None) -> str:
    """Explicit URL, then LEADSDB_BASE_URL, then the public endpoint."""
    url = base_url or os.getenv("LEADSDB_BASE_URL") or DEFAULT_BASE_URL
    return url.rstrip("/")


def resolve_timeout(timeout: float | None = None) -> float:
    """Explicit timeout, then LEADSDB_TIMEOUT_SECS, then the default."""
    if timeout is not None:
        return timeout
    env_timeout = os.getenv("LEADSDB_TIMEOUT_SECS")
    if env_timeout:
        with suppress(ValueError):
            return float(env_timeout)
    return DEFAULT_TIMEOUT


class HttpTransport:
    """HTTP transport for the LeadsDB API.

    Owns the connection pool; safe to share across concurrent operations.

    Example:
        >>> transport = HttpTransport("key-123")
        >>> response = await transport.send("GET", "/leads/abc")
        >>> response.status_code
        200
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize HTTP transport.

        Args:
            api_key: API key sent as X-API-Key
            base_url: API base URL
            timeout: Request timeout in seconds
            client: Caller-owned httpx client (not closed by this transport)
            transport: Custom httpx transport for the owned client
        """
        self._api_key = api_key
        SensitiveDataMasker.register_secret(api_key)
        self._base_url = resolve_base_url(base_url)
        self._timeout = resolve_timeout(timeout)
        self._transport = transport
        self._client = client
        self._owns_client = client is None

    @property
    def base_url(self) -> str:
        """Resolved base URL."""
        return self._base_url

    @property
    def timeout(self) -> float:
        """Resolved request timeout in seconds."""
        return self._timeout

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout, connect=_DEFAULT_CONNECT_TIMEOUT),
                transport=self._transport,
                trust_env=_trust_env_enabled(),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _build_headers(self, extra_headers: dict[str, str] | None = None) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": f"leadsdb-python/{_get_ua_version()}",
        }
        headers.update(get_auth_header(self._api_key))
        if extra_headers:
            headers.update(extra_headers)
        return headers

    def url(self, path: str) -> str:
        """Absolute URL for an API path."""
        return f"{self._base_url}{path}"

    def _transport_error(self, exc: httpx.HTTPError, path: str) -> TransportError:
        url = self.url(path)
        if isinstance(exc, httpx.ConnectError):
            return TransportError(f"Connection failed: {exc}", url=url, cause=exc)
        if isinstance(exc, httpx.TimeoutException):
            return TransportError(f"Request timed out: {exc}", url=url, cause=exc)
        return TransportError(f"HTTP error: {exc}", url=url, cause=exc)

    async def send(
        self,
        method: str,
        path: str,
        *,
        content: bytes | None = None,
        params: Sequence[tuple[str, str]] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Make one HTTP round trip and read the whole body.

        Status codes are not interpreted here.

        Raises:
            TransportError: On network/connection errors
        """
        client = self._get_client()
        try:
            return await client.request(
                method=method,
                url=self.url(path),
                content=content,
                params=list(params) if params else None,
                headers=self._build_headers(headers),
            )
        except httpx.HTTPError as e:
            raise self._transport_error(e, path) from e

    @asynccontextmanager
    async def stream(
        self,
        method: str,
        path: str,
        *,
        params: Sequence[tuple[str, str]] | None = None,
        headers: dict[str, str] | None = None,
    ) -> AsyncIterator[httpx.Response]:
        """Make a streaming HTTP request; the response is closed on exit.

        Raises:
            TransportError: On network/connection errors
        """
        client = self._get_client()
        request_headers = self._build_headers(headers)
        request_headers["Accept"] = "*/*"

        try:
            async with client.stream(
                method=method,
                url=self.url(path),
                params=list(params) if params else None,
                headers=request_headers,
            ) as response:
                yield response
        except httpx.HTTPError as e:
            raise self._transport_error(e, path) from e

    async def __aenter__(self) -> HttpTransport:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
