"""
Builder for fluent LeadsClient construction.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from leadsdb.resilience import RetryConfig

if TYPE_CHECKING:
    import httpx

    from leadsdb.client.core import LeadsClient


class LeadsClientBuilder:
    """Builder for creating LeadsClient instances with custom configuration.

    Example:
        >>> client = (
        ...     LeadsClientBuilder()
        ...     .api_key("key-123")
        ...     .base_url("https://staging.getleadsdb.com/api/v1")
        ...     .timeout(30)
        ...     .max_retries(5)
        ...     .build()
        ... )
    """

    def __init__(self) -> None:
        """Initialize the builder."""
        self._api_key: str | None = None
        self._base_url: str | None = None
        self._timeout: float | None = None
        self._retry = RetryConfig()
        self._http_client: httpx.AsyncClient | None = None
        self._transport: httpx.AsyncBaseTransport | None = None

    def api_key(self, key: str) -> LeadsClientBuilder:
        """Set explicit API key.

        Args:
            key: API key sent as X-API-Key

        Returns:
            Self for chaining
        """
        self._api_key = key
        return self

    def base_url(self, url: str) -> LeadsClientBuilder:
        """Override the API base URL.

        Args:
            url: Base URL, with or without a trailing slash

        Returns:
            Self for chaining
        """
        self._base_url = url
        return self

    def timeout(self, seconds: float) -> LeadsClientBuilder:
        """Set the per-request timeout.

        Args:
            seconds: Timeout in seconds

        Returns:
            Self for chaining
        """
        self._timeout = seconds
        return self

    def max_retries(self, n: int) -> LeadsClientBuilder:
        """Set the maximum number of attempts per request.

        Values below one still make a single attempt.

        Returns:
            Self for chaining
        """
        self._retry = replace(self._retry, max_retries=n)
        return self

    def retry(self, config: RetryConfig) -> LeadsClientBuilder:
        """Replace the whole retry configuration."""
        self._retry = config
        return self

    def no_retry(self) -> LeadsClientBuilder:
        """Make exactly one attempt per request."""
        self._retry = RetryConfig.no_retry()
        return self

    def http_client(self, client: httpx.AsyncClient) -> LeadsClientBuilder:
        """Use a caller-owned httpx client.

        The client is not closed by ``LeadsClient.close``.
        """
        self._http_client = client
        return self

    def transport(self, transport: httpx.AsyncBaseTransport) -> LeadsClientBuilder:
        """Use a custom httpx transport (e.g. ``httpx.MockTransport``)."""
        self._transport = transport
        return self

    def build(self) -> LeadsClient:
        """Build the client.

        Raises:
            ValidationError: If no API key can be found
        """
        from leadsdb.client.core import LeadsClient

        return LeadsClient(
            self._api_key,
            base_url=self._base_url,
            timeout=self._timeout,
            retry=self._retry,
            http_client=self._http_client,
            transport=self._transport,
        )
