"""Root pytest fixtures for leadsdb tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from leadsdb import LeadsClient, RetryConfig

if TYPE_CHECKING:
    from collections.abc import Callable

BASE_URL = "https://api.test/v1"


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep ambient configuration out of every test."""
    for name in ("LEADSDB_API_KEY", "LEADSDB_BASE_URL", "LEADSDB_TIMEOUT_SECS", "LEADSDB_TRUST_ENV"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("leadsdb.transport.auth.HAS_KEYRING", False)


@pytest.fixture
def base_url() -> str:
    """Base URL used by test clients."""
    return BASE_URL


@pytest.fixture
def fast_retry() -> RetryConfig:
    """Retry configuration with near-zero backoff."""
    return RetryConfig(max_retries=3, base_delay=0.001, max_jitter=0.0)


@pytest.fixture
def mock_client(
    fast_retry: RetryConfig,
) -> Callable[[Callable[[httpx.Request], httpx.Response]], LeadsClient]:
    """Build a client whose requests are answered by a handler function."""

    def factory(
        handler: Callable[[httpx.Request], httpx.Response],
        retry: RetryConfig | None = None,
    ) -> LeadsClient:
        return LeadsClient(
            "test-key",
            base_url=BASE_URL,
            retry=retry or fast_retry,
            transport=httpx.MockTransport(handler),
        )

    return factory
