"""
Integration test helper utilities.

Shared fixtures for integration tests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest_asyncio

from leadsdb import LeadsClient

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from leadsdb import RetryConfig


@pytest_asyncio.fixture
async def client(base_url: str, fast_retry: RetryConfig) -> AsyncIterator[LeadsClient]:
    """Client whose default transport is intercepted by pytest-httpx."""
    async with LeadsClient("test-key", base_url=base_url, retry=fast_retry) as c:
        yield c
