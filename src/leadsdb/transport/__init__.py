"""
Transport layer - HTTP client for API communication.

Provides httpx-based transport with:
- Connection pooling through a single AsyncClient
- Timeout and base URL resolution from environment
- API key resolution
"""

from leadsdb.transport.auth import API_KEY_ENV, API_KEY_HEADER, get_auth_header, resolve_api_key
from leadsdb.transport.http import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT,
    HttpTransport,
    resolve_base_url,
    resolve_timeout,
)

__all__ = [
    "API_KEY_ENV",
    "API_KEY_HEADER",
    "DEFAULT_BASE_URL",
    "DEFAULT_TIMEOUT",
    "HttpTransport",
    "get_auth_header",
    "resolve_api_key",
    "resolve_base_url",
    "resolve_timeout",
]
