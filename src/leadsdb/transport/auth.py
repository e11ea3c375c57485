"""
API key resolution utilities.

Resolves the LeadsDB API key from:
1. Explicit value
2. The LEADSDB_API_KEY environment variable
3. System keyring (optional)
"""

from __future__ import annotations

import os

from leadsdb._features import HAS_KEYRING
from leadsdb.telemetry import get_logger

API_KEY_ENV = "LEADSDB_API_KEY"
API_KEY_HEADER = "X-API-Key"
KEYRING_SERVICE = "leadsdb"

logger = get_logger("leadsdb.transport.auth")


def resolve_api_key(explicit_key: str | None = None) -> str | None:
    """Resolve the API key.

    Args:
        explicit_key: Explicitly provided API key

    Returns:
        Resolved API key or None if not found
    """
    if explicit_key:
        return explicit_key

    key = os.getenv(API_KEY_ENV)
    if key:
        return key

    return _try_keyring()


def _try_keyring() -> str | None:
    """Try to get the API key from the system keyring."""
    if not HAS_KEYRING:
        return None

    import keyring
    from keyring.errors import KeyringError

    try:
        return keyring.get_password(KEYRING_SERVICE, "api_key")
    except KeyringError as e:
        # Common in containers and headless sessions
        logger.debug("Keyring lookup failed", error=str(e))
        return None


def get_auth_header(api_key: str | None) -> dict[str, str]:
    """Get the authentication header for a key."""
    if not api_key:
        return {}
    return {API_KEY_HEADER: api_key}
