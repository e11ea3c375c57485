"""
Client layer - User-facing API.

This module provides:
- LeadsClient: Main entry point for the LeadsDB API
- LeadsClientBuilder: Fluent client configuration
"""

from leadsdb.client.builder import LeadsClientBuilder
from leadsdb.client.core import LeadsClient

__all__ = [
    "LeadsClient",
    "LeadsClientBuilder",
]
