"""
Resilience layer - retry classification, backoff and the request executor.

This module provides:
- RetryPolicy: Exponential backoff with additive jitter and cancellable waits
- ResilientExecutor: Replays a RequestDescriptor until success or a terminal error
"""

from leadsdb.resilience.executor import RequestDescriptor, ResilientExecutor
from leadsdb.resilience.retry import RetryConfig, RetryPolicy

__all__ = [
    "RequestDescriptor",
    "ResilientExecutor",
    "RetryConfig",
    "RetryPolicy",
]
