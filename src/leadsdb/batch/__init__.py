"""
Streaming bulk creation.

This module provides:
- BatchConfig: batch size and flush timeout
- StreamingBatcher: groups a lead stream into bulk requests
"""

from leadsdb.batch.batcher import BatcherState, StreamingBatcher
from leadsdb.batch.config import DEFAULT_FLUSH_TIMEOUT, MAX_BATCH_SIZE, BatchConfig

__all__ = [
    "DEFAULT_FLUSH_TIMEOUT",
    "MAX_BATCH_SIZE",
    "BatchConfig",
    "BatcherState",
    "StreamingBatcher",
]
