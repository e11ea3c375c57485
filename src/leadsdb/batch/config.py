"""
Batch configuration for streaming bulk creation.
"""

from __future__ import annotations

from dataclasses import dataclass

from leadsdb.errors import ValidationError

MAX_BATCH_SIZE = 100
DEFAULT_FLUSH_TIMEOUT = 2.0


@dataclass
class BatchConfig:
    """Configuration for batch collection.

    Attributes:
        max_batch_size: Records per bulk request, capped at 100
        flush_timeout: Seconds of inactivity after the first record of a
            batch before a partial batch is flushed
        results_capacity: Created results buffered before the batcher
            waits for the consumer
    """

    max_batch_size: int = MAX_BATCH_SIZE
    flush_timeout: float = DEFAULT_FLUSH_TIMEOUT
    results_capacity: int = 1

    def __post_init__(self) -> None:
        self.max_batch_size = max(1, min(self.max_batch_size, MAX_BATCH_SIZE))
        if self.flush_timeout <= 0:
            raise ValidationError(
                "flush_timeout must be positive", field="flush_timeout"
            )

    @classmethod
    def default(cls) -> BatchConfig:
        """Create default configuration."""
        return cls()
