"""
Retry policy with exponential backoff and additive jitter.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from leadsdb.errors import RETRYABLE_STATUSES, is_retryable

if TYPE_CHECKING:
    from leadsdb.streaming.cancel import CancelToken


@dataclass
class RetryConfig:
    """Configuration for retry policy.

    Attributes:
        max_retries: Maximum number of attempts per logical operation
        base_delay: Delay in seconds before the first retry, doubled per attempt
        max_jitter: Upper bound (exclusive) of the random delay added to every wait
        retry_on_status: HTTP status codes to retry on
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_jitter: float = 0.5
    retry_on_status: frozenset[int] = field(
        default_factory=lambda: RETRYABLE_STATUSES
    )

    @property
    def max_attempts(self) -> int:
        """Number of attempts actually made; there is always at least one."""
        return max(1, self.max_retries)

    @classmethod
    def no_retry(cls) -> RetryConfig:
        """Create a config that makes a single attempt."""
        return cls(max_retries=1)


class RetryPolicy:
    """Backoff calculation and retry classification.

    Example:
        >>> policy = RetryPolicy(RetryConfig(base_delay=0.5))
        >>> policy.calculate_delay(2)  # 2.0s plus up to 0.5s of jitter
    """

    def __init__(self, config: RetryConfig | None = None) -> None:
        self._config = config or RetryConfig()

    @property
    def config(self) -> RetryConfig:
        """Get retry configuration."""
        return self._config

    @property
    def max_attempts(self) -> int:
        """Attempts allowed per logical operation."""
        return self._config.max_attempts

    def calculate_delay(self, attempt: int, retry_after: float | None = None) -> float:
        """Calculate delay for a retry attempt.

        Args:
            attempt: Attempt number that just failed (0-based)
            retry_after: Optional retry-after hint from server, in seconds

        Returns:
            Delay in seconds
        """
        if retry_after is not None and retry_after > 0:
            delay = retry_after
        else:
            delay = self._config.base_delay * (2 ** attempt)

        return delay + self.jitter()

    def jitter(self) -> float:
        """Random extra delay in ``[0, max_jitter)``."""
        if self._config.max_jitter <= 0:
            return 0.0
        return random.random() * self._config.max_jitter

    def should_retry(self, error: Exception) -> bool:
        """Check if an error should trigger a retry.

        Transport failures are always retried; API errors only for the
        configured status set.
        """
        return is_retryable(error, self._config.retry_on_status)

    async def wait(self, delay: float, token: CancelToken | None = None) -> bool:
        """Sleep for ``delay`` seconds unless cancelled first.

        Returns:
            True if the wait was cut short by cancellation
        """
        if token is None:
            await asyncio.sleep(delay)
            return False
        return await token.wait_with_timeout(delay)
