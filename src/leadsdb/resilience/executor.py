"""Resilient request executor.

Issues one logical request against the API, replaying the identical request
on transient failures until it succeeds, fails terminally or runs out of
attempts.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from leadsdb.errors import ApiError, DecodeError, LeadsDbError, TransportError
from leadsdb.resilience.retry import RetryConfig, RetryPolicy
from leadsdb.streaming.cancel import run_cancellable
from leadsdb.telemetry import get_logger, log_context

if TYPE_CHECKING:
    from collections.abc import Callable

    from leadsdb.streaming.cancel import CancelToken
    from leadsdb.transport import HttpTransport

logger = get_logger("leadsdb.resilience.executor")


@lru_cache(maxsize=64)
def _adapter(result_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(result_type)


@dataclass(frozen=True)
class RequestDescriptor:
    """One logical API call.

    Attributes:
        method: HTTP method
        path: Path relative to the base URL
        body: Request body model, serialized once per logical call
        params: Ordered query parameters
        result_type: Shape to decode a successful body into (None to ignore it)
        operation: Name used in logs
    """

    method: str
    path: str
    body: BaseModel | None = None
    params: tuple[tuple[str, str], ...] = ()
    result_type: Any = None
    operation: str | None = None

    def encode_body(self) -> bytes | None:
        """Serialize the body, omitting unset optional fields."""
        if self.body is None:
            return None
        return self.body.model_dump_json(exclude_none=True).encode()

    def decode(self, response: httpx.Response) -> Any:
        """Decode a successful response into ``result_type``.

        Raises:
            DecodeError: If the body does not match the requested shape
        """
        content = response.content
        if self.result_type is None or not content:
            return None
        try:
            return _adapter(self.result_type).validate_json(content)
        except PydanticValidationError as e:
            raise DecodeError(
                f"Failed to decode {self.method} {self.path} response: {e.error_count()} error(s)",
                status_code=response.status_code,
                body=content,
                cause=e,
            ) from e


class ResilientExecutor:
    """Executes request descriptors with retry, backoff and cancellation.

    Example:
        >>> executor = ResilientExecutor(transport, RetryConfig(max_retries=5))
        >>> lead = await executor.execute(
        ...     RequestDescriptor("GET", "/leads/abc", result_type=Lead)
        ... )
    """

    def __init__(
        self,
        transport: HttpTransport,
        config: RetryConfig | None = None,
        *,
        policy: RetryPolicy | None = None,
    ) -> None:
        """Initialize executor.

        Args:
            transport: Transport owning the connection pool
            config: Retry configuration (ignored when ``policy`` is given)
            policy: Pre-built retry policy
        """
        self._transport = transport
        self._policy = policy or RetryPolicy(config)

    @property
    def policy(self) -> RetryPolicy:
        """Retry policy in use."""
        return self._policy

    @property
    def transport(self) -> HttpTransport:
        """Underlying transport."""
        return self._transport

    async def execute(
        self,
        descriptor: RequestDescriptor,
        token: CancelToken | None = None,
        on_retry: Callable[[int, Exception, float], None] | None = None,
    ) -> Any:
        """Execute a logical request.

        Args:
            descriptor: Request to perform
            token: Cancellation token checked at every suspension point
            on_retry: Callback(attempt, error, delay) invoked before each wait

        Returns:
            Decoded result, or None when no result shape was requested or
            the body was empty

        Raises:
            OperationCancelled: If the token fires
            TransportError: Last connection failure once attempts run out
            ApiError: Terminal or last retriable API error
            DecodeError: If a successful body cannot be decoded
        """
        with log_context(
            request_id=uuid.uuid4().hex[:12],
            operation=descriptor.operation or f"{descriptor.method} {descriptor.path}",
        ):
            return await self._execute(descriptor, token, on_retry)

    async def _execute(
        self,
        descriptor: RequestDescriptor,
        token: CancelToken | None,
        on_retry: Callable[[int, Exception, float], None] | None,
    ) -> Any:
        content = descriptor.encode_body()
        max_attempts = self._policy.max_attempts
        last_error: LeadsDbError | None = None

        for attempt in range(max_attempts):
            if token is not None:
                token.raise_if_cancelled()

            logger.debug("Sending request", attempt=attempt, method=descriptor.method)
            try:
                response = await run_cancellable(
                    self._transport.send(
                        descriptor.method,
                        descriptor.path,
                        content=content,
                        params=descriptor.params,
                    ),
                    token,
                )
            except TransportError as e:
                last_error = e
                retry_after = None
            else:
                if response.is_success:
                    return descriptor.decode(response)
                last_error = ApiError.from_response(
                    response.status_code, response.content, response.headers
                )
                retry_after = last_error.retry_after

            if not self._policy.should_retry(last_error) or attempt + 1 >= max_attempts:
                raise last_error

            delay = self._policy.calculate_delay(attempt, retry_after)
            logger.warning(
                "Retrying request",
                attempt=attempt + 1,
                max_attempts=max_attempts,
                delay_s=round(delay, 3),
                cause=str(last_error),
            )
            if on_retry is not None:
                on_retry(attempt + 1, last_error, delay)
            await self._policy.wait(delay, token)

        # Unreachable: the final attempt either returns or raises
        raise last_error  # type: ignore[misc]
