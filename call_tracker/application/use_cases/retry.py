"""Bounded retry with exponential backoff for collaborator and storage calls."""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from call_tracker.domain.errors import CollaboratorUnavailableError

T = TypeVar("T")

DEFAULT_TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    CollaboratorUnavailableError,
    ConnectionError,
    TimeoutError,
    asyncio.TimeoutError,
)


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently to retry a transient failure."""

    max_attempts: int = 3
    base_delay_seconds: float = 0.5
    max_delay_seconds: float = 8.0
    timeout_seconds: Optional[float] = 10.0
    transient_errors: tuple[type[BaseException], ...] = DEFAULT_TRANSIENT_ERRORS

    def delay_for(self, attempt: int) -> float:
        """
        Backoff delay before the retry following ``attempt``.

        Args:
            attempt: Zero-based index of the attempt that just failed

        Returns:
            Delay in seconds, capped at max_delay_seconds
        """
        return min(self.base_delay_seconds * (2**attempt), self.max_delay_seconds)


NO_RETRY = RetryPolicy(max_attempts=1, base_delay_seconds=0.0, timeout_seconds=None)


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    description: str,
    logger: Optional[Callable[..., None]] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """
    Run ``operation`` retrying transient failures.

    Non-transient exceptions propagate on the first occurrence.

    Args:
        operation: Zero-argument coroutine factory
        policy: Retry policy
        description: Human-readable name used in logs and the final error
        logger: Optional structured logger (tenant_id, component, **fields)
        sleep: Sleep coroutine (injectable for tests)

    Returns:
        Result of the first successful attempt

    Raises:
        CollaboratorUnavailableError: When every attempt failed transiently
    """
    last_error: Optional[BaseException] = None
    for attempt in range(max(policy.max_attempts, 1)):
        try:
            if policy.timeout_seconds is None:
                return await operation()
            return await asyncio.wait_for(operation(), timeout=policy.timeout_seconds)
        except policy.transient_errors as e:
            last_error = e
            if logger:
                logger(
                    None,
                    "retry",
                    operation=description,
                    attempt=attempt + 1,
                    max_attempts=policy.max_attempts,
                    error=str(e) or type(e).__name__,
                )
            if attempt + 1 < policy.max_attempts:
                await sleep(policy.delay_for(attempt))

    raise CollaboratorUnavailableError(
        f"{description} failed after {policy.max_attempts} attempts: {last_error}"
    ) from last_error
