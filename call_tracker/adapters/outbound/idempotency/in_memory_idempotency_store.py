"""In-memory idempotency store adapter."""

import time
from typing import Callable

from call_tracker.application.ports.idempotency_store import IdempotencyStore


class InMemoryIdempotencyStore(IdempotencyStore):
    """Process-local idempotency store with expiring keys."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """
        Initialize in-memory store.

        Args:
            clock: Monotonic clock in seconds (injectable for tests)
        """
        self._expires_at: dict[str, float] = {}
        self._clock = clock

    async def is_processed(self, key: str) -> bool:
        """
        Check if a key has been processed and has not expired.

        Args:
            key: Idempotency key

        Returns:
            True if the key has been processed, False otherwise
        """
        expires_at = self._expires_at.get(key)
        if expires_at is None:
            return False
        if expires_at <= self._clock():
            del self._expires_at[key]
            return False
        return True

    async def mark_processed(self, key: str, ttl_seconds: int) -> None:
        """
        Mark a key as processed with a TTL.

        Args:
            key: Idempotency key
            ttl_seconds: Time-to-live in seconds
        """
        self._expires_at[key] = self._clock() + ttl_seconds
