"""Redis idempotency store adapter."""

from typing import Optional

from redis import asyncio as aioredis

from call_tracker.application.ports.idempotency_store import IdempotencyStore


class RedisIdempotencyStore(IdempotencyStore):
    """Redis adapter for idempotency store, shared by every service instance."""

    KEY_PREFIX = "call_tracker:processed:"

    def __init__(self, redis_url: str) -> None:
        """
        Initialize Redis idempotency store.

        Args:
            redis_url: Redis connection URL
        """
        self._redis_url = redis_url
        self._client: Optional[aioredis.Redis] = None

    async def _get_client(self) -> aioredis.Redis:
        """
        Get or create Redis client.

        Returns:
            Redis client instance
        """
        if self._client is None:
            self._client = await aioredis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._client

    def _make_key(self, key: str) -> str:
        """
        Make Redis key for a processed signal.

        Args:
            key: Idempotency key (e.g. calendar:{tenant}:{event}:{revision})

        Returns:
            Redis key string
        """
        return f"{self.KEY_PREFIX}{key}"

    async def is_processed(self, key: str) -> bool:
        """
        Check if a key has been processed.

        Args:
            key: Idempotency key

        Returns:
            True if the key has been processed, False otherwise
        """
        client = await self._get_client()
        exists = await client.exists(self._make_key(key))
        return exists > 0

    async def mark_processed(self, key: str, ttl_seconds: int) -> None:
        """
        Mark a key as processed with a TTL.

        Args:
            key: Idempotency key
            ttl_seconds: Time-to-live in seconds
        """
        client = await self._get_client()
        await client.setex(self._make_key(key), ttl_seconds, "1")

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.close()
            self._client = None
