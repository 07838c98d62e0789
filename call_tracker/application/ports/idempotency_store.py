"""Idempotency store port."""

from abc import ABC, abstractmethod


def calendar_signal_key(tenant_id: str, event_id: str, revision: str) -> str:
    """
    Build the idempotency key of one calendar event revision.

    Args:
        tenant_id: Tenant scope
        event_id: Provider event id
        revision: Provider revision (ETag)

    Returns:
        Idempotency key string
    """
    return f"calendar:{tenant_id}:{event_id}:{revision}"


class IdempotencyStore(ABC):
    """Port interface for idempotency store."""

    @abstractmethod
    async def is_processed(self, key: str) -> bool:
        """
        Check if a key has been processed.

        Args:
            key: Unique identifier for the processed item

        Returns:
            True if the key has been processed, False otherwise
        """
        pass

    @abstractmethod
    async def mark_processed(self, key: str, ttl_seconds: int) -> None:
        """
        Mark a key as processed with a TTL.

        Args:
            key: Unique identifier for the processed item
            ttl_seconds: Time-to-live in seconds
        """
        pass

    async def close(self) -> None:
        """Release any connection held by the store."""
