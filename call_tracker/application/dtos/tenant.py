"""Tenant context DTO."""

from datetime import timedelta

from call_tracker.application.dtos.base import DTO
from call_tracker.domain.value_objects.transcript import TranscriptThresholds


class TenantContext(DTO):
    """Per-tenant processing policy, passed explicitly to every use case."""

    tenant_id: str
    grace_period_minutes: int
    min_transcript_length: int
    min_speakers: int
    filter_words: list[str] = []  # empty or "*" means every event is a sales call
    calendar_ids: list[str] = []

    @property
    def grace_period(self) -> timedelta:
        return timedelta(minutes=self.grace_period_minutes)

    @property
    def thresholds(self) -> TranscriptThresholds:
        return TranscriptThresholds(
            min_length=self.min_transcript_length,
            min_speakers=self.min_speakers,
        )

    def is_sales_call(self, title: str) -> bool:
        """
        Check whether an event title matches the tenant's sales-call filter words.

        Args:
            title: Calendar event title

        Returns:
            True if any filter word appears in the title (case-insensitive)
        """
        words = [w.strip().lower() for w in self.filter_words if w.strip()]
        if not words or "*" in words:
            return True
        lowered = (title or "").lower()
        return any(word in lowered for word in words)
