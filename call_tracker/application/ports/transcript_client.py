"""Transcript collaborator port."""

from abc import ABC, abstractmethod
from typing import Optional

from call_tracker.application.dtos.tenant import TenantContext
from call_tracker.domain.value_objects.transcript import Transcript


class TranscriptClient(ABC):
    """Port interface for the transcript provider."""

    @abstractmethod
    async def fetch_transcript(self, tenant: TenantContext, call_id: str) -> Optional[Transcript]:
        """
        Fetch the transcript summary for a call.

        Args:
            tenant: Tenant context
            call_id: Call identifier

        Returns:
            Transcript summary, or None if not yet available
        """
        pass
