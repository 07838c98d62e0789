"""Record transcript outcome use case."""

import logging
from typing import Any, Callable, Optional

from call_tracker.application.dtos.tenant import TenantContext
from call_tracker.application.ports.call_repository import CallRepository
from call_tracker.application.ports.transcript_client import TranscriptClient
from call_tracker.application.use_cases.call_transitioner import CallTransitioner
from call_tracker.application.use_cases.cost_tracker import CostTracker
from call_tracker.application.use_cases.retry import NO_RETRY, RetryPolicy, retry_async
from call_tracker.domain.entities.call import Call
from call_tracker.domain.services.attendance_classifier import classify_transcript

SOURCE = "transcript_webhook"


class RecordTranscriptOutcome:
    """Resolves a call to show or ghosted from its transcript."""

    def __init__(
        self,
        call_repository: CallRepository,
        transcript_client: TranscriptClient,
        transitioner: CallTransitioner,
        tenant_resolver: Callable[[str], TenantContext],
        cost_tracker: Optional[CostTracker] = None,
        retry_policy: RetryPolicy = NO_RETRY,
        logger: Optional[Callable[..., None]] = None,
    ) -> None:
        """
        Initialize record transcript outcome use case.

        Args:
            call_repository: Call record store
            transcript_client: Transcript collaborator
            transitioner: Shared transition writer
            tenant_resolver: Maps a tenant id to its processing policy
            cost_tracker: Optional tracker for AI usage reported with the transcript
            retry_policy: Retry policy for the transcript fetch
            logger: Optional logger function (tenant_id, component, **kwargs)
        """
        self._calls = call_repository
        self._transcripts = transcript_client
        self._transitioner = transitioner
        self._tenant_resolver = tenant_resolver
        self._cost_tracker = cost_tracker
        self._retry_policy = retry_policy
        self._logger = logger

    def _log(self, tenant_id: str, **kwargs: Any) -> None:
        if self._logger:
            self._logger(tenant_id, "transcript", **kwargs)

    async def execute(self, tenant_id: str, call_id: str) -> Optional[Call]:
        """
        Fetch and evaluate the transcript of a call.

        Args:
            tenant_id: Tenant scope
            call_id: Call identifier

        Returns:
            Updated call, or None if nothing changed (unknown call, transcript
            not yet available, call already resolved)
        """
        call = await self._calls.get(tenant_id, call_id)
        if call is None:
            self._log(tenant_id, level=logging.WARNING, action="unknown_call", call_id=call_id)
            return None
        if call.is_terminal:
            self._log(
                tenant_id,
                action="already_resolved",
                call_id=call_id,
                attendance_state=call.attendance_state.value,
            )
            return None

        tenant = self._tenant_resolver(tenant_id)
        transcript = await retry_async(
            lambda: self._transcripts.fetch_transcript(tenant, call_id),
            self._retry_policy,
            "transcript_fetch",
            logger=self._logger,
        )
        if transcript is None:
            self._log(tenant_id, action="transcript_not_available", call_id=call_id)
            return None

        if self._cost_tracker and transcript.has_ai_usage:
            await self._cost_tracker.record(
                tenant_id,
                call_id,
                transcript.ai_model,
                transcript.input_tokens,
                transcript.output_tokens,
                transcript.processing_ms,
            )

        verdict = classify_transcript(transcript, tenant.thresholds)
        self._log(
            tenant_id,
            action="transcript_evaluated",
            call_id=call_id,
            character_length=transcript.character_length,
            speaker_count=transcript.speaker_count,
            verdict=verdict.state.value,
            reason=verdict.reason,
        )

        extra_fields = {}
        if transcript.transcript_ref:
            extra_fields["transcript_ref"] = transcript.transcript_ref
        return await self._transitioner.transition(
            call,
            verdict.trigger,
            SOURCE,
            detail=verdict.reason,
            extra_fields=extra_fields,
        )
