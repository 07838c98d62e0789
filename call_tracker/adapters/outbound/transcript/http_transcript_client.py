"""HTTP transcript collaborator adapter."""

from typing import Any, Optional

import httpx

from call_tracker.application.dtos.tenant import TenantContext
from call_tracker.application.ports.transcript_client import TranscriptClient
from call_tracker.domain.errors import CollaboratorUnavailableError
from call_tracker.domain.value_objects.transcript import Transcript


def parse_transcript(call_id: str, payload: dict[str, Any]) -> Transcript:
    """
    Build a Transcript from the provider's JSON payload.

    Providers that send the text rather than its length are measured here;
    speakers are counted from ``speakers`` or from distinct utterance speakers.

    Args:
        call_id: Call identifier
        payload: Decoded response body

    Returns:
        Transcript summary
    """
    text = payload.get("text") or ""
    length = payload.get("character_length")
    if length is None:
        length = len(text.strip())

    speaker_count = payload.get("speaker_count")
    if speaker_count is None:
        speakers = payload.get("speakers")
        if speakers is None and payload.get("utterances"):
            speakers = {u.get("speaker") for u in payload["utterances"] if u.get("speaker") is not None}
        if speakers is not None:
            speaker_count = len(speakers)

    usage = payload.get("usage") or {}
    return Transcript(
        call_id=call_id,
        character_length=int(length),
        speaker_count=speaker_count,
        transcript_ref=payload.get("id") or payload.get("transcript_ref"),
        ai_model=usage.get("model"),
        input_tokens=int(usage.get("input_tokens", 0)),
        output_tokens=int(usage.get("output_tokens", 0)),
        processing_ms=usage.get("processing_ms"),
    )


class HttpTranscriptClient(TranscriptClient):
    """Fetches transcripts from a REST transcript provider."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout_seconds: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize HTTP transcript client.

        Args:
            base_url: Provider base URL
            api_key: Bearer token
            timeout_seconds: Request timeout
            client: Prebuilt client (tests)
        """
        if not base_url and client is None:
            raise ValueError("TRANSCRIPT_API_BASE_URL is required for the transcript client")
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout_seconds),
        )

    async def fetch_transcript(self, tenant: TenantContext, call_id: str) -> Optional[Transcript]:
        """
        Fetch the transcript summary for a call.

        Args:
            tenant: Tenant context
            call_id: Call identifier

        Returns:
            Transcript summary, or None if the provider has none yet (404)

        Raises:
            CollaboratorUnavailableError: On 5xx / 429 responses
            httpx.HTTPStatusError: On other error responses
        """
        response = await self._client.get(f"/tenants/{tenant.tenant_id}/calls/{call_id}/transcript")
        if response.status_code == 404:
            return None
        if response.status_code >= 500 or response.status_code == 429:
            raise CollaboratorUnavailableError(
                f"Transcript provider returned {response.status_code} for call {call_id}"
            )
        response.raise_for_status()
        return parse_transcript(call_id, response.json())

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
