"""Unit tests for HTTP transcript client adapter."""

import httpx
import pytest

from call_tracker.adapters.outbound.transcript.http_transcript_client import (
    HttpTranscriptClient,
    parse_transcript,
)
from call_tracker.application.dtos.tenant import TenantContext
from call_tracker.domain.errors import CollaboratorUnavailableError

TENANT = TenantContext(tenant_id="acme", grace_period_minutes=120, min_transcript_length=50, min_speakers=2)


def _client(handler) -> HttpTranscriptClient:
    transport = httpx.MockTransport(handler)
    return HttpTranscriptClient(
        "https://transcripts.example.com",
        client=httpx.AsyncClient(base_url="https://transcripts.example.com", transport=transport),
    )


def test_parse_transcript_counts_text_and_utterance_speakers():
    """Test measuring text and counting distinct speakers."""
    transcript = parse_transcript(
        "call-1",
        {
            "id": "tr-1",
            "text": "  Hello there, thanks for joining.  ",
            "utterances": [{"speaker": "A"}, {"speaker": "B"}, {"speaker": "A"}],
        },
    )

    assert transcript.character_length == len("Hello there, thanks for joining.")
    assert transcript.speaker_count == 2
    assert transcript.transcript_ref == "tr-1"
    assert not transcript.has_ai_usage


def test_parse_transcript_reads_usage():
    """Test that reported AI usage is carried through."""
    transcript = parse_transcript(
        "call-1",
        {
            "character_length": 1200,
            "speaker_count": 2,
            "usage": {"model": "claude-sonnet", "input_tokens": 1000, "output_tokens": 500},
        },
    )

    assert transcript.has_ai_usage
    assert transcript.input_tokens == 1000
    assert transcript.output_tokens == 500


@pytest.mark.asyncio
async def test_fetch_transcript_success():
    """Test fetching a transcript summary."""
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        return httpx.Response(200, json={"character_length": 800, "speaker_count": 2})

    transcript = await _client(handler).fetch_transcript(TENANT, "call-1")

    assert seen == ["/tenants/acme/calls/call-1/transcript"]
    assert transcript.character_length == 800


@pytest.mark.asyncio
async def test_fetch_transcript_not_found_returns_none():
    """Test that a 404 means no transcript yet."""
    client = _client(lambda request: httpx.Response(404))

    assert await client.fetch_transcript(TENANT, "call-1") is None


@pytest.mark.asyncio
async def test_fetch_transcript_server_error_is_transient():
    """Test that 5xx responses surface as collaborator unavailability."""
    client = _client(lambda request: httpx.Response(502))

    with pytest.raises(CollaboratorUnavailableError):
        await client.fetch_transcript(TENANT, "call-1")


@pytest.mark.asyncio
async def test_fetch_transcript_client_error_raises():
    """Test that other error responses are not swallowed."""
    client = _client(lambda request: httpx.Response(401))

    with pytest.raises(httpx.HTTPStatusError):
        await client.fetch_transcript(TENANT, "call-1")
