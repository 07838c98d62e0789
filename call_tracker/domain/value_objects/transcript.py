"""Transcript value objects."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Transcript:
    """What the transcript collaborator reports about a recorded call."""

    call_id: str
    character_length: int
    speaker_count: Optional[int] = None  # None when the provider does not diarize
    transcript_ref: Optional[str] = None
    # AI usage the provider spent evaluating the transcript, if it reports any
    ai_model: Optional[str] = None
    input_tokens: int = 0
    output_tokens: int = 0
    processing_ms: Optional[int] = None

    @property
    def has_ai_usage(self) -> bool:
        return self.ai_model is not None and (self.input_tokens > 0 or self.output_tokens > 0)


@dataclass(frozen=True)
class TranscriptThresholds:
    """Per-tenant thresholds separating a real conversation from a no-show."""

    min_length: int
    min_speakers: int

    def __post_init__(self) -> None:
        """Validate thresholds."""
        if self.min_length < 0:
            raise ValueError("min_length cannot be negative")
        if self.min_speakers < 1:
            raise ValueError("min_speakers must be at least 1")
