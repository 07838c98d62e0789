"""Base DTO class."""

from pydantic import BaseModel, ConfigDict


class DTO(BaseModel):
    """Immutable value passed between use cases and adapters. Unknown fields are rejected."""

    model_config = ConfigDict(frozen=True, extra="forbid")
