"""Cost record entity."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class CostRecord:
    """Cost of one external AI-processing call."""

    cost_id: str
    timestamp: datetime
    tenant_id: str
    call_id: str
    model: str
    input_tokens: int
    output_tokens: int
    input_cost_usd: float
    output_cost_usd: float
    total_cost_usd: float
    processing_time_ms: Optional[int] = None
