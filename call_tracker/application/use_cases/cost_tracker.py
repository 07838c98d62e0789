"""AI processing cost tracker."""

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from call_tracker.application.ports.cost_record_repository import CostRecordRepository
from call_tracker.domain.entities.cost_record import CostRecord

TOKENS_PER_MILLION = 1_000_000


class CostTracker:
    """Records the token cost of AI-assisted transcript processing."""

    def __init__(
        self,
        repository: CostRecordRepository,
        input_cost_per_million: float = 3.0,
        output_cost_per_million: float = 15.0,
        logger: Optional[Callable[..., None]] = None,
    ) -> None:
        """
        Initialize cost tracker.

        Args:
            repository: Cost record store
            input_cost_per_million: USD per million input tokens
            output_cost_per_million: USD per million output tokens
            logger: Optional logger function (tenant_id, component, **kwargs)
        """
        self._repository = repository
        self._input_rate = input_cost_per_million
        self._output_rate = output_cost_per_million
        self._logger = logger

    def calculate(self, input_tokens: int, output_tokens: int) -> tuple[float, float, float]:
        """
        Compute the cost of a request.

        Args:
            input_tokens: Prompt tokens
            output_tokens: Completion tokens

        Returns:
            (input_cost, output_cost, total_cost) in USD, rounded to 6 decimals
        """
        input_cost = round(input_tokens / TOKENS_PER_MILLION * self._input_rate, 6)
        output_cost = round(output_tokens / TOKENS_PER_MILLION * self._output_rate, 6)
        return input_cost, output_cost, round(input_cost + output_cost, 6)

    async def record(
        self,
        tenant_id: str,
        call_id: str,
        model: str,
        input_tokens: int,
        output_tokens: int,
        processing_ms: Optional[int] = None,
    ) -> Optional[CostRecord]:
        """
        Record the cost of one AI call.

        Args:
            tenant_id: Tenant scope
            call_id: Call the processing belonged to
            model: Model identifier
            input_tokens: Prompt tokens
            output_tokens: Completion tokens
            processing_ms: Wall-clock processing time

        Returns:
            Stored record, or None if the write failed
        """
        input_cost, output_cost, total_cost = self.calculate(input_tokens, output_tokens)
        record = CostRecord(
            cost_id=str(uuid.uuid4()),
            timestamp=datetime.now(timezone.utc),
            tenant_id=tenant_id,
            call_id=call_id,
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            input_cost_usd=input_cost,
            output_cost_usd=output_cost,
            total_cost_usd=total_cost,
            processing_time_ms=processing_ms,
        )
        try:
            await self._repository.append(record)
        except Exception as e:
            if self._logger:
                self._logger(
                    tenant_id,
                    "cost_tracker",
                    level=logging.ERROR,
                    action="cost_write_failed",
                    call_id=call_id,
                    error=str(e),
                )
            return None

        if self._logger:
            self._logger(
                tenant_id,
                "cost_tracker",
                call_id=call_id,
                model=model,
                total_cost_usd=total_cost,
            )
        return record

    async def total_for_tenant(self, tenant_id: str) -> float:
        """Return the accumulated cost of a tenant in USD."""
        return round(await self._repository.total_for_tenant(tenant_id), 6)
