"""Alert DTO."""

from typing import Literal, Optional

from call_tracker.application.dtos.base import DTO

Severity = Literal["critical", "high", "medium", "low"]


class Alert(DTO):
    """Operator-facing notification about a failure."""

    severity: Severity
    title: str
    details: str
    tenant_id: Optional[str] = None
    error: Optional[str] = None
    suggested_action: Optional[str] = None
