"""Prospect entity."""

import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Optional

UNKNOWN_PROSPECT_EMAIL = "unknown"

_LOCAL_PART_SEPARATORS = re.compile(r"[._\-+]")


def name_from_email(email: str) -> Optional[str]:
    """
    Derive a display name from the local part of an e-mail address.

    ``jane.doe+sales@example.com`` becomes ``Jane Doe Sales``; numeric
    segments are dropped.

    Args:
        email: E-mail address

    Returns:
        Capitalized name, or None if nothing usable remains
    """
    local_part = (email or "").split("@")[0]
    parts = [p for p in _LOCAL_PART_SEPARATORS.split(local_part) if p and not p.isdigit()]
    if not parts:
        return None
    return " ".join(p.capitalize() for p in parts)


@dataclass
class Prospect:
    """A sales lead tracked by e-mail within one tenant."""

    prospect_id: str
    tenant_id: str
    prospect_email: str
    prospect_name: Optional[str] = None
    first_call_date: Optional[date] = None
    last_call_date: Optional[date] = None
    total_calls: int = 0
    total_shows: int = 0
    status: str = "active"  # active | inactive, never hard-deleted
    deal_status: str = "open"  # open | closed_won | lost
    total_revenue_generated: float = 0.0
    total_cash_collected: float = 0.0
    last_payment_date: Optional[date] = None
    payment_count: int = 0
    assigned_closer_email: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def touch(self) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = datetime.now(timezone.utc)

    @property
    def has_prior_show(self) -> bool:
        return self.total_shows > 0

    def note_call_date(self, call_date: date) -> None:
        """
        Widen the first/last call window to include ``call_date``.

        Args:
            call_date: Date of a newly scheduled call
        """
        if self.first_call_date is None or call_date < self.first_call_date:
            self.first_call_date = call_date
        if self.last_call_date is None or call_date > self.last_call_date:
            self.last_call_date = call_date
