"""Create prospects and calls tables

Revision ID: 001
Revises:
Create Date: 2026-02-01 00:00:00.000000

"""

from collections.abc import Sequence
from typing import Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "prospects",
        sa.Column("prospect_id", sa.String(), nullable=False),
        sa.Column("tenant_id", sa.String(), nullable=False),
        sa.Column("prospect_email", sa.String(), nullable=False),
        sa.Column("prospect_name", sa.String(), nullable=True),
        sa.Column("first_call_date", sa.Date(), nullable=True),
        sa.Column("last_call_date", sa.Date(), nullable=True),
        sa.Column("total_calls", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_shows", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(), nullable=False, server_default="active"),
        sa.Column("deal_status", sa.String(), nullable=False, server_default="open"),
        sa.Column("total_revenue_generated", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total_cash_collected", sa.Float(), nullable=False, server_default="0"),
        sa.Column("last_payment_date", sa.Date(), nullable=True),
        sa.Column("payment_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("assigned_closer_email", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("prospect_id"),
        sa.UniqueConstraint("tenant_id", "prospect_email", name="uq_prospects_tenant_email"),
        sa.CheckConstraint("total_shows <= total_calls", name="ck_prospects_shows_le_calls"),
    )
    op.create_index(op.f("ix_prospects_tenant_id"), "prospects", ["tenant_id"], unique=False)

    op.create_table(
        "calls",
        sa.Column("call_id", sa.String(), nullable=False),
        sa.Column("tenant_id", sa.String(), nullable=False),
        sa.Column("prospect_email", sa.String(), nullable=False),
        sa.Column("prospect_name", sa.String(), nullable=True),
        sa.Column("closer_email", sa.String(), nullable=True),
        sa.Column("scheduled_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("scheduled_end", sa.DateTime(timezone=True), nullable=False),
        sa.Column("call_type", sa.String(), nullable=False),
        sa.Column("attendance_state", sa.String(), nullable=True),
        sa.Column("calendar_event_id", sa.String(), nullable=True),
        sa.Column("event_revision", sa.String(), nullable=True),
        sa.Column("event_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rescheduled_from_call_id", sa.String(), nullable=True),
        sa.Column("rescheduled_to_call_id", sa.String(), nullable=True),
        sa.Column("transcript_ref", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("call_id"),
        sa.CheckConstraint(
            "call_type IN ('first_call', 'follow_up', 'rescheduled_first', 'rescheduled_follow_up')",
            name="ck_calls_call_type",
        ),
        sa.CheckConstraint(
            "attendance_state IS NULL OR attendance_state IN ("
            "'scheduled', 'waiting_for_outcome', 'show', 'ghosted', 'canceled', "
            "'rescheduled', 'no_recording', 'overbooked')",
            name="ck_calls_attendance_state",
        ),
    )
    op.create_index(op.f("ix_calls_tenant_id"), "calls", ["tenant_id"], unique=False)
    op.create_index("ix_calls_tenant_event", "calls", ["tenant_id", "calendar_event_id"], unique=False)
    op.create_index("ix_calls_state_end", "calls", ["attendance_state", "scheduled_end"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_calls_state_end", table_name="calls")
    op.drop_index("ix_calls_tenant_event", table_name="calls")
    op.drop_index(op.f("ix_calls_tenant_id"), table_name="calls")
    op.drop_table("calls")
    op.drop_index(op.f("ix_prospects_tenant_id"), table_name="prospects")
    op.drop_table("prospects")
