"""Unit tests for settings and tenant policy resolution."""

from call_tracker.application.dtos.tenant import TenantContext
from tests.unit.support import make_settings


def test_defaults_apply_to_unknown_tenant():
    """Test that tenants without overrides get the global policy."""
    tenant = make_settings().tenant_context("acme")

    assert tenant.grace_period_minutes == 120
    assert tenant.min_transcript_length == 50
    assert tenant.min_speakers == 2
    assert tenant.calendar_ids == []
    assert tenant.is_sales_call("Anything at all")


def test_tenant_overrides():
    """Test that per-tenant overrides replace the defaults."""
    config = make_settings(
        tenant_overrides={
            "acme": {
                "grace_period_minutes": 45,
                "filter_words": "demo, discovery",
                "calendar_ids": ["closer@acme.com"],
            }
        }
    )

    tenant = config.tenant_context("acme")

    assert tenant.grace_period_minutes == 45
    assert tenant.filter_words == ["demo", "discovery"]
    assert tenant.calendar_ids == ["closer@acme.com"]
    assert tenant.is_sales_call("Product DEMO with Jane")
    assert not tenant.is_sales_call("Lunch")
    assert config.tenant_context("other").grace_period_minutes == 120


def test_filter_word_matching():
    """Test wildcard and empty filter words."""
    base = dict(tenant_id="acme", grace_period_minutes=120, min_transcript_length=50, min_speakers=2)

    assert TenantContext(**base, filter_words=[]).is_sales_call("Standup")
    assert TenantContext(**base, filter_words=["*"]).is_sales_call("Standup")
    assert not TenantContext(**base, filter_words=["strategy"]).is_sales_call("")


def test_thresholds_follow_tenant():
    """Test that transcript thresholds come from the tenant policy."""
    tenant = make_settings(min_transcript_length=80, min_speakers=3).tenant_context("acme")

    assert tenant.thresholds.min_length == 80
    assert tenant.thresholds.min_speakers == 3
    assert tenant.grace_period.total_seconds() == 7200
