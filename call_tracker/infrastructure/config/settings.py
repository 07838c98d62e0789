"""Application settings."""

from typing import Any

from pydantic_settings import BaseSettings, SettingsConfigDict

from call_tracker.application.dtos.tenant import TenantContext


class Settings(BaseSettings):
    """Application configuration settings."""

    debug_mode: bool = False
    repository_backend: str = "in_memory"  # in_memory or postgres
    database_url: str = ""  # Required when repository_backend=postgres
    database_pool_size: int = 5
    idempotency_backend: str = "in_memory"  # in_memory or redis
    redis_url: str = "redis://localhost:6379/0"
    idempotency_ttl_seconds: int = 604800  # 7 days

    # Outcome timeout sweeper
    sweep_enabled: bool = True
    sweep_interval_minutes: int = 5

    # Tenant defaults, overridable per tenant through tenant_overrides
    grace_period_minutes: int = 120
    min_transcript_length: int = 50
    min_speakers: int = 2
    calendar_filter_words: str = "*"  # comma-separated, "*" matches every event
    # e.g. {"acme": {"grace_period_minutes": 30, "calendar_ids": ["closer@acme.com"]}}
    tenant_overrides: dict[str, dict[str, Any]] = {}

    # Calendar collaborator
    google_service_account_json: str = ""
    calendar_lookback_minutes: int = 5

    # Transcript collaborator
    transcript_api_base_url: str = ""
    transcript_api_key: str = ""

    # Retry policy for collaborator and storage calls
    retry_max_attempts: int = 3
    retry_base_delay_seconds: float = 0.5
    retry_max_delay_seconds: float = 8.0
    collaborator_timeout_seconds: float = 10.0

    # AI cost accounting (USD per million tokens)
    ai_input_cost_per_million: float = 3.0
    ai_output_cost_per_million: float = 15.0

    alert_slack_webhook: str = ""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",
    )

    def tenant_context(self, tenant_id: str) -> TenantContext:
        """
        Resolve the processing policy of a tenant.

        Args:
            tenant_id: Tenant identifier

        Returns:
            TenantContext with defaults overlaid by tenant_overrides[tenant_id]
        """
        override = self.tenant_overrides.get(tenant_id, {})
        filter_words = override.get("filter_words", self.calendar_filter_words)
        if isinstance(filter_words, str):
            filter_words = [w.strip() for w in filter_words.split(",") if w.strip()]

        return TenantContext(
            tenant_id=tenant_id,
            grace_period_minutes=override.get("grace_period_minutes", self.grace_period_minutes),
            min_transcript_length=override.get("min_transcript_length", self.min_transcript_length),
            min_speakers=override.get("min_speakers", self.min_speakers),
            filter_words=filter_words,
            calendar_ids=override.get("calendar_ids", []),
        )


settings = Settings()
