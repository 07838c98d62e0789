"""Dependency injection factory functions."""

from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from typing import Optional

import httpx
from sqlalchemy.exc import SQLAlchemyError

from call_tracker.adapters.outbound.alerts.composite_alert_sink import CompositeAlertSink
from call_tracker.adapters.outbound.alerts.logging_alert_sink import LoggingAlertSink
from call_tracker.adapters.outbound.alerts.slack_alert_sink import SlackAlertSink
from call_tracker.adapters.outbound.calendar.google_calendar_client import GoogleCalendarClient
from call_tracker.adapters.outbound.idempotency.in_memory_idempotency_store import (
    InMemoryIdempotencyStore,
)
from call_tracker.adapters.outbound.idempotency.redis_idempotency_store import RedisIdempotencyStore
from call_tracker.adapters.outbound.persistence import (
    InMemoryAuditLogRepository,
    InMemoryCallRepository,
    InMemoryCostRecordRepository,
    InMemoryProspectRepository,
    PostgresAuditLogRepository,
    PostgresCallRepository,
    PostgresCostRecordRepository,
    PostgresProspectRepository,
)
from call_tracker.adapters.outbound.transcript.http_transcript_client import HttpTranscriptClient
from call_tracker.application.ports.alert_sink import AlertSink
from call_tracker.application.ports.audit_log_repository import AuditLogRepository
from call_tracker.application.ports.calendar_client import CalendarClient
from call_tracker.application.ports.call_repository import CallRepository
from call_tracker.application.ports.cost_record_repository import CostRecordRepository
from call_tracker.application.ports.idempotency_store import IdempotencyStore
from call_tracker.application.ports.prospect_repository import ProspectRepository
from call_tracker.application.ports.transcript_client import TranscriptClient
from call_tracker.application.use_cases.audit_trail import AuditTrail
from call_tracker.application.use_cases.call_transitioner import CallTransitioner
from call_tracker.application.use_cases.cost_tracker import CostTracker
from call_tracker.application.use_cases.process_calendar_notification import ProcessCalendarNotification
from call_tracker.application.use_cases.record_explicit_outcome import RecordExplicitOutcome
from call_tracker.application.use_cases.record_payment import RecordPayment
from call_tracker.application.use_cases.record_transcript_outcome import RecordTranscriptOutcome
from call_tracker.application.use_cases.retry import DEFAULT_TRANSIENT_ERRORS, RetryPolicy
from call_tracker.application.use_cases.sweep_outcome_timeouts import OutcomeTimeoutSweeper
from call_tracker.infrastructure.config.settings import Settings, settings
from call_tracker.infrastructure.logging.logger import log_event


def _use_postgres(config: Settings) -> bool:
    if config.repository_backend == "postgres":
        if not config.database_url:
            raise ValueError("DATABASE_URL is required when REPOSITORY_BACKEND=postgres")
        return True
    return False


def create_call_repository(config: Settings = settings) -> CallRepository:
    """
    Factory function to create call repository.

    Returns:
        CallRepository instance
    """
    return PostgresCallRepository() if _use_postgres(config) else InMemoryCallRepository()


def create_prospect_repository(config: Settings = settings) -> ProspectRepository:
    """
    Factory function to create prospect repository.

    Returns:
        ProspectRepository instance
    """
    return PostgresProspectRepository() if _use_postgres(config) else InMemoryProspectRepository()


def create_audit_log_repository(config: Settings = settings) -> AuditLogRepository:
    """
    Factory function to create audit log repository.

    Returns:
        AuditLogRepository instance
    """
    return PostgresAuditLogRepository() if _use_postgres(config) else InMemoryAuditLogRepository()


def create_cost_record_repository(config: Settings = settings) -> CostRecordRepository:
    """
    Factory function to create cost record repository.

    Returns:
        CostRecordRepository instance
    """
    return PostgresCostRecordRepository() if _use_postgres(config) else InMemoryCostRecordRepository()


def create_idempotency_store(config: Settings = settings) -> IdempotencyStore:
    """
    Factory function to create idempotency store.

    Returns:
        IdempotencyStore instance (Redis or in-memory)
    """
    if config.idempotency_backend == "redis":
        if not config.redis_url:
            raise ValueError("REDIS_URL is required when IDEMPOTENCY_BACKEND=redis")
        return RedisIdempotencyStore(config.redis_url)
    return InMemoryIdempotencyStore()


def create_alert_sink(config: Settings = settings) -> AlertSink:
    """
    Factory function to create the alert sink.

    Returns:
        Logging sink, fanned out to Slack when a webhook is configured
    """
    if config.alert_slack_webhook:
        return CompositeAlertSink(LoggingAlertSink(), SlackAlertSink(config.alert_slack_webhook))
    return LoggingAlertSink()


def create_calendar_client(config: Settings = settings) -> CalendarClient:
    """
    Factory function to create calendar client.

    Returns:
        CalendarClient instance
    """
    return GoogleCalendarClient(config.google_service_account_json)


def create_transcript_client(config: Settings = settings) -> TranscriptClient:
    """
    Factory function to create transcript client.

    Returns:
        TranscriptClient instance
    """
    return HttpTranscriptClient(
        config.transcript_api_base_url,
        api_key=config.transcript_api_key,
        timeout_seconds=config.collaborator_timeout_seconds,
    )


def create_retry_policy(config: Settings = settings) -> RetryPolicy:
    """
    Factory function to create the retry policy for collaborator and storage calls.

    Returns:
        RetryPolicy instance
    """
    return RetryPolicy(
        max_attempts=config.retry_max_attempts,
        base_delay_seconds=config.retry_base_delay_seconds,
        max_delay_seconds=config.retry_max_delay_seconds,
        timeout_seconds=config.collaborator_timeout_seconds,
        transient_errors=DEFAULT_TRANSIENT_ERRORS + (SQLAlchemyError, httpx.TransportError),
    )


@dataclass
class Services:
    """Use cases and the shared adapters they were wired with."""

    call_repository: CallRepository
    prospect_repository: ProspectRepository
    idempotency_store: IdempotencyStore
    alert_sink: AlertSink
    audit_trail: AuditTrail
    cost_tracker: CostTracker
    transitioner: CallTransitioner
    process_calendar_notification: ProcessCalendarNotification
    record_transcript_outcome: RecordTranscriptOutcome
    record_explicit_outcome: RecordExplicitOutcome
    record_payment: RecordPayment
    sweeper: OutcomeTimeoutSweeper


def build_services(
    config: Settings = settings,
    call_repository: Optional[CallRepository] = None,
    prospect_repository: Optional[ProspectRepository] = None,
    audit_log_repository: Optional[AuditLogRepository] = None,
    cost_record_repository: Optional[CostRecordRepository] = None,
    idempotency_store: Optional[IdempotencyStore] = None,
    calendar_client: Optional[CalendarClient] = None,
    transcript_client: Optional[TranscriptClient] = None,
    alert_sink: Optional[AlertSink] = None,
    retry_policy: Optional[RetryPolicy] = None,
) -> Services:
    """
    Wire every use case around one shared set of adapters.

    Adapters not passed in are created from ``config``.

    Returns:
        Services bundle
    """
    call_repository = call_repository or create_call_repository(config)
    prospect_repository = prospect_repository or create_prospect_repository(config)
    audit_log_repository = audit_log_repository or create_audit_log_repository(config)
    cost_record_repository = cost_record_repository or create_cost_record_repository(config)
    idempotency_store = idempotency_store or create_idempotency_store(config)
    calendar_client = calendar_client or create_calendar_client(config)
    transcript_client = transcript_client or create_transcript_client(config)
    alert_sink = alert_sink or create_alert_sink(config)
    retry_policy = retry_policy or create_retry_policy(config)

    audit_trail = AuditTrail(audit_log_repository, alert_sink, retry_policy, logger=log_event)
    cost_tracker = CostTracker(
        cost_record_repository,
        input_cost_per_million=config.ai_input_cost_per_million,
        output_cost_per_million=config.ai_output_cost_per_million,
        logger=log_event,
    )
    transitioner = CallTransitioner(call_repository, prospect_repository, audit_trail, logger=log_event)
    coordinator = ProcessCalendarNotification(
        call_repository,
        prospect_repository,
        calendar_client,
        idempotency_store,
        transitioner,
        audit_trail,
        tenant_resolver=config.tenant_context,
        alert_sink=alert_sink,
        retry_policy=retry_policy,
        idempotency_ttl_seconds=config.idempotency_ttl_seconds,
        lookback=timedelta(minutes=config.calendar_lookback_minutes),
        logger=log_event,
    )

    return Services(
        call_repository=call_repository,
        prospect_repository=prospect_repository,
        idempotency_store=idempotency_store,
        alert_sink=alert_sink,
        audit_trail=audit_trail,
        cost_tracker=cost_tracker,
        transitioner=transitioner,
        process_calendar_notification=coordinator,
        record_transcript_outcome=RecordTranscriptOutcome(
            call_repository,
            transcript_client,
            transitioner,
            tenant_resolver=config.tenant_context,
            cost_tracker=cost_tracker,
            retry_policy=retry_policy,
            logger=log_event,
        ),
        record_explicit_outcome=RecordExplicitOutcome(call_repository, transitioner, logger=log_event),
        record_payment=RecordPayment(prospect_repository, audit_trail, logger=log_event),
        sweeper=OutcomeTimeoutSweeper(
            call_repository,
            transitioner,
            tenant_resolver=config.tenant_context,
            calendar_client=calendar_client,
            coordinator=coordinator,
            alert_sink=alert_sink,
            retry_policy=retry_policy,
            logger=log_event,
        ),
    )


@lru_cache(maxsize=1)
def get_services() -> Services:
    """
    Process-wide services, built on first use.

    Returns:
        Services bundle wired from the global settings
    """
    return build_services(settings)
