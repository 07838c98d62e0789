"""HTTP routes."""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, status

from call_tracker.adapters.inbound.http.schemas import (
    AckResponse,
    AuditEntryResponse,
    CallResponse,
    CostSummaryResponse,
    ExplicitOutcomeRequest,
    PaymentResponse,
    PaymentWebhookRequest,
    ProspectResponse,
    ProspectStatusRequest,
    TranscriptWebhookRequest,
)
from call_tracker.application.dtos.alert import Alert
from call_tracker.application.dtos.payment import PaymentEvent
from call_tracker.application.dtos.processing import CalendarNotification, SweepSummary
from call_tracker.domain.entities.call import Call
from call_tracker.domain.value_objects.attendance_state import parse_attendance_state
from call_tracker.infrastructure.config.settings import settings
from call_tracker.infrastructure.logging.logger import log_event, logger
from call_tracker.infrastructure.wiring.dependencies import Services, get_services

router = APIRouter()


def _call_response(call: Call) -> CallResponse:
    return CallResponse(
        call_id=call.call_id,
        tenant_id=call.tenant_id,
        prospect_email=call.prospect_email,
        call_type=call.call_type.value,
        attendance_state=call.attendance_state.value if call.attendance_state else None,
        scheduled_start=call.scheduled_start,
        scheduled_end=call.scheduled_end,
        rescheduled_from_call_id=call.rescheduled_from_call_id,
        rescheduled_to_call_id=call.rescheduled_to_call_id,
    )


async def _process_calendar_in_background(services: Services, notification: CalendarNotification) -> None:
    """Run the coordinator after the webhook was acknowledged; failures never reach the caller."""
    try:
        await services.process_calendar_notification.execute(notification)
    except Exception as e:
        logger.error(f"Calendar notification failed for tenant {notification.tenant_id}: {str(e)}")
        await services.alert_sink.send(
            Alert(
                severity="high",
                title="Calendar notification processing crashed",
                details=f"Channel {notification.channel_id} message {notification.message_number}",
                tenant_id=notification.tenant_id,
                error=str(e),
            )
        )


async def _process_transcript_in_background(services: Services, tenant_id: str, call_id: str) -> None:
    """Evaluate a transcript after the webhook was acknowledged."""
    try:
        await services.record_transcript_outcome.execute(tenant_id, call_id)
    except Exception as e:
        logger.error(f"Transcript processing failed for call {call_id}: {str(e)}")
        await services.alert_sink.send(
            Alert(
                severity="medium",
                title="Transcript processing failed",
                details=f"Call {call_id}",
                tenant_id=tenant_id,
                error=str(e),
                suggested_action="The call is resolved by the timeout sweeper if no transcript arrives",
            )
        )


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check() -> dict[str, str]:
    """
    Health check endpoint for liveness/readiness.

    Returns:
        Health status
    """
    return {"status": "ok"}


@router.post("/webhooks/calendar/{tenant_id}", status_code=status.HTTP_200_OK, response_model=AckResponse)
async def calendar_webhook(
    tenant_id: str,
    background_tasks: BackgroundTasks,
    x_goog_resource_state: Optional[str] = Header(None),
    x_goog_channel_id: Optional[str] = Header(None),
    x_goog_resource_id: Optional[str] = Header(None),
    x_goog_message_number: Optional[str] = Header(None),
    services: Services = Depends(get_services),
) -> AckResponse:
    """
    Receive a calendar push notification.

    The provider only sends headers; the changed events are fetched after the
    acknowledgement so the provider never sees a slow or failed response.

    Args:
        tenant_id: Tenant the watched calendars belong to
        background_tasks: FastAPI background task queue
        x_goog_resource_state: sync, exists or not_exists
        x_goog_channel_id: Notification channel id
        x_goog_resource_id: Watched resource id
        x_goog_message_number: Provider message sequence number

    Returns:
        Acknowledgement
    """
    notification = CalendarNotification(
        tenant_id=tenant_id,
        resource_state=x_goog_resource_state,
        channel_id=x_goog_channel_id,
        resource_id=x_goog_resource_id,
        message_number=x_goog_message_number,
    )
    log_event(
        tenant_id,
        "http",
        action="calendar_notification_received",
        resource_state=x_goog_resource_state,
        channel_id=x_goog_channel_id,
        message_number=x_goog_message_number,
    )
    background_tasks.add_task(_process_calendar_in_background, services, notification)
    return AckResponse()


@router.post("/webhooks/transcript/{tenant_id}", status_code=status.HTTP_200_OK, response_model=AckResponse)
async def transcript_webhook(
    tenant_id: str,
    request: TranscriptWebhookRequest,
    background_tasks: BackgroundTasks,
    services: Services = Depends(get_services),
) -> AckResponse:
    """
    Receive a transcript-ready signal.

    Args:
        tenant_id: Tenant scope
        request: Call whose transcript is ready
        background_tasks: FastAPI background task queue

    Returns:
        Acknowledgement
    """
    log_event(tenant_id, "http", action="transcript_ready_received", call_id=request.call_id)
    background_tasks.add_task(_process_transcript_in_background, services, tenant_id, request.call_id)
    return AckResponse()


@router.post("/webhooks/payment/{tenant_id}", status_code=status.HTTP_200_OK, response_model=PaymentResponse)
async def payment_webhook(
    tenant_id: str,
    request: PaymentWebhookRequest,
    services: Services = Depends(get_services),
) -> PaymentResponse:
    """
    Record a payment or reversal on the prospect ledger.

    Args:
        tenant_id: Tenant scope
        request: Payment payload

    Returns:
        Updated money columns of the prospect

    Raises:
        HTTPException: 422 for a non-positive amount, 404 for an unknown prospect
    """
    payment = PaymentEvent(**request.model_dump())
    try:
        prospect = await services.record_payment.execute(tenant_id, payment)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    if prospect is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Prospect not found")
    return PaymentResponse(
        prospect_email=prospect.prospect_email,
        total_cash_collected=prospect.total_cash_collected,
        payment_count=prospect.payment_count,
        deal_status=prospect.deal_status,
    )


@router.post(
    "/admin/calls/{tenant_id}/{call_id}/outcome",
    status_code=status.HTTP_200_OK,
    response_model=CallResponse,
)
async def set_explicit_outcome(
    tenant_id: str,
    call_id: str,
    request: ExplicitOutcomeRequest,
    services: Services = Depends(get_services),
) -> CallResponse:
    """
    Assert a no_recording or overbooked outcome for a call.

    Args:
        tenant_id: Tenant scope
        call_id: Call identifier
        request: Outcome payload

    Returns:
        Updated call

    Raises:
        HTTPException: 404 for an unknown call, 409 if the call is already resolved
    """
    outcome = parse_attendance_state(request.outcome)
    updated = await services.record_explicit_outcome.execute(tenant_id, call_id, outcome, request.detail)
    if updated is not None:
        return _call_response(updated)

    current = await services.call_repository.get(tenant_id, call_id)
    if current is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Call not found")
    raise HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=f"Call already resolved as {current.attendance_state.value if current.attendance_state else None}",
    )


@router.get("/admin/calls/{tenant_id}", status_code=status.HTTP_200_OK, response_model=list[CallResponse])
async def list_calls(tenant_id: str, services: Services = Depends(get_services)) -> list[CallResponse]:
    """
    List a tenant's calls ordered by scheduled start.

    Args:
        tenant_id: Tenant scope

    Returns:
        Call summaries
    """
    return [_call_response(call) for call in await services.call_repository.list_for_tenant(tenant_id)]


@router.post(
    "/admin/prospects/{tenant_id}/{prospect_email}/status",
    status_code=status.HTTP_200_OK,
    response_model=ProspectResponse,
)
async def set_prospect_status(
    tenant_id: str,
    prospect_email: str,
    request: ProspectStatusRequest,
    services: Services = Depends(get_services),
) -> ProspectResponse:
    """
    Activate or deactivate a prospect. Prospects are never deleted.

    Args:
        tenant_id: Tenant scope
        prospect_email: Prospect e-mail
        request: Status payload

    Returns:
        Updated prospect

    Raises:
        HTTPException: 404 for an unknown prospect
    """
    before = await services.prospect_repository.get(tenant_id, prospect_email)
    if before is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Prospect not found")

    if before.status != request.status:
        await services.prospect_repository.set_status(tenant_id, prospect_email, request.status)
        await services.audit_trail.record(
            tenant_id,
            "prospect",
            before.prospect_email,
            "updated",
            "admin",
            field_changed="status",
            old_value=before.status,
            new_value=request.status,
        )

    prospect = await services.prospect_repository.get(tenant_id, prospect_email)
    return ProspectResponse(
        prospect_email=prospect.prospect_email,
        prospect_name=prospect.prospect_name,
        status=prospect.status,
        deal_status=prospect.deal_status,
        total_calls=prospect.total_calls,
        total_shows=prospect.total_shows,
        total_cash_collected=prospect.total_cash_collected,
    )


@router.get("/admin/costs/{tenant_id}", status_code=status.HTTP_200_OK, response_model=CostSummaryResponse)
async def get_cost_summary(tenant_id: str, services: Services = Depends(get_services)) -> CostSummaryResponse:
    """
    Get the accumulated AI processing cost of a tenant.

    Args:
        tenant_id: Tenant scope

    Returns:
        Cost summary in USD
    """
    return CostSummaryResponse(
        tenant_id=tenant_id,
        total_cost_usd=await services.cost_tracker.total_for_tenant(tenant_id),
    )


@router.post("/admin/jobs/check-timeouts", status_code=status.HTTP_200_OK, response_model=SweepSummary)
async def check_timeouts(services: Services = Depends(get_services)) -> SweepSummary:
    """
    Run one outcome-timeout sweep.

    Returns:
        Sweep summary
    """
    return await services.sweeper.run_once()


@router.get("/debug/calls/{tenant_id}/{call_id}/audit", status_code=status.HTTP_200_OK)
async def get_call_audit_debug(
    tenant_id: str,
    call_id: str,
    services: Services = Depends(get_services),
) -> dict:
    """
    Get a call and its audit trail (debug endpoint).

    Only available when DEBUG_MODE=true.

    Args:
        tenant_id: Tenant scope
        call_id: Call identifier

    Returns:
        Call summary and chronological audit entries

    Raises:
        HTTPException: 404 if DEBUG_MODE is disabled or the call is unknown
    """
    if not settings.debug_mode:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Debug mode is disabled")

    call = await services.call_repository.get(tenant_id, call_id)
    if call is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Call not found")

    entries = await services.audit_trail.trail(tenant_id, "call", call_id)
    return {
        "call": _call_response(call).model_dump(mode="json"),
        "audit": [
            AuditEntryResponse(
                timestamp=entry.timestamp,
                action=entry.action,
                trigger_source=entry.trigger_source,
                field_changed=entry.field_changed,
                old_value=entry.old_value,
                new_value=entry.new_value,
                trigger_detail=entry.trigger_detail,
            ).model_dump(mode="json")
            for entry in entries
        ],
    }
