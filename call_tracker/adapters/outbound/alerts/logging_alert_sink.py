"""Logging alert sink adapter."""

import logging

from call_tracker.application.dtos.alert import Alert
from call_tracker.application.ports.alert_sink import AlertSink
from call_tracker.infrastructure.logging.logger import log_event

_LEVELS = {
    "critical": logging.ERROR,
    "high": logging.ERROR,
    "medium": logging.WARNING,
    "low": logging.DEBUG,
}


class LoggingAlertSink(AlertSink):
    """Writes every alert to the application log."""

    async def send(self, alert: Alert) -> None:
        """
        Log an alert at a level matching its severity.

        Args:
            alert: Alert to deliver
        """
        log_event(
            alert.tenant_id,
            "alert",
            level=_LEVELS.get(alert.severity, logging.WARNING),
            severity=alert.severity,
            title=alert.title,
            details=alert.details,
            error=alert.error,
            suggested_action=alert.suggested_action,
        )
