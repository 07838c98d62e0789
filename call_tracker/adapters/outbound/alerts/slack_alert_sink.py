"""Slack incoming-webhook alert sink adapter."""

from typing import Optional

import httpx

from call_tracker.application.dtos.alert import Alert
from call_tracker.application.ports.alert_sink import AlertSink
from call_tracker.infrastructure.logging.logger import logger

SLACK_SEVERITIES = ("critical", "high")


def format_slack_text(alert: Alert) -> str:
    """
    Render an alert as Slack mrkdwn text.

    Args:
        alert: Alert to render

    Returns:
        Message text
    """
    lines = [f"*[{alert.severity.upper()}] {alert.title}*", alert.details]
    if alert.tenant_id:
        lines.append(f"Tenant: {alert.tenant_id}")
    if alert.error:
        lines.append(f"Error: `{alert.error}`")
    if alert.suggested_action:
        lines.append(f"Action: {alert.suggested_action}")
    return "\n".join(lines)


class SlackAlertSink(AlertSink):
    """Posts critical and high alerts to a Slack incoming webhook."""

    def __init__(
        self,
        webhook_url: str,
        timeout_seconds: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize Slack alert sink.

        Args:
            webhook_url: Slack incoming webhook URL
            timeout_seconds: Request timeout
            client: Prebuilt client (tests)
        """
        self._webhook_url = webhook_url
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds))

    async def send(self, alert: Alert) -> None:
        """
        Post the alert if it is critical or high. Delivery failures are logged.

        Args:
            alert: Alert to deliver
        """
        if alert.severity not in SLACK_SEVERITIES:
            return
        try:
            response = await self._client.post(self._webhook_url, json={"text": format_slack_text(alert)})
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to send Slack alert '{alert.title}': {str(e)}")

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
