"""Composite alert sink adapter."""

from call_tracker.application.dtos.alert import Alert
from call_tracker.application.ports.alert_sink import AlertSink
from call_tracker.infrastructure.logging.logger import logger


class CompositeAlertSink(AlertSink):
    """Fans an alert out to several channels; one failing channel never blocks the others."""

    def __init__(self, *sinks: AlertSink) -> None:
        """
        Initialize composite sink.

        Args:
            *sinks: Channels, in delivery order
        """
        self._sinks = list(sinks)

    async def send(self, alert: Alert) -> None:
        """
        Deliver the alert to every channel.

        Args:
            alert: Alert to deliver
        """
        for sink in self._sinks:
            try:
                await sink.send(alert)
            except Exception as e:
                logger.error(f"Alert channel {type(sink).__name__} failed for '{alert.title}': {str(e)}")
