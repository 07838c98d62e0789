"""Alerting port."""

from abc import ABC, abstractmethod

from call_tracker.application.dtos.alert import Alert


class AlertSink(ABC):
    """Fire-and-forget alert channel. Implementations must not raise."""

    @abstractmethod
    async def send(self, alert: Alert) -> None:
        """
        Send an alert.

        Args:
            alert: Alert to deliver
        """
        pass
