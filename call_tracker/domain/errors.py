"""Domain errors."""


class CallTrackerError(Exception):
    """Base class for call tracker errors."""


class UnknownAttendanceStateError(CallTrackerError, ValueError):
    """Raised when a stored or incoming attendance value is not a known state."""

    def __init__(self, value: object) -> None:
        super().__init__(f"Unknown attendance state: {value!r}")
        self.value = value


class InvalidTransitionError(CallTrackerError):
    """Raised when a trigger cannot move a call out of its current state."""

    def __init__(self, current: object, trigger: str) -> None:
        super().__init__(f"Illegal transition: {current!r} + {trigger}")
        self.current = current
        self.trigger = trigger


class CollaboratorUnavailableError(CallTrackerError):
    """Raised when an external collaborator keeps failing after retries."""
