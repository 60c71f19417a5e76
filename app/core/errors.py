"""
Error taxonomy for the intake core.

All of these are absorbed at the event-handling boundary
(ConversationEngine.handle_event); the webhook always acknowledges receipt.
"""


class IntakeError(Exception):
    """Base class for intake-core errors."""


class TransientDeliveryError(IntakeError):
    """Outbound send failed. Retried by the queued strategy, surfaced by the direct one."""

    def __init__(self, message: str, *, to: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.to = to
        self.status_code = status_code


# The gateway contract names the failure DeliveryError
DeliveryError = TransientDeliveryError


class PersistenceError(IntakeError):
    """Lead insert failed (durable store unavailable or rejected the write)."""


class ValidationError(IntakeError):
    """Malformed ad tag or unparseable free text. Never reaches the user."""


class SessionCorruption(IntakeError):
    """A stored session is missing fields or violates an invariant. Treated as absent."""
