# ==============================================================================
# Exceptions
# ==============================================================================
"""
Exception hierarchy shared by the HTTP layer, the socket dispatcher and the
broadcast router.

Lookups for unknown sessions are not errors: they return ``None``.
"""


class LivestatsError(Exception):
    """Base class for all livestats errors."""


class EventValidationError(LivestatsError):
    """An inbound event failed validation and was not stored."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("Invalid event data: " + "; ".join(errors))


class ProtocolError(LivestatsError):
    """A socket message could not be parsed or has an unknown type."""


class DeliveryFailure(LivestatsError):
    """Sending a message to one dashboard socket failed."""

    def __init__(self, connection_id: str, cause: BaseException):
        self.connection_id = connection_id
        self.cause = cause
        super().__init__(f"Delivery to {connection_id} failed: {cause}")
