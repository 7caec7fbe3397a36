

class EventHiveError(Exception):
    """
    Base exception for all domain-level errors
    inside the EventHive booking engine.

    `kind` and `status_code` drive the structured error
    response rendered at the API boundary.
    """

    kind = "Error"
    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(EventHiveError):
    """Raised when an event or booking does not exist (or is inactive)."""

    kind = "NotFound"
    status_code = 404


class ForbiddenError(EventHiveError):
    """Raised on ownership or role violations."""

    kind = "Forbidden"
    status_code = 403


class InvalidBookingRequestError(EventHiveError):
    kind = "InvalidRequest"


class InvalidStateError(EventHiveError):
    """
    Raised when the requested operation does not fit the
    current state of the booking or event.
    """

    kind = "InvalidState"


class EventExpiredError(InvalidStateError):
    """Raised when booking or cancelling against a past event."""


class AlreadyPaidError(InvalidStateError):
    """Raised when a payment operation targets a completed payment."""


class InvalidStateTransitionError(InvalidStateError):
    """
    Raised when an illegal booking state transition is attempted.
    """

    def __init__(self, from_state: str, to_state: str):
        self.from_state = from_state
        self.to_state = to_state

        message = (
            f"Illegal state transition attempted: "
            f"{from_state} -> {to_state}"
        )
        super().__init__(message)


class InsufficientSeatsError(EventHiveError):
    """Raised when fewer seats are available than requested."""

    kind = "InsufficientSeats"

    def __init__(self, requested: int, available: int):
        self.requested = requested
        self.available = available
        super().__init__(f"Only {available} seats available")


class InvalidSignatureError(EventHiveError):
    kind = "InvalidSignature"


class GatewayError(EventHiveError):
    """Raised when the upstream payment provider fails or times out."""

    kind = "GatewayError"
    status_code = 502
