# src/domain/state_machine.py

from enum import Enum
from typing import Dict, Set

from src.domain.exceptions import InvalidStateTransitionError


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


Status = PaymentStatus | BookingStatus


class BookingStateMachine:
    """
    Central lifecycle controller for booking transitions.

    A booking carries two status fields, each moving forward only:
    payment status and booking status. Re-applying the current
    value is always allowed and is a no-op.
    """

    # Keyed by enum class first: both enums are str-valued and share
    # "completed", so a single flat dict would collide.
    _ALLOWED_TRANSITIONS: Dict[type, Dict[Status, Set[Status]]] = {
        PaymentStatus: {
            PaymentStatus.PENDING: {
                PaymentStatus.COMPLETED,
                PaymentStatus.FAILED,
            },
            PaymentStatus.COMPLETED: {
                PaymentStatus.REFUNDED,
            },
            PaymentStatus.FAILED: set(),
            PaymentStatus.REFUNDED: set(),
        },
        BookingStatus: {
            BookingStatus.CONFIRMED: {
                BookingStatus.CANCELLED,
                BookingStatus.COMPLETED,
            },
            BookingStatus.CANCELLED: set(),
            BookingStatus.COMPLETED: set(),
        },
    }

    @classmethod
    def can_transition(
        cls,
        from_status: Status,
        to_status: Status,
    ) -> bool:
        """
        Returns True if transition is allowed.
        """
        cls._ensure_valid_status(from_status)
        cls._ensure_valid_status(to_status)

        if type(from_status) is not type(to_status):
            return False
        if from_status == to_status:
            return True

        return to_status in cls._transitions_from(from_status)

    @classmethod
    def validate_transition(
        cls,
        from_status: Status,
        to_status: Status,
    ) -> None:
        """
        Raises InvalidStateTransitionError if transition is illegal.
        """
        if not cls.can_transition(from_status, to_status):
            raise InvalidStateTransitionError(
                from_state=from_status.value,
                to_state=to_status.value,
            )

    @classmethod
    def is_terminal(cls, status: Status) -> bool:
        """
        Returns True if the state is terminal (no further transitions allowed).
        """
        cls._ensure_valid_status(status)
        return len(cls._transitions_from(status)) == 0

    @classmethod
    def get_allowed_transitions(cls, status: Status) -> Set[Status]:
        cls._ensure_valid_status(status)
        return set(cls._transitions_from(status))

    @classmethod
    def _transitions_from(cls, status: Status) -> Set[Status]:
        return cls._ALLOWED_TRANSITIONS[type(status)].get(status, set())

    @staticmethod
    def _ensure_valid_status(status: Status) -> None:
        if not isinstance(status, (PaymentStatus, BookingStatus)):
            raise TypeError(
                f"Expected PaymentStatus or BookingStatus, got {type(status)}"
            )
