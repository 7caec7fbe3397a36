# tests/unit/test_state_machine.py

import pytest

from src.domain.state_machine import BookingStateMachine, BookingStatus, PaymentStatus
from src.domain.exceptions import InvalidStateTransitionError


# ---------------------
# VALID TRANSITIONS
# ---------------------

def test_valid_payment_paths():
    assert BookingStateMachine.can_transition(
        PaymentStatus.PENDING,
        PaymentStatus.COMPLETED,
    )

    assert BookingStateMachine.can_transition(
        PaymentStatus.PENDING,
        PaymentStatus.FAILED,
    )

    assert BookingStateMachine.can_transition(
        PaymentStatus.COMPLETED,
        PaymentStatus.REFUNDED,
    )


def test_valid_booking_paths():
    assert BookingStateMachine.can_transition(
        BookingStatus.CONFIRMED,
        BookingStatus.CANCELLED,
    )

    assert BookingStateMachine.can_transition(
        BookingStatus.CONFIRMED,
        BookingStatus.COMPLETED,
    )


def test_same_status_is_noop():
    BookingStateMachine.validate_transition(
        BookingStatus.CONFIRMED,
        BookingStatus.CONFIRMED,
    )
    BookingStateMachine.validate_transition(
        PaymentStatus.FAILED,
        PaymentStatus.FAILED,
    )


# ---------------------
# INVALID TRANSITIONS
# ---------------------

def test_cannot_refund_unpaid_booking():
    with pytest.raises(InvalidStateTransitionError):
        BookingStateMachine.validate_transition(
            PaymentStatus.PENDING,
            PaymentStatus.REFUNDED,
        )


def test_terminal_state_failed():
    assert BookingStateMachine.is_terminal(PaymentStatus.FAILED)

    with pytest.raises(InvalidStateTransitionError):
        BookingStateMachine.validate_transition(
            PaymentStatus.FAILED,
            PaymentStatus.COMPLETED,
        )


def test_cancelled_booking_cannot_be_reconfirmed():
    assert BookingStateMachine.is_terminal(BookingStatus.CANCELLED)

    with pytest.raises(InvalidStateTransitionError) as exc_info:
        BookingStateMachine.validate_transition(
            BookingStatus.CANCELLED,
            BookingStatus.CONFIRMED,
        )

    assert exc_info.value.from_state == "cancelled"
    assert exc_info.value.to_state == "confirmed"


def test_mixed_status_kinds_are_rejected():
    assert not BookingStateMachine.can_transition(
        BookingStatus.CONFIRMED,
        PaymentStatus.COMPLETED,
    )


def test_allowed_transitions_from_pending():
    assert BookingStateMachine.get_allowed_transitions(PaymentStatus.PENDING) == {
        PaymentStatus.COMPLETED,
        PaymentStatus.FAILED,
    }


def test_invalid_type_guard():
    with pytest.raises(TypeError):
        BookingStateMachine.validate_transition(
            "pending",  # invalid type
            PaymentStatus.COMPLETED,
        )


def test_completed_means_different_things_per_status_kind():
    assert BookingStateMachine.can_transition(
        PaymentStatus.COMPLETED,
        PaymentStatus.REFUNDED,
    )
    assert BookingStateMachine.is_terminal(BookingStatus.COMPLETED)
    assert not BookingStateMachine.is_terminal(PaymentStatus.COMPLETED)
