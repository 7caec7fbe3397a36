from decimal import Decimal

from src.domain.exceptions import InvalidBookingRequestError
from src.domain.state_machine import BookingStatus, PaymentStatus

MIN_TICKETS_PER_BOOKING = 1
MAX_TICKETS_PER_BOOKING = 10


def validate_ticket_count(tickets_booked: int) -> None:
    if not MIN_TICKETS_PER_BOOKING <= tickets_booked <= MAX_TICKETS_PER_BOOKING:
        raise InvalidBookingRequestError(
            f"Tickets per booking must be between "
            f"{MIN_TICKETS_PER_BOOKING} and {MAX_TICKETS_PER_BOOKING}"
        )


def seats_available(seats_total: int, seats_booked: int) -> int:
    return seats_total - seats_booked


def is_sold_out(seats_total: int, seats_booked: int) -> bool:
    return seats_booked >= seats_total


def total_amount(price: Decimal, tickets_booked: int) -> Decimal:
    return Decimal(price) * tickets_booked


def to_minor_units(amount: Decimal) -> int:
    """Rupees to paise."""
    return int((Decimal(amount) * 100).to_integral_value())


def default_attendees(tickets_booked: int) -> list[dict]:
    return [
        {"name": f"Attendee {index}", "email": "", "phone": ""}
        for index in range(1, tickets_booked + 1)
    ]


def booking_code(booking_id: str) -> str:
    """Short display reference, e.g. BK3F9A1C."""
    return f"BK{booking_id[-6:].upper()}"


def is_active_booking(
    booking_status: BookingStatus,
    payment_status: PaymentStatus,
) -> bool:
    return (
        booking_status == BookingStatus.CONFIRMED
        and payment_status == PaymentStatus.COMPLETED
    )
