import math

from src.api.schemas.schemas import (
    Attendee,
    BookingResponse,
    CheckInDetails,
    EventResponse,
    EventSummary,
    Pagination,
    PaymentDetails,
    PaymentHistoryItem,
    RefundDetails,
    VerifiedBookingResponse,
)
from src.infrastructure.db.models import Booking, Event


def pagination(page: int, limit: int, total: int) -> Pagination:
    return Pagination(
        page=page,
        pages=math.ceil(total / limit) if limit else 0,
        total=total,
        limit=limit,
    )


def event_response(event: Event) -> EventResponse:
    return EventResponse(
        id=event.id,
        title=event.title,
        description=event.description,
        category=event.category,
        date_time=event.date_time,
        location=event.location,
        price=float(event.price),
        seats_total=event.seats_total,
        seats_booked=event.seats_booked,
        seats_available=event.seats_available,
        is_active=event.is_active,
        featured=event.featured,
        is_sold_out=event.is_sold_out,
    )


def _payment_details(booking: Booking) -> PaymentDetails:
    return PaymentDetails(
        order_id=booking.order_id,
        payment_id=booking.payment_id,
        signature=booking.payment_signature,
        method=booking.payment_method,
        transaction_id=booking.transaction_id,
    )


def booking_response(booking: Booking) -> BookingResponse:
    event = booking.event
    return BookingResponse(
        id=booking.id,
        booking_code=booking.booking_code,
        user_id=booking.user_id,
        event_id=booking.event_id,
        event=EventSummary(
            id=event.id,
            title=event.title,
            date_time=event.date_time,
            location=event.location,
            price=float(event.price),
        ) if event else None,
        tickets_booked=booking.tickets_booked,
        total_amount=float(booking.total_amount),
        booking_date=booking.booking_date,
        payment_status=booking.payment_status,
        booking_status=booking.booking_status,
        payment_details=_payment_details(booking),
        attendee_details=[Attendee(**item) for item in booking.attendee_details],
        special_requests=booking.special_requests,
        qr_code=booking.qr_code,
        refund=RefundDetails(
            is_refunded=booking.is_refunded,
            refund_amount=(
                float(booking.refund_amount)
                if booking.refund_amount is not None
                else None
            ),
            refund_date=booking.refund_date,
            refund_reason=booking.refund_reason,
        ),
        check_in=CheckInDetails(
            is_checked_in=booking.is_checked_in,
            check_in_time=booking.check_in_time,
            check_in_by=booking.checked_in_by,
        ),
        is_active=booking.is_active,
    )


def verified_booking_response(booking: Booking) -> VerifiedBookingResponse:
    return VerifiedBookingResponse(
        id=booking.id,
        booking_code=booking.booking_code,
        event_title=booking.event.title,
        tickets_booked=booking.tickets_booked,
        total_amount=float(booking.total_amount),
        payment_status=booking.payment_status,
        booking_status=booking.booking_status,
        qr_code=booking.qr_code,
    )


def payment_history_item(booking: Booking) -> PaymentHistoryItem:
    return PaymentHistoryItem(
        booking_id=booking.id,
        event_id=booking.event_id,
        user_id=booking.user_id,
        total_amount=float(booking.total_amount),
        payment_details=_payment_details(booking),
        booking_date=booking.booking_date,
    )
