from datetime import datetime, timezone
from decimal import Decimal
import logging
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.domain.access import Requester, ensure_admin, ensure_owner_or_admin
from src.domain.booking_rules import validate_ticket_count
from src.domain.exceptions import (
    EventExpiredError,
    EventHiveError,
    InvalidBookingRequestError,
    InvalidSignatureError,
    InvalidStateError,
    NotFoundError,
)
from src.domain.refunds import compute_refund
from src.domain.state_machine import BookingStateMachine, BookingStatus, PaymentStatus
from src.domain.tickets import verify_ticket_token
from src.infrastructure.config import Settings, get_settings
from src.infrastructure.db.models import Booking
from src.infrastructure.repositories.booking_repository import BookingRepository
from src.infrastructure.repositories.event_repository import EventRepository


logger = logging.getLogger(__name__)

USER_CANCELLATION_REASON = "User cancellation"

ADMIN_ONLY_PAYMENT_STATUSES = frozenset({PaymentStatus.COMPLETED, PaymentStatus.REFUNDED})


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BookingService:
    """Application service coordinating the booking ledger and seat inventory."""

    def __init__(
        self,
        db: Session,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.clock = clock
        self.booking_repository = BookingRepository(db)
        self.event_repository = EventRepository(db)

    def create_booking(
        self,
        user_id: str,
        event_id: str,
        tickets_booked: int,
        attendee_details: list[dict] | None = None,
        special_requests: str | None = None,
    ) -> Booking:
        validate_ticket_count(tickets_booked)
        if attendee_details and len(attendee_details) != tickets_booked:
            raise InvalidBookingRequestError(
                "Attendee details must be given for every ticket"
            )

        now = self.clock()
        try:
            event = self.event_repository.reserve_seats(event_id, tickets_booked, now)
        except EventHiveError:
            self.db.rollback()
            raise

        # Seats are held from here on. Rolling back the transaction is
        # what releases them if the booking row cannot be written.
        try:
            booking = Booking.create(
                user_id=user_id,
                event=event,
                tickets_booked=tickets_booked,
                booking_date=now,
                attendee_details=attendee_details,
                special_requests=special_requests,
            )
            self.booking_repository.add(booking)
            self.db.flush()
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(
                "Booking persistence failed, seat hold rolled back. event_id=%s user_id=%s",
                event_id,
                user_id,
            )
            raise

        logger.info(
            "Booking created. booking_id=%s event_id=%s user_id=%s tickets=%s",
            booking.id,
            event_id,
            user_id,
            tickets_booked,
        )
        return booking

    def get_booking(
        self,
        booking_id: str,
        requester: Requester,
        for_update: bool = False,
    ) -> Booking:
        booking = self.booking_repository.get_by_id(booking_id, for_update=for_update)
        if not booking:
            raise NotFoundError("Booking not found")
        ensure_owner_or_admin(booking.user_id, requester)
        return booking

    def list_user_bookings(
        self,
        user_id: str,
        requester: Requester,
        booking_status: BookingStatus | None = None,
        payment_status: PaymentStatus | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Booking], int]:
        ensure_owner_or_admin(user_id, requester)
        return self.booking_repository.search(
            user_id=user_id,
            booking_status=booking_status,
            payment_status=payment_status,
            page=page,
            limit=limit,
        )

    def list_bookings(
        self,
        requester: Requester,
        event_id: str | None = None,
        booking_status: BookingStatus | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Booking], int]:
        ensure_admin(requester)
        return self.booking_repository.search(
            event_id=event_id,
            booking_status=booking_status,
            page=page,
            limit=limit,
        )

    def cancel_booking(
        self,
        booking_id: str,
        requester: Requester,
    ) -> tuple[Decimal, Booking]:
        booking = self.get_booking(booking_id, requester, for_update=True)
        now = self.clock()
        event = booking.event

        if event.date_time <= now:
            raise EventExpiredError("Cannot cancel booking for ongoing or past events")
        if booking.booking_status != BookingStatus.CONFIRMED:
            raise InvalidStateError(
                f"Cannot cancel booking in status {booking.booking_status.value}"
            )

        refund_amount = compute_refund(booking.total_amount, event.date_time, now)

        payment_status = None
        if booking.payment_status == PaymentStatus.COMPLETED and refund_amount > 0:
            payment_status = PaymentStatus.REFUNDED
        self.transition(
            booking,
            booking_status=BookingStatus.CANCELLED,
            payment_status=payment_status,
        )

        if refund_amount > 0:
            booking.is_refunded = True
            booking.refund_amount = refund_amount
            booking.refund_date = now
            booking.refund_reason = USER_CANCELLATION_REASON

        self.release_held_seats(booking)
        self.db.commit()

        logger.info(
            "Booking cancelled. booking_id=%s refund=%s",
            booking.id,
            refund_amount,
        )
        return refund_amount, booking

    def update_booking_status(
        self,
        booking_id: str,
        requester: Requester,
        booking_status: BookingStatus | None = None,
        payment_status: PaymentStatus | None = None,
    ) -> Booking:
        booking = self.get_booking(booking_id, requester, for_update=True)
        if (
            payment_status in ADMIN_ONLY_PAYMENT_STATUSES
            and payment_status != booking.payment_status
        ):
            # Settling goes through payment verification, refunds through cancellation.
            ensure_admin(requester)
        self.transition(
            booking,
            booking_status=booking_status,
            payment_status=payment_status,
        )
        self.db.commit()
        return booking

    def check_in(self, qr_code: str, requester: Requester) -> Booking:
        ensure_admin(requester)
        claims = verify_ticket_token(self.settings.ticket_signing_secret, qr_code)

        booking = self.booking_repository.get_by_id(claims.booking_id, for_update=True)
        if not booking:
            raise NotFoundError("Booking not found")
        if (
            booking.event_id != claims.event_id
            or booking.user_id != claims.user_id
            or booking.qr_code != qr_code
        ):
            raise InvalidSignatureError("Ticket does not match booking")
        if not booking.is_active:
            raise InvalidStateError("Only confirmed, paid bookings can be checked in")
        if booking.is_checked_in:
            raise InvalidStateError("Ticket already checked in")

        booking.is_checked_in = True
        booking.check_in_time = self.clock()
        booking.checked_in_by = requester.user_id
        self.db.commit()

        logger.info(
            "Ticket checked in. booking_id=%s by=%s",
            booking.id,
            requester.user_id,
        )
        return booking

    def release_held_seats(self, booking: Booking) -> bool:
        """
        Give the booking's soft hold back to the event, at most once.
        Returns False when an earlier call already released the seats.
        """
        if not self.booking_repository.claim_seat_release(booking.id):
            logger.info("Seats already released. booking_id=%s", booking.id)
            return False

        self.event_repository.release_seats(booking.event_id, booking.tickets_booked)
        booking.seats_released = True
        logger.info(
            "Seats released. booking_id=%s event_id=%s seats=%s",
            booking.id,
            booking.event_id,
            booking.tickets_booked,
        )
        return True

    def transition(
        self,
        booking: Booking,
        booking_status: BookingStatus | None = None,
        payment_status: PaymentStatus | None = None,
    ) -> None:
        # Validate both fields before touching either.
        if booking_status is not None:
            BookingStateMachine.validate_transition(booking.booking_status, booking_status)
        if payment_status is not None:
            BookingStateMachine.validate_transition(booking.payment_status, payment_status)

        if booking_status is not None:
            booking.booking_status = booking_status
        if payment_status is not None:
            booking.payment_status = payment_status
