from datetime import datetime
from decimal import Decimal
import logging
from typing import Callable

from sqlalchemy.orm import Session

from src.application.booking_service import BookingService, utc_now
from src.domain.access import Requester, ensure_admin
from src.domain.booking_rules import to_minor_units
from src.domain.exceptions import (
    AlreadyPaidError,
    InvalidSignatureError,
    InvalidStateError,
    NotFoundError,
)
from src.domain.state_machine import BookingStatus, PaymentStatus
from src.domain.tickets import TicketClaims, issue_ticket_token
from src.infrastructure.config import Settings, get_settings
from src.infrastructure.db.models import Booking
from src.infrastructure.gateways.payment_gateway import PaymentGateway


logger = logging.getLogger(__name__)


class PaymentService:
    """
    Reconciles bookings with the payment gateway.

    The client drives the flow: create an order, pay at the gateway,
    then hand the gateway's signature back for verification. Anything
    that goes wrong after the signature has been accepted fails the
    booking and returns its seats.

    Each operation locks the booking row before reading its status,
    so a verify waiting on the gateway cannot interleave with a
    failure report or a cancellation of the same booking.
    """

    def __init__(
        self,
        db: Session,
        gateway: PaymentGateway,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.gateway = gateway
        self.settings = settings or get_settings()
        self.booking_service = BookingService(db, settings=self.settings, clock=clock)
        self.booking_repository = self.booking_service.booking_repository

    def create_order(self, booking_id: str, requester: Requester) -> dict:
        booking = self.booking_service.get_booking(booking_id, requester, for_update=True)
        self._ensure_awaiting_payment(booking)

        amount = to_minor_units(booking.total_amount)
        event = booking.event
        # Gateway failures surface as GatewayError before the booking is touched.
        order = self.gateway.create_order(
            amount=amount,
            currency=self.settings.payment_currency,
            receipt=f"booking_{booking.id.replace('-', '')}",
            notes={
                "bookingId": booking.id,
                "eventId": booking.event_id,
                "eventTitle": event.title,
                "userId": booking.user_id,
            },
        )

        booking.order_id = order["id"]
        self.db.commit()

        logger.info(
            "Payment order created. booking_id=%s order_id=%s amount=%s",
            booking.id,
            booking.order_id,
            amount,
        )
        return {
            "order_id": order["id"],
            "amount": order.get("amount", amount),
            "currency": order.get("currency", self.settings.payment_currency),
            "booking_id": booking.id,
            "event_title": event.title,
            "key_id": self.gateway.key_id,
        }

    def verify_payment(
        self,
        booking_id: str,
        requester: Requester,
        order_id: str,
        payment_id: str,
        signature: str,
    ) -> Booking:
        booking = self.booking_service.get_booking(booking_id, requester, for_update=True)
        self._ensure_awaiting_payment(booking)

        if not booking.order_id:
            raise InvalidStateError("Order not created for this booking")
        if order_id != booking.order_id:
            raise InvalidStateError("Order id does not match this booking.")

        try:
            self.gateway.verify_signature(order_id, payment_id, signature)
        except InvalidSignatureError:
            logger.warning(
                "Rejected payment with invalid signature. booking_id=%s payment_id=%s",
                booking.id,
                payment_id,
            )
            raise

        existing_paid_booking = self.booking_repository.get_by_payment_id(payment_id)
        if existing_paid_booking and existing_paid_booking.id != booking.id:
            raise InvalidStateError("Payment id already consumed by another booking.")

        try:
            payment = self.gateway.fetch_payment(payment_id)

            acquirer_data = payment.get("acquirer_data") or {}
            booking.payment_id = payment_id
            booking.payment_signature = signature
            booking.payment_method = payment.get("method")
            booking.transaction_id = acquirer_data.get("rrn") or payment.get("id") or payment_id

            self.booking_service.transition(
                booking,
                booking_status=BookingStatus.CONFIRMED,
                payment_status=PaymentStatus.COMPLETED,
            )
            booking.qr_code = issue_ticket_token(
                self.settings.ticket_signing_secret,
                TicketClaims(
                    booking_id=booking.id,
                    event_id=booking.event_id,
                    user_id=booking.user_id,
                    tickets_booked=booking.tickets_booked,
                ),
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception(
                "Payment verification failed after signature check. booking_id=%s",
                booking_id,
            )
            self._fail_after_verification(booking_id)
            raise

        logger.info(
            "Payment verified. booking_id=%s payment_id=%s",
            booking.id,
            payment_id,
        )
        return booking

    def handle_payment_failure(
        self,
        booking_id: str,
        requester: Requester,
        reason: str | None = None,
    ) -> tuple[Booking, bool]:
        """
        Client-reported payment failure. Safe to call repeatedly:
        seats are only released by the first call.
        """
        booking = self.booking_service.get_booking(booking_id, requester, for_update=True)
        if booking.payment_status in (PaymentStatus.COMPLETED, PaymentStatus.REFUNDED):
            raise AlreadyPaidError("Payment already completed for this booking")

        released = self._mark_failed(booking)
        self.db.commit()

        logger.info(
            "Payment failure handled. booking_id=%s seats_released=%s reason=%s",
            booking.id,
            released,
            reason,
        )
        return booking, released

    def payment_history(
        self,
        requester: Requester,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Booking], int, Decimal]:
        ensure_admin(requester)
        payments, total = self.booking_repository.search(
            payment_status=PaymentStatus.COMPLETED,
            page=page,
            limit=limit,
        )
        return payments, total, self.booking_repository.total_revenue()

    def _ensure_awaiting_payment(self, booking: Booking) -> None:
        if booking.payment_status == PaymentStatus.COMPLETED:
            raise AlreadyPaidError("Payment already completed for this booking")
        if (
            booking.payment_status != PaymentStatus.PENDING
            or booking.booking_status != BookingStatus.CONFIRMED
        ):
            raise InvalidStateError("Booking is no longer awaiting payment")

    def _mark_failed(self, booking: Booking) -> bool:
        self.booking_service.transition(
            booking,
            booking_status=(
                BookingStatus.CANCELLED
                if booking.booking_status == BookingStatus.CONFIRMED
                else None
            ),
            payment_status=(
                PaymentStatus.FAILED
                if booking.payment_status == PaymentStatus.PENDING
                else None
            ),
        )
        return self.booking_service.release_held_seats(booking)

    def _fail_after_verification(self, booking_id: str) -> None:
        booking = self.booking_repository.get_by_id(booking_id, for_update=True)
        if not booking:
            raise NotFoundError("Booking not found")
        if booking.payment_status != PaymentStatus.PENDING:
            return

        self._mark_failed(booking)
        self.db.commit()
        logger.warning(
            "Booking marked failed after verification error. booking_id=%s",
            booking_id,
        )
