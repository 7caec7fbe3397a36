# src/infrastructure/repositories/booking_repository.py

from decimal import Decimal

from sqlalchemy.orm import Session
from sqlalchemy import func, select, update

from src.infrastructure.db.models import Booking
from src.domain.state_machine import BookingStatus, PaymentStatus


class BookingRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(
        self,
        booking_id: str,
        for_update: bool = False,
    ) -> Booking | None:

        stmt = select(Booking).where(Booking.id == booking_id)
        if for_update:
            # Row lock held until commit; status changes are read-modify-write.
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_by_payment_id(self, payment_id: str) -> Booking | None:
        stmt = select(Booking).where(Booking.payment_id == payment_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def add(self, booking: Booking) -> Booking:
        self.db.add(booking)
        return booking

    def search(
        self,
        user_id: str | None = None,
        event_id: str | None = None,
        booking_status: BookingStatus | None = None,
        payment_status: PaymentStatus | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Booking], int]:
        conditions = []
        if user_id is not None:
            conditions.append(Booking.user_id == user_id)
        if event_id is not None:
            conditions.append(Booking.event_id == event_id)
        if booking_status is not None:
            conditions.append(Booking.booking_status == booking_status)
        if payment_status is not None:
            conditions.append(Booking.payment_status == payment_status)

        total = self.db.execute(
            select(func.count()).select_from(Booking).where(*conditions)
        ).scalar_one()

        stmt = (
            select(Booking)
            .where(*conditions)
            .order_by(Booking.booking_date.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all()), total

    def total_revenue(self) -> Decimal:
        stmt = select(func.coalesce(func.sum(Booking.total_amount), 0)).where(
            Booking.payment_status == PaymentStatus.COMPLETED
        )
        return Decimal(self.db.execute(stmt).scalar_one())

    def claim_seat_release(self, booking_id: str) -> bool:
        """
        Compare-and-set on seats_released.

        Returns True only for the single caller that flips the flag,
        which is then responsible for releasing the seats.
        """
        result = self.db.execute(
            update(Booking)
            .where(
                Booking.id == booking_id,
                Booking.seats_released.is_(False),
            )
            .values(seats_released=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
