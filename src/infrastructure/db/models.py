# src/infrastructure/db/models.py

from sqlalchemy import (
    JSON,
    Boolean,
    String,
    Integer,
    DateTime,
    Enum,
    Numeric,
    Text,
    TypeDecorator,
    UniqueConstraint,
    CheckConstraint,
    ForeignKey,
    Index,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from src.infrastructure.db.session import Base
from src.domain import booking_rules
from src.domain.state_machine import BookingStatus, PaymentStatus


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware UTC datetimes on every backend.
    SQLite drops tzinfo on the way in, so it is restored on the way out.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Event(Base):
    __tablename__ = "events"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category: Mapped[str | None] = mapped_column(String(32), nullable=True)
    date_time: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    location: Mapped[str] = mapped_column(String(256), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    seats_total: Mapped[int] = mapped_column(Integer, nullable=False)
    seats_booked: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    seats_available: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_event_price_nonnegative"),
        CheckConstraint("seats_total >= 1", name="ck_event_seats_total_positive"),
        CheckConstraint("seats_booked >= 0", name="ck_event_seats_booked_nonnegative"),
        CheckConstraint("seats_booked <= seats_total", name="ck_event_booked_lte_total"),
        CheckConstraint(
            "seats_available = seats_total - seats_booked",
            name="ck_event_available_derived",
        ),
    )

    @classmethod
    def create(
        cls,
        title: str,
        date_time: datetime,
        location: str,
        price: Decimal,
        seats_total: int,
        description: str = "",
        category: str | None = None,
        featured: bool = False,
    ) -> "Event":
        return cls(
            id=str(uuid4()),
            title=title,
            description=description,
            category=category,
            date_time=date_time,
            location=location,
            price=Decimal(price),
            seats_total=seats_total,
            seats_booked=0,
            seats_available=booking_rules.seats_available(seats_total, 0),
            is_active=True,
            featured=featured,
        )

    @property
    def is_sold_out(self) -> bool:
        return booking_rules.is_sold_out(self.seats_total, self.seats_booked)


class Booking(Base):
    """
    Booking table reflecting domain state.
    Domain controls transitions.
    DB stores current state safely.
    """

    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    event_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("events.id"),
        nullable=False,
    )
    tickets_booked: Mapped[int] = mapped_column(Integer, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    booking_date: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, name="payment_status", values_callable=_enum_values),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    booking_status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus, name="booking_status", values_callable=_enum_values),
        nullable=False,
        default=BookingStatus.CONFIRMED,
    )

    # paymentDetails
    order_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    payment_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    payment_signature: Mapped[str | None] = mapped_column(String(255), nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(32), nullable=True)
    transaction_id: Mapped[str | None] = mapped_column(String(128), nullable=True)

    attendee_details: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    special_requests: Mapped[str | None] = mapped_column(String(500), nullable=True)
    qr_code: Mapped[str | None] = mapped_column(Text, nullable=True)
    seats_released: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # checkIn
    is_checked_in: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    check_in_time: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    checked_in_by: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # refund
    is_refunded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    refund_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    refund_date: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    refund_reason: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    event: Mapped[Event] = relationship(Event)

    __table_args__ = (
        UniqueConstraint("payment_id", name="uq_booking_payment_id"),
        CheckConstraint(
            "tickets_booked >= 1 AND tickets_booked <= 10",
            name="ck_tickets_booked_range",
        ),
        CheckConstraint("total_amount >= 0", name="ck_total_amount_nonnegative"),
        Index("ix_bookings_user_event", "user_id", "event_id"),
        Index("ix_bookings_payment_status", "payment_status"),
    )

    @classmethod
    def create(
        cls,
        user_id: str,
        event: Event,
        tickets_booked: int,
        booking_date: datetime,
        attendee_details: list[dict] | None = None,
        special_requests: str | None = None,
    ) -> "Booking":
        booking_rules.validate_ticket_count(tickets_booked)
        return cls(
            id=str(uuid4()),
            user_id=user_id,
            event_id=event.id,
            tickets_booked=tickets_booked,
            total_amount=booking_rules.total_amount(event.price, tickets_booked),
            booking_date=booking_date,
            payment_status=PaymentStatus.PENDING,
            booking_status=BookingStatus.CONFIRMED,
            attendee_details=(
                list(attendee_details)
                if attendee_details
                else booking_rules.default_attendees(tickets_booked)
            ),
            special_requests=special_requests,
            seats_released=False,
            is_checked_in=False,
            is_refunded=False,
        )

    @property
    def booking_code(self) -> str:
        return booking_rules.booking_code(self.id)

    @property
    def is_active(self) -> bool:
        return booking_rules.is_active_booking(self.booking_status, self.payment_status)
