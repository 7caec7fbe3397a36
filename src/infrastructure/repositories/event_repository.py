# src/infrastructure/repositories/event_repository.py

from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session
from sqlalchemy import case, func, or_, select, update

from src.infrastructure.db.models import Event
from src.domain.exceptions import (
    EventExpiredError,
    InsufficientSeatsError,
    InvalidStateError,
    NotFoundError,
)


class EventRepository:
    """
    Event inventory store.

    Every change to seats_total or seats_booked is a single guarded
    UPDATE that also rewrites seats_available, so the counters are
    never read in Python and written back.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, event_id: str) -> Event | None:
        stmt = select(Event).where(Event.id == event_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_active(self, event_id: str) -> Event:
        event = self.get_by_id(event_id)
        if not event or not event.is_active:
            raise NotFoundError("Event not found or is not active")
        return event

    def add(self, event: Event) -> Event:
        self.db.add(event)
        return event

    def list_active(
        self,
        location: str | None = None,
        category: str | None = None,
        search: str | None = None,
        min_price: Decimal | None = None,
        max_price: Decimal | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        upcoming_after: datetime | None = None,
        featured: bool | None = None,
        descending: bool = False,
        page: int = 1,
        limit: int | None = 10,
    ) -> tuple[list[Event], int]:
        conditions = [Event.is_active.is_(True)]

        if location:
            conditions.append(Event.location.ilike(f"%{location}%"))
        if category:
            conditions.append(Event.category == category)
        if search:
            conditions.append(
                or_(
                    Event.title.ilike(f"%{search}%"),
                    Event.description.ilike(f"%{search}%"),
                )
            )
        if min_price is not None:
            conditions.append(Event.price >= min_price)
        if max_price is not None:
            conditions.append(Event.price <= max_price)
        if start_date is not None:
            conditions.append(Event.date_time >= start_date)
        if end_date is not None:
            conditions.append(Event.date_time <= end_date)
        if upcoming_after is not None:
            conditions.append(Event.date_time >= upcoming_after)
        if featured is not None:
            conditions.append(Event.featured.is_(featured))

        total = self.db.execute(
            select(func.count()).select_from(Event).where(*conditions)
        ).scalar_one()

        order = Event.date_time.desc() if descending else Event.date_time.asc()
        stmt = select(Event).where(*conditions).order_by(order)
        if limit is not None:
            stmt = stmt.offset((page - 1) * limit).limit(limit)
        return list(self.db.execute(stmt).scalars().all()), total

    def reserve_seats(
        self,
        event_id: str,
        seat_count: int,
        now: datetime,
    ) -> Event:
        """
        Atomically hold `seat_count` seats.

        The WHERE clause carries every precondition, so two concurrent
        reservations for the last seat cannot both match the row.
        """
        new_booked = Event.seats_booked + seat_count
        result = self.db.execute(
            update(Event)
            .where(
                Event.id == event_id,
                Event.is_active.is_(True),
                Event.date_time > now,
                new_booked <= Event.seats_total,
            )
            .values(
                seats_booked=new_booked,
                seats_available=Event.seats_total - new_booked,
            )
            .execution_options(synchronize_session=False)
        )

        event = self._refresh(event_id)
        if result.rowcount == 1:
            return event

        # Nothing matched; work out which precondition failed.
        if not event or not event.is_active:
            raise NotFoundError("Event not found or is not active")
        if event.date_time <= now:
            raise EventExpiredError("Cannot book tickets for past events")
        raise InsufficientSeatsError(
            requested=seat_count,
            available=event.seats_available,
        )

    def release_seats(self, event_id: str, seat_count: int) -> Event | None:
        """Return held seats, never letting seats_booked drop below zero."""
        new_booked = case(
            (Event.seats_booked - seat_count < 0, 0),
            else_=Event.seats_booked - seat_count,
        )
        self.db.execute(
            update(Event)
            .where(Event.id == event_id)
            .values(
                seats_booked=new_booked,
                seats_available=Event.seats_total - new_booked,
            )
            .execution_options(synchronize_session=False)
        )
        return self._refresh(event_id)

    def resize(self, event_id: str, seats_total: int) -> Event:
        result = self.db.execute(
            update(Event)
            .where(
                Event.id == event_id,
                Event.seats_booked <= seats_total,
            )
            .values(
                seats_total=seats_total,
                seats_available=seats_total - Event.seats_booked,
            )
            .execution_options(synchronize_session=False)
        )

        event = self._refresh(event_id)
        if not event:
            raise NotFoundError("Event not found")
        if result.rowcount != 1:
            raise InvalidStateError(
                f"Total seats cannot be lower than the {event.seats_booked} already booked"
            )
        return event

    def _refresh(self, event_id: str) -> Event | None:
        stmt = (
            select(Event)
            .where(Event.id == event_id)
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()
