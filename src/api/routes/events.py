from datetime import datetime
from decimal import Decimal
import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from src.api.dependencies import get_db, get_requester
from src.api.schemas.converters import event_response, pagination
from src.api.schemas.schemas import (
    EventCreate,
    EventCollectionResponse,
    EventListResponse,
    EventResponse,
    EventUpdate,
)
from src.application.booking_service import utc_now
from src.domain.access import Requester, ensure_admin
from src.domain.exceptions import NotFoundError
from src.infrastructure.db.models import Event
from src.infrastructure.repositories.event_repository import EventRepository


router = APIRouter(prefix="/events", tags=["events"])
logger = logging.getLogger(__name__)

FEATURED_EVENTS_LIMIT = 6


def _get_event_or_404(repo: EventRepository, event_id: str) -> Event:
    event = repo.get_by_id(event_id)
    if not event:
        raise NotFoundError("Event not found")
    return event


@router.get("", response_model=EventListResponse)
def list_events(
    location: str | None = None,
    category: str | None = None,
    search: str | None = None,
    min_price: float | None = Query(default=None, alias="minPrice", ge=0),
    max_price: float | None = Query(default=None, alias="maxPrice", ge=0),
    start_date: datetime | None = Query(default=None, alias="startDate"),
    end_date: datetime | None = Query(default=None, alias="endDate"),
    sort_order: str = Query(default="asc", alias="sortOrder", pattern="^(asc|desc)$"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    events, total = EventRepository(db).list_active(
        location=location,
        category=category,
        search=search,
        min_price=Decimal(str(min_price)) if min_price is not None else None,
        max_price=Decimal(str(max_price)) if max_price is not None else None,
        start_date=start_date,
        end_date=end_date,
        descending=sort_order == "desc",
        page=page,
        limit=limit,
    )
    return EventListResponse(
        events=[event_response(event) for event in events],
        pagination=pagination(page, limit, total),
    )


@router.get("/featured/list", response_model=EventCollectionResponse)
def list_featured_events(db: Session = Depends(get_db)):
    events, _ = EventRepository(db).list_active(
        featured=True,
        upcoming_after=utc_now(),
        limit=FEATURED_EVENTS_LIMIT,
    )
    return EventCollectionResponse(events=[event_response(event) for event in events])


@router.get("/category/{category}", response_model=EventCollectionResponse)
def list_events_by_category(category: str, db: Session = Depends(get_db)):
    events, _ = EventRepository(db).list_active(
        category=category,
        upcoming_after=utc_now(),
        limit=None,
    )
    return EventCollectionResponse(events=[event_response(event) for event in events])


@router.get("/{event_id}", response_model=EventResponse)
def get_event(event_id: str, db: Session = Depends(get_db)):
    return event_response(_get_event_or_404(EventRepository(db), event_id))


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
def create_event(
    request: EventCreate,
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    ensure_admin(requester)

    event = Event.create(
        title=request.title,
        description=request.description,
        category=request.category,
        date_time=request.date_time,
        location=request.location,
        price=Decimal(str(request.price)),
        seats_total=request.seats_total,
        featured=request.featured,
    )
    EventRepository(db).add(event)
    db.commit()

    logger.info("Event created. event_id=%s seats_total=%s", event.id, event.seats_total)
    return event_response(event)


@router.put("/{event_id}", response_model=EventResponse)
def update_event(
    event_id: str,
    request: EventUpdate,
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    ensure_admin(requester)
    repo = EventRepository(db)
    event = _get_event_or_404(repo, event_id)

    changes = request.model_dump(exclude_unset=True, exclude={"seats_total"})
    if "price" in changes and changes["price"] is not None:
        changes["price"] = Decimal(str(changes["price"]))
    for field, value in changes.items():
        if value is not None:
            setattr(event, field, value)
    db.flush()

    # Seat counters only ever move through the inventory's guarded updates.
    if request.seats_total is not None:
        event = repo.resize(event_id, request.seats_total)

    db.commit()
    return event_response(event)


@router.delete("/{event_id}")
def delete_event(
    event_id: str,
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    ensure_admin(requester)
    event = _get_event_or_404(EventRepository(db), event_id)

    # Soft delete - existing bookings keep referencing the event.
    event.is_active = False
    db.commit()

    logger.info("Event deactivated. event_id=%s", event_id)
    return {"success": True, "message": "Event deleted successfully"}
