from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import select

from src.infrastructure.db.models import Base, Event
from src.infrastructure.db.session import SessionLocal, engine


def _dt(days_from_now: int, hour: int, minute: int) -> datetime:
    ist = timezone(timedelta(hours=5, minutes=30))
    now_ist = datetime.now(ist)
    target = now_ist + timedelta(days=days_from_now)
    return target.replace(hour=hour, minute=minute, second=0, microsecond=0)


EVENT_DEFS = [
    {
        "title": "Indie Music Night",
        "description": "An evening of independent artists across three stages.",
        "category": "Music",
        "date_time": _dt(days_from_now=12, hour=19, minute=0),
        "location": "Phoenix Arena, Bengaluru",
        "price": Decimal("1499.00"),
        "seats_total": 400,
        "featured": True,
    },
    {
        "title": "Startup Tech Summit",
        "description": "Talks and workshops on building products in India.",
        "category": "Technology",
        "date_time": _dt(days_from_now=20, hour=10, minute=0),
        "location": "HICC, Hyderabad",
        "price": Decimal("999.00"),
        "seats_total": 250,
    },
    {
        "title": "Street Food Festival",
        "description": "Regional street food from twenty cities.",
        "category": "Food",
        "date_time": _dt(days_from_now=5, hour=17, minute=30),
        "location": "Bandra Fort Grounds, Mumbai",
        "price": Decimal("299.00"),
        "seats_total": 800,
    },
]


def seed_events(db) -> list[Event]:
    seeded = []
    for item in EVENT_DEFS:
        existing = db.execute(
            select(Event).where(Event.title == item["title"])
        ).scalar_one_or_none()
        if existing:
            # Keep booked counts; only refresh descriptive fields.
            existing.description = item["description"]
            existing.date_time = item["date_time"]
            existing.location = item["location"]
            existing.price = item["price"]
            existing.is_active = True
            existing.featured = item.get("featured", False)
            seeded.append(existing)
            continue

        event = Event.create(**item)
        db.add(event)
        seeded.append(event)
    db.flush()
    return seeded


def main() -> None:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        events = seed_events(db)
        db.commit()
        print(f"Seed complete: {len(events)} events ready.")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
