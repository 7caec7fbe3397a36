from datetime import datetime, timezone

from fastapi import APIRouter

from src.api.routes import bookings, events, payment


router = APIRouter()
router.include_router(events.router)
router.include_router(bookings.router)
router.include_router(payment.router)


@router.get("/health")
def health():
    return {
        "success": True,
        "message": "EventHive API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
