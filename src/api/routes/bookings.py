from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from src.api.dependencies import get_db, get_requester
from src.api.schemas.converters import booking_response, pagination
from src.api.schemas.schemas import (
    BookingCreateRequest,
    BookingListResponse,
    BookingResponse,
    BookingStatusUpdateRequest,
    CancelBookingResponse,
    CheckInRequest,
)
from src.application.booking_service import BookingService
from src.domain.access import Requester
from src.domain.state_machine import BookingStatus, PaymentStatus


router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    request: BookingCreateRequest,
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    booking = BookingService(db).create_booking(
        user_id=requester.user_id,
        event_id=request.event_id,
        tickets_booked=request.tickets_booked,
        attendee_details=(
            [attendee.model_dump() for attendee in request.attendee_details]
            if request.attendee_details
            else None
        ),
        special_requests=request.special_requests,
    )
    return booking_response(booking)


@router.get("", response_model=BookingListResponse)
def list_bookings(
    event_id: str | None = Query(default=None, alias="eventId"),
    booking_status: BookingStatus | None = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    bookings, total = BookingService(db).list_bookings(
        requester,
        event_id=event_id,
        booking_status=booking_status,
        page=page,
        limit=limit,
    )
    return BookingListResponse(
        bookings=[booking_response(booking) for booking in bookings],
        pagination=pagination(page, limit, total),
    )


@router.get("/user/{user_id}", response_model=BookingListResponse)
def list_user_bookings(
    user_id: str,
    booking_status: BookingStatus | None = Query(default=None, alias="status"),
    payment_status: PaymentStatus | None = Query(default=None, alias="paymentStatus"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    bookings, total = BookingService(db).list_user_bookings(
        user_id,
        requester,
        booking_status=booking_status,
        payment_status=payment_status,
        page=page,
        limit=limit,
    )
    return BookingListResponse(
        bookings=[booking_response(booking) for booking in bookings],
        pagination=pagination(page, limit, total),
    )


@router.post("/check-in", response_model=BookingResponse)
def check_in(
    request: CheckInRequest,
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    booking = BookingService(db).check_in(request.qr_code, requester)
    return booking_response(booking)


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: str,
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    return booking_response(BookingService(db).get_booking(booking_id, requester))


@router.put("/{booking_id}/status", response_model=BookingResponse)
def update_booking_status(
    booking_id: str,
    request: BookingStatusUpdateRequest,
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    booking = BookingService(db).update_booking_status(
        booking_id,
        requester,
        booking_status=request.booking_status,
        payment_status=request.payment_status,
    )
    return booking_response(booking)


@router.delete("/{booking_id}", response_model=CancelBookingResponse)
def cancel_booking(
    booking_id: str,
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    refund_amount, booking = BookingService(db).cancel_booking(booking_id, requester)
    return CancelBookingResponse(
        refund_amount=float(refund_amount),
        booking=booking_response(booking),
    )
