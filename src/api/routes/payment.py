from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from src.api.dependencies import get_db, get_payment_gateway, get_requester
from src.api.schemas.converters import (
    pagination,
    payment_history_item,
    verified_booking_response,
)
from src.api.schemas.schemas import (
    CreateOrderRequest,
    CreateOrderResponse,
    PaymentFailureRequest,
    PaymentFailureResponse,
    PaymentHistoryResponse,
    VerifiedBookingResponse,
    VerifyPaymentRequest,
)
from src.application.payment_service import PaymentService
from src.domain.access import Requester
from src.infrastructure.gateways.payment_gateway import PaymentGateway


router = APIRouter(prefix="/payment", tags=["payment"])


@router.post("/create-order", response_model=CreateOrderResponse)
def create_order(
    request: CreateOrderRequest,
    requester: Requester = Depends(get_requester),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    db: Session = Depends(get_db),
):
    order = PaymentService(db, gateway).create_order(request.booking_id, requester)
    return CreateOrderResponse(**order)


@router.post("/verify", response_model=VerifiedBookingResponse)
def verify_payment(
    request: VerifyPaymentRequest,
    requester: Requester = Depends(get_requester),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    db: Session = Depends(get_db),
):
    booking = PaymentService(db, gateway).verify_payment(
        request.booking_id,
        requester,
        order_id=request.gateway_order_id,
        payment_id=request.gateway_payment_id,
        signature=request.gateway_signature,
    )
    return verified_booking_response(booking)


@router.post("/failure", response_model=PaymentFailureResponse)
def payment_failure(
    request: PaymentFailureRequest,
    requester: Requester = Depends(get_requester),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    db: Session = Depends(get_db),
):
    booking, released = PaymentService(db, gateway).handle_payment_failure(
        request.booking_id,
        requester,
        reason=request.error,
    )
    return PaymentFailureResponse(
        booking_id=booking.id,
        status=booking.booking_status,
        payment_status=booking.payment_status,
        seats_released=released,
    )


@router.get("/history", response_model=PaymentHistoryResponse)
def payment_history(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    requester: Requester = Depends(get_requester),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    db: Session = Depends(get_db),
):
    payments, total, revenue = PaymentService(db, gateway).payment_history(
        requester,
        page=page,
        limit=limit,
    )
    return PaymentHistoryResponse(
        payments=[payment_history_item(booking) for booking in payments],
        pagination=pagination(page, limit, total),
        total_revenue=float(revenue),
    )
