from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.domain.booking_rules import MAX_TICKETS_PER_BOOKING, MIN_TICKETS_PER_BOOKING
from src.domain.state_machine import BookingStatus, PaymentStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Pagination(CamelModel):
    page: int
    pages: int
    total: int
    limit: int


def _ensure_future(value: datetime | None) -> datetime | None:
    if value is None:
        return value
    aware = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if aware <= datetime.now(timezone.utc):
        raise ValueError("Event date must be in the future")
    return value


# -----------------------------
# Events
# -----------------------------
class EventCreate(CamelModel):
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(default="", max_length=2000)
    category: str | None = None
    date_time: datetime
    location: str = Field(min_length=1)
    price: float = Field(ge=0)
    seats_total: int = Field(ge=1)
    featured: bool = False

    @field_validator("date_time")
    @classmethod
    def date_in_future(cls, value):
        return _ensure_future(value)


class EventUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=2000)
    category: str | None = None
    date_time: datetime | None = None
    location: str | None = None
    price: float | None = Field(default=None, ge=0)
    seats_total: int | None = Field(default=None, ge=1)
    featured: bool | None = None

    @field_validator("date_time")
    @classmethod
    def date_in_future(cls, value):
        return _ensure_future(value)


class EventResponse(CamelModel):
    id: str
    title: str
    description: str
    category: str | None = None
    date_time: datetime
    location: str
    price: float
    seats_total: int
    seats_booked: int
    seats_available: int
    is_active: bool
    featured: bool
    is_sold_out: bool


class EventListResponse(CamelModel):
    events: list[EventResponse]
    pagination: Pagination


class EventCollectionResponse(CamelModel):
    events: list[EventResponse]


class EventSummary(CamelModel):
    id: str
    title: str
    date_time: datetime
    location: str
    price: float


# -----------------------------
# Bookings
# -----------------------------
class Attendee(CamelModel):
    name: str = Field(min_length=1)
    email: str = ""
    phone: str = ""
    age: int | None = Field(default=None, ge=0)


class BookingCreateRequest(CamelModel):
    event_id: str
    tickets_booked: int = Field(ge=MIN_TICKETS_PER_BOOKING, le=MAX_TICKETS_PER_BOOKING)
    attendee_details: list[Attendee] | None = None
    special_requests: str | None = Field(default=None, max_length=500)


class BookingStatusUpdateRequest(CamelModel):
    booking_status: BookingStatus | None = None
    payment_status: PaymentStatus | None = None


class PaymentDetails(CamelModel):
    order_id: str | None = None
    payment_id: str | None = None
    signature: str | None = None
    method: str | None = None
    transaction_id: str | None = None


class RefundDetails(CamelModel):
    is_refunded: bool
    refund_amount: float | None = None
    refund_date: datetime | None = None
    refund_reason: str | None = None


class CheckInDetails(CamelModel):
    is_checked_in: bool
    check_in_time: datetime | None = None
    check_in_by: str | None = None


class BookingResponse(CamelModel):
    id: str
    booking_code: str
    user_id: str
    event_id: str
    event: EventSummary | None = None
    tickets_booked: int
    total_amount: float
    booking_date: datetime
    payment_status: PaymentStatus
    booking_status: BookingStatus
    payment_details: PaymentDetails
    attendee_details: list[Attendee]
    special_requests: str | None = None
    qr_code: str | None = None
    refund: RefundDetails
    check_in: CheckInDetails
    is_active: bool


class BookingListResponse(CamelModel):
    bookings: list[BookingResponse]
    pagination: Pagination


class CancelBookingResponse(CamelModel):
    refund_amount: float
    booking: BookingResponse


class CheckInRequest(CamelModel):
    qr_code: str


# -----------------------------
# Payments
# -----------------------------
class CreateOrderRequest(CamelModel):
    booking_id: str


class CreateOrderResponse(CamelModel):
    order_id: str
    amount: int
    currency: str
    booking_id: str
    event_title: str
    key_id: str


class VerifyPaymentRequest(CamelModel):
    gateway_order_id: str
    gateway_payment_id: str
    gateway_signature: str
    booking_id: str


class VerifiedBookingResponse(CamelModel):
    id: str
    booking_code: str
    event_title: str
    tickets_booked: int
    total_amount: float
    payment_status: PaymentStatus
    booking_status: BookingStatus
    qr_code: str


class PaymentFailureRequest(CamelModel):
    booking_id: str
    error: str | None = None


class PaymentFailureResponse(CamelModel):
    booking_id: str
    status: BookingStatus
    payment_status: PaymentStatus
    seats_released: bool


class PaymentHistoryItem(CamelModel):
    booking_id: str
    event_id: str
    user_id: str
    total_amount: float
    payment_details: PaymentDetails
    booking_date: datetime


class PaymentHistoryResponse(CamelModel):
    payments: list[PaymentHistoryItem]
    pagination: Pagination
    total_revenue: float
