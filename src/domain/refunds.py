import math
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

FULL_REFUND_WINDOW_DAYS = 7
PARTIAL_REFUND_WINDOW_DAYS = 3

FULL_REFUND_RATE = Decimal("0.90")
PARTIAL_REFUND_RATE = Decimal("0.50")

_SECONDS_PER_DAY = 24 * 60 * 60
_CENTS = Decimal("0.01")


def days_until_event(event_date: datetime, now: datetime) -> int:
    """Whole days left before the event, rounded up."""
    return math.ceil((event_date - now).total_seconds() / _SECONDS_PER_DAY)


def compute_refund(
    total_amount: Decimal,
    event_date: datetime,
    now: datetime,
) -> Decimal:
    """
    Refund owed when a booking is cancelled at `now`.

    7 or more days before the event refunds 90%, 3 to 6 days
    refunds 50%, anything later refunds nothing.
    """
    days = days_until_event(event_date, now)

    if days >= FULL_REFUND_WINDOW_DAYS:
        rate = FULL_REFUND_RATE
    elif days >= PARTIAL_REFUND_WINDOW_DAYS:
        rate = PARTIAL_REFUND_RATE
    else:
        return Decimal("0.00")

    return (Decimal(total_amount) * rate).quantize(_CENTS, rounding=ROUND_HALF_UP)
