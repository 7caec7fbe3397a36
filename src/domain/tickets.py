"""
Ticket verification tokens.

A token is base64-encoded JSON carrying the booking, event and user
ids plus an HMAC over those ids. Check-in staff can prove a ticket
is genuine by re-deriving the HMAC from the ids alone.
"""

import base64
import binascii
import hashlib
import hmac
import json
from dataclasses import dataclass

from src.domain.exceptions import InvalidSignatureError


@dataclass(frozen=True)
class TicketClaims:
    booking_id: str
    event_id: str
    user_id: str
    tickets_booked: int


def ticket_verification_code(
    secret: str,
    booking_id: str,
    event_id: str,
    user_id: str,
) -> str:
    message = f"{booking_id}|{event_id}|{user_id}"
    return hmac.new(
        secret.encode("utf-8"),
        message.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def issue_ticket_token(secret: str, claims: TicketClaims) -> str:
    payload = {
        "bookingId": claims.booking_id,
        "eventId": claims.event_id,
        "userId": claims.user_id,
        "ticketsBooked": claims.tickets_booked,
        "verification": ticket_verification_code(
            secret,
            claims.booking_id,
            claims.event_id,
            claims.user_id,
        ),
    }
    encoded = json.dumps(payload).encode("utf-8")
    return base64.b64encode(encoded).decode("ascii")


def verify_ticket_token(secret: str, token: str) -> TicketClaims:
    """
    Decode a token and check its HMAC.

    Raises InvalidSignatureError for malformed or forged tokens.
    """
    try:
        payload = json.loads(base64.b64decode(token, validate=True))
        claims = TicketClaims(
            booking_id=str(payload["bookingId"]),
            event_id=str(payload["eventId"]),
            user_id=str(payload["userId"]),
            tickets_booked=int(payload["ticketsBooked"]),
        )
        supplied = str(payload["verification"])
    except (binascii.Error, ValueError, KeyError, TypeError) as exc:
        raise InvalidSignatureError("Malformed ticket token") from exc

    expected = ticket_verification_code(
        secret,
        claims.booking_id,
        claims.event_id,
        claims.user_id,
    )
    if not hmac.compare_digest(expected, supplied):
        raise InvalidSignatureError("Ticket verification failed")

    return claims
