# src/infrastructure/config.py

from dataclasses import dataclass
from functools import lru_cache
import os

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    payment_gateway: str
    razorpay_key_id: str | None
    razorpay_key_secret: str | None
    payment_gateway_timeout: float
    payment_currency: str
    ticket_signing_secret: str
    log_level: str
    db_connect_max_retries: int
    db_connect_retry_delay: float


@lru_cache()
def get_settings() -> Settings:
    return Settings(
        # "razorpay" talks to the real gateway, "stub" is for local demos.
        payment_gateway=os.getenv("PAYMENT_GATEWAY", "razorpay").lower(),
        razorpay_key_id=os.getenv("RAZORPAY_KEY_ID"),
        razorpay_key_secret=os.getenv("RAZORPAY_KEY_SECRET"),
        payment_gateway_timeout=float(os.getenv("PAYMENT_GATEWAY_TIMEOUT", "10")),
        payment_currency=os.getenv("PAYMENT_CURRENCY", "INR"),
        ticket_signing_secret=os.getenv(
            "TICKET_SIGNING_SECRET",
            os.getenv("JWT_SECRET", "change-me-ticket-secret"),
        ),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        db_connect_max_retries=int(os.getenv("DB_CONNECT_MAX_RETRIES", "30")),
        db_connect_retry_delay=float(os.getenv("DB_CONNECT_RETRY_DELAY", "1.5")),
    )
