# src/infrastructure/gateways/payment_gateway.py

from abc import ABC, abstractmethod
import logging
from uuid import uuid4

import razorpay
from razorpay.errors import BadRequestError, ServerError, SignatureVerificationError
from razorpay.errors import GatewayError as RazorpayGatewayError
import requests

from src.domain.exceptions import GatewayError, InvalidSignatureError
from src.infrastructure.config import Settings


logger = logging.getLogger(__name__)

_RAZORPAY_ERRORS = (
    BadRequestError,
    RazorpayGatewayError,
    ServerError,
    requests.RequestException,
)


class PaymentGateway(ABC):
    """
    What the payment service needs from a payment provider.

    `key_secret` is the shared secret the provider signs
    `order_id|payment_id` with.
    """

    def __init__(self, key_id: str, key_secret: str):
        self.key_id = key_id
        self.key_secret = key_secret
        # Signature checks run locally in the SDK, no request is made.
        self.client = razorpay.Client(auth=(key_id, key_secret))

    @abstractmethod
    def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: dict,
    ) -> dict:
        """Create an order for `amount` minor units. Returns id, amount, currency."""

    @abstractmethod
    def fetch_payment(self, payment_id: str) -> dict:
        """Authoritative payment record: id, method, acquirer_data."""

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> None:
        """Raise InvalidSignatureError unless the checkout signature is genuine."""
        try:
            verified = self.client.utility.verify_payment_signature(
                {
                    "razorpay_order_id": order_id,
                    "razorpay_payment_id": payment_id,
                    "razorpay_signature": signature,
                }
            )
        except SignatureVerificationError as exc:
            raise InvalidSignatureError("Invalid payment signature") from exc
        if verified is False:
            raise InvalidSignatureError("Invalid payment signature")


class RazorpayGateway(PaymentGateway):

    def __init__(self, key_id: str, key_secret: str, timeout: float):
        super().__init__(key_id, key_secret)
        self.timeout = timeout

    def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: dict,
    ) -> dict:
        try:
            return self.client.order.create(
                {
                    "amount": amount,
                    "currency": currency,
                    "receipt": receipt,
                    "notes": notes,
                },
                timeout=self.timeout,
            )
        except _RAZORPAY_ERRORS as exc:
            logger.warning("Razorpay order creation failed. receipt=%s error=%s", receipt, exc)
            raise GatewayError("Failed to create payment order") from exc

    def fetch_payment(self, payment_id: str) -> dict:
        try:
            return self.client.payment.fetch(payment_id, timeout=self.timeout)
        except _RAZORPAY_ERRORS as exc:
            logger.warning("Razorpay payment fetch failed. payment_id=%s error=%s", payment_id, exc)
            raise GatewayError("Failed to fetch payment details") from exc


class StubGateway(PaymentGateway):
    """
    In-process gateway for local runs, chosen explicitly with
    PAYMENT_GATEWAY=stub. Orders and payments live in memory.
    """

    def __init__(self, key_id: str = "rzp_test_stub", key_secret: str = "stub_secret"):
        super().__init__(key_id, key_secret)
        self.orders: dict[str, dict] = {}

    def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: dict,
    ) -> dict:
        order = {
            "id": f"order_{uuid4().hex[:14]}",
            "entity": "order",
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "notes": notes,
            "status": "created",
        }
        self.orders[order["id"]] = order
        return order

    def fetch_payment(self, payment_id: str) -> dict:
        return {
            "id": payment_id,
            "entity": "payment",
            "method": "upi",
            "status": "captured",
            "acquirer_data": {"rrn": f"rrn_{payment_id}"},
        }


def build_payment_gateway(settings: Settings) -> PaymentGateway:
    if settings.payment_gateway == "stub":
        logger.warning("Using in-memory stub payment gateway.")
        return StubGateway(
            key_id=settings.razorpay_key_id or "rzp_test_stub",
            key_secret=settings.razorpay_key_secret or "stub_secret",
        )

    if settings.payment_gateway != "razorpay":
        raise ValueError(f"Unknown PAYMENT_GATEWAY '{settings.payment_gateway}'")

    if not settings.razorpay_key_id or not settings.razorpay_key_secret:
        raise RuntimeError(
            "Razorpay keys not configured. Set RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET."
        )
    return RazorpayGateway(
        key_id=settings.razorpay_key_id,
        key_secret=settings.razorpay_key_secret,
        timeout=settings.payment_gateway_timeout,
    )
