# tests/unit/test_payment_gateway.py

from dataclasses import replace
import hashlib
import hmac
from types import SimpleNamespace

import pytest
import requests
from razorpay.errors import BadRequestError, ServerError

from src.domain.exceptions import GatewayError, InvalidSignatureError
from src.infrastructure.config import get_settings
from src.infrastructure.gateways.payment_gateway import (
    RazorpayGateway,
    StubGateway,
    build_payment_gateway,
)


def _settings(**overrides):
    return replace(get_settings(), **overrides)


# ---------------------
# GATEWAY SELECTION
# ---------------------

def test_stub_selected_explicitly():
    gateway = build_payment_gateway(_settings(payment_gateway="stub"))
    assert isinstance(gateway, StubGateway)


def test_razorpay_selected_with_keys():
    gateway = build_payment_gateway(
        _settings(
            payment_gateway="razorpay",
            razorpay_key_id="rzp_test_abc",
            razorpay_key_secret="secret",
            payment_gateway_timeout=4.0,
        )
    )

    assert isinstance(gateway, RazorpayGateway)
    assert gateway.key_id == "rzp_test_abc"
    assert gateway.timeout == 4.0


def test_razorpay_without_keys_refuses_to_start():
    with pytest.raises(RuntimeError):
        build_payment_gateway(
            _settings(
                payment_gateway="razorpay",
                razorpay_key_id=None,
                razorpay_key_secret=None,
            )
        )


def test_unknown_gateway_mode():
    with pytest.raises(ValueError):
        build_payment_gateway(_settings(payment_gateway="paypal"))


# ---------------------
# RAZORPAY ERROR MAPPING
# ---------------------

class _FailingResource:
    def __init__(self, exc):
        self.exc = exc
        self.calls = []

    def create(self, data, **options):
        self.calls.append((data, options))
        raise self.exc

    def fetch(self, payment_id, **options):
        self.calls.append((payment_id, options))
        raise self.exc


@pytest.fixture
def razorpay_gateway():
    return RazorpayGateway(key_id="rzp_test_abc", key_secret="secret", timeout=3.0)


@pytest.mark.parametrize(
    "exc",
    [
        BadRequestError("amount too small"),
        ServerError("upstream down"),
        requests.Timeout("timed out"),
    ],
)
def test_order_errors_become_gateway_error(razorpay_gateway, exc):
    resource = _FailingResource(exc)
    razorpay_gateway.client = SimpleNamespace(order=resource)

    with pytest.raises(GatewayError):
        razorpay_gateway.create_order(50000, "INR", "booking_1", {})

    data, options = resource.calls[0]
    assert data["amount"] == 50000
    assert options["timeout"] == 3.0


def test_fetch_errors_become_gateway_error(razorpay_gateway):
    resource = _FailingResource(requests.ConnectionError("refused"))
    razorpay_gateway.client = SimpleNamespace(payment=resource)

    with pytest.raises(GatewayError):
        razorpay_gateway.fetch_payment("pay_123")

    assert resource.calls == [("pay_123", {"timeout": 3.0})]


# ---------------------
# STUB GATEWAY AND SIGNATURES
# ---------------------

def _checkout_signature(secret, order_id, payment_id):
    # What Razorpay Checkout hands back to the browser.
    return hmac.new(
        secret.encode(),
        f"{order_id}|{payment_id}".encode(),
        hashlib.sha256,
    ).hexdigest()


def test_stub_order():
    gateway = StubGateway()
    order = gateway.create_order(1000, "INR", "booking_x", {"bookingId": "x"})

    assert order["id"].startswith("order_")
    assert order["amount"] == 1000
    assert gateway.orders[order["id"]] is order


@pytest.mark.parametrize("gateway_cls", [StubGateway, RazorpayGateway])
def test_genuine_signature_accepted(gateway_cls):
    kwargs = {"timeout": 1.0} if gateway_cls is RazorpayGateway else {}
    gateway = gateway_cls(key_id="rzp_test_abc", key_secret="secret", **kwargs)
    signature = _checkout_signature("secret", "order_123", "pay_456")

    gateway.verify_signature("order_123", "pay_456", signature)


@pytest.mark.parametrize(
    "order_id, payment_id, secret",
    [
        ("order_123", "pay_999", "secret"),
        ("order_999", "pay_456", "secret"),
        ("order_123", "pay_456", "other-secret"),
    ],
)
def test_mismatched_signature_rejected(order_id, payment_id, secret):
    gateway = StubGateway(key_id="rzp_test_abc", key_secret="secret")
    signature = _checkout_signature(secret, "order_123", "pay_456")

    with pytest.raises(InvalidSignatureError):
        gateway.verify_signature(order_id, payment_id, signature)


def test_garbage_signature_rejected():
    gateway = StubGateway(key_id="rzp_test_abc", key_secret="secret")

    with pytest.raises(InvalidSignatureError):
        gateway.verify_signature("order_123", "pay_456", "not-a-signature")


def test_stub_payment_record():
    payment = StubGateway().fetch_payment("pay_1")
    assert payment["method"] == "upi"
    assert payment["acquirer_data"]["rrn"] == "rrn_pay_1"
