# hc_core/payments/tests/test_razorpay_gateway.py
import json

import httpx
import pytest

from hc_core.common.api.exceptions import GatewayUnavailable
from hc_core.payments.gateway import GatewayError, RazorpayGateway
from hc_core.payments.tests.fakes import sign


def _gateway(handler, **kwargs):
    return RazorpayGateway(
        key_id="rzp_live_key",
        key_secret="s3cret",
        base_url="https://gateway.test/v1",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def test_create_order_posts_minor_units_with_basic_auth():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "order_abc", "amount": 25050, "currency": "INR"})

    order = _gateway(handler).create_order(amount_minor=25050, currency="INR", receipt="req_1", notes={"k": "v"})

    assert order.order_id == "order_abc"
    assert order.amount_minor == 25050
    assert seen["url"] == "https://gateway.test/v1/orders"
    assert seen["auth"].startswith("Basic ")
    assert seen["body"] == {"amount": 25050, "currency": "INR", "receipt": "req_1", "notes": {"k": "v"}}


def test_fetch_payment_parses_status():
    def handler(request):
        assert request.url.path == "/v1/payments/pay_1"
        return httpx.Response(
            200,
            json={"id": "pay_1", "order_id": "order_abc", "status": "captured", "amount": 25050, "currency": "INR", "method": "card"},
        )

    payment = _gateway(handler).fetch_payment("pay_1")
    assert payment.is_successful
    assert payment.order_id == "order_abc"
    assert payment.method == "card"


def test_gateway_error_message_is_passed_through():
    def handler(request):
        return httpx.Response(400, json={"error": {"code": "BAD_REQUEST_ERROR", "description": "Order amount less than minimum."}})

    with pytest.raises(GatewayError, match="Order amount less than minimum."):
        _gateway(handler).create_order(amount_minor=1, currency="INR", receipt="r", notes={})


def test_transport_failure_is_unavailable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GatewayUnavailable):
        _gateway(handler).fetch_payment("pay_1")


def test_missing_credentials_is_unavailable():
    gw = RazorpayGateway(key_id="", key_secret="", transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    with pytest.raises(GatewayUnavailable):
        gw.verify_signature(order_id="o", payment_id="p", signature="x")


def test_signature_verification():
    gw = _gateway(lambda r: httpx.Response(200))
    good = sign("order_abc", "pay_1", secret="s3cret")
    assert gw.verify_signature(order_id="order_abc", payment_id="pay_1", signature=good)
    assert not gw.verify_signature(order_id="order_abc", payment_id="pay_2", signature=good)
    assert not gw.verify_signature(order_id="order_abc", payment_id="pay_1", signature="")
