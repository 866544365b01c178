# hc_core/client/tests/test_api.py
import asyncio

import httpx
import pytest

from hc_core.client.errors import (
    CancellationRejectedError,
    NetworkError,
    OrderCreationError,
    PaymentVerificationError,
    ValidationError,
)
from hc_core.client.tests.conftest import TENANT_ID, fail, ok, raw_request


def test_list_requests_unwraps_envelope_and_sends_scope(server):
    server.requests = [raw_request("r1")]

    data = asyncio.run(server.api().list_requests())

    assert [r["id"] for r in data] == ["r1"]
    headers = server.headers[0]
    assert headers["x-tenant-id"] == TENANT_ID
    assert headers["authorization"] == "Bearer access-token"


def test_rejected_order_creation_keeps_server_message(server):
    server.on("POST", "/requests/r1/payment-order/", fail("Request is not awaiting payment (status 'pending').", code="order_creation_failed", status=422))

    with pytest.raises(OrderCreationError) as exc:
        asyncio.run(server.api().create_payment_order("r1"))

    assert exc.value.message == "Request is not awaiting payment (status 'pending')."
    assert exc.value.status_code == 422
    assert exc.value.code == "order_creation_failed"


def test_payment_order_forwards_idempotency_key(server):
    server.on("POST", "/requests/r1/payment-order/", ok({"orderId": "o1"}, status=201))

    asyncio.run(server.api().create_payment_order("r1", idempotency_key="abc123"))

    assert server.headers[0]["idempotency-key"] == "abc123"


def test_success_false_with_2xx_still_raises(server):
    server.on("POST", "/requests/r1/payment-confirm/", httpx.Response(200, json={"success": False, "message": "Invalid payment signature."}))

    with pytest.raises(PaymentVerificationError, match="Invalid payment signature."):
        asyncio.run(server.api().confirm_payment("r1", payment_id="p1", order_id="o1", signature="bad"))

    assert server.calls[0][2] == {"paymentId": "p1", "orderId": "o1", "signature": "bad", "paymentMethod": "razorpay"}


def test_transport_failure_is_network_error(server):
    def boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    server.on("GET", "/requests/", boom)

    with pytest.raises(NetworkError):
        asyncio.run(server.api().list_requests())


def test_non_json_body_falls_back_to_default_message(server):
    server.on("POST", "/requests/r1/cancel/", httpx.Response(502, text="<html>Bad gateway</html>"))

    with pytest.raises(CancellationRejectedError) as exc:
        asyncio.run(server.api().cancel_request("r1"))
    assert exc.value.message == CancellationRejectedError.default_message
    assert exc.value.status_code == 502


def test_cancel_conflict_and_validation_errors(server):
    server.on("POST", "/requests/r1/cancel/", fail("Request cannot be cancelled after fulfillment has started.", code="cancellation_rejected", status=409))
    server.on("POST", "/requests/r2/cancel/", fail("Invalid input.", code="validation_error", details={"reason": ["too long"]}))

    with pytest.raises(CancellationRejectedError, match="fulfillment has started"):
        asyncio.run(server.api().cancel_request("r1", reason="x"))

    with pytest.raises(ValidationError) as exc:
        asyncio.run(server.api().cancel_request("r2", reason="y" * 600))
    assert exc.value.details == {"reason": ["too long"]}
