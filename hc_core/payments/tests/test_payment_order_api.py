# hc_core/payments/tests/test_payment_order_api.py
import pytest

from hc_core.conftest import scope_headers
from hc_core.payments.models import IntentStatus, PaymentIntent

pytestmark = pytest.mark.django_db


def _url(req):
    return f"/api/v1/requests/{req.id}/payment-order/"


def test_payment_order_uses_server_total(api_client, tenant, quoted_medicine_request, fake_gateway):
    r = api_client.post(_url(quoted_medicine_request), {}, format="json", **scope_headers(tenant))
    assert r.status_code == 201, r.content
    data = r.json()["data"]
    assert data["orderId"] == "order_test_1"
    assert data["amount"] == 250.5
    assert data["amountMinor"] == 25050
    assert data["currency"] == "INR"
    assert data["gatewayKeyId"] == "rzp_test_key"
    assert data["requestId"] == str(quoted_medicine_request.id)
    assert data["description"] == "Medicine Order Payment"

    assert fake_gateway.created_orders[0]["amount"] == 25050
    intent = PaymentIntent.objects.get(gateway_order_id="order_test_1")
    assert intent.status == IntentStatus.CREATED
    assert intent.amount_minor == 25050


def test_payment_order_is_idempotent_per_key(api_client, tenant, quoted_medicine_request, fake_gateway):
    headers = {**scope_headers(tenant), "HTTP_IDEMPOTENCY_KEY": "tap-1"}
    r1 = api_client.post(_url(quoted_medicine_request), {}, format="json", **headers)
    r2 = api_client.post(_url(quoted_medicine_request), {}, format="json", **headers)

    assert r1.status_code == 201
    assert r2.status_code == 201
    assert r1.json() == r2.json()
    assert PaymentIntent.objects.filter(request=quoted_medicine_request).count() == 1


def test_payment_order_rejected_before_quote(api_client, tenant, medicine_request):
    r = api_client.post(_url(medicine_request), {}, format="json", **scope_headers(tenant))
    assert r.status_code == 400
    body = r.json()
    assert body["error"]["code"] == "order_creation_error"
    assert body["message"] == "Request is not awaiting payment (status 'pending')."


def test_payment_order_surfaces_gateway_rejection(api_client, tenant, quoted_medicine_request, fake_gateway):
    fake_gateway.reject_orders_with = "Amount exceeds maximum amount allowed."
    r = api_client.post(_url(quoted_medicine_request), {}, format="json", **scope_headers(tenant))
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "order_creation_error"
    assert "Amount exceeds maximum amount allowed." in r.json()["message"]
    assert not PaymentIntent.objects.exists()


def test_admin_cannot_open_payment_order(admin_client, tenant, quoted_medicine_request):
    r = admin_client.post(_url(quoted_medicine_request), {}, format="json", **scope_headers(tenant))
    assert r.status_code == 403
