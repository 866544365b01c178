# hc_core/notifications/tests/test_provider_notifications.py
import pytest

from hc_core.conftest import scope_headers
from hc_core.notifications.models import NotificationKind, ProviderNotification
from hc_core.patients.models import Patient
from hc_core.payments.services import PaymentService
from hc_core.service_requests.services import ServiceRequestService

pytestmark = pytest.mark.django_db


def _pay(tenant, req, gateway):
    patient = Patient.objects.get(id=req.patient_id)
    order = PaymentService.create_payment_order(tenant_id=tenant.id, request_id=req.id, patient=patient)
    payment_id, signature = gateway.pay(order["orderId"])
    PaymentService.confirm_payment(
        tenant_id=tenant.id,
        request_id=req.id,
        patient=patient,
        payment_id=payment_id,
        order_id=order["orderId"],
        signature=signature,
    )


def test_paid_request_notifies_quoted_providers(tenant, quoted_medicine_request, pharmacy, lab, fake_gateway):
    _pay(tenant, quoted_medicine_request, fake_gateway)

    notes = list(ProviderNotification.objects.filter(request_id=quoted_medicine_request.id))
    assert [(n.provider_id, n.kind) for n in notes] == [(pharmacy.id, NotificationKind.REQUEST_PAID)]
    assert notes[0].title == "New paid request"


def test_cancellation_notifies_each_matched_provider(tenant, quoted_medicine_request, pharmacy):
    ServiceRequestService.cancel(tenant_id=tenant.id, request_id=quoted_medicine_request.id, reason="Changed my mind")

    note = ProviderNotification.objects.get(provider=pharmacy, kind=NotificationKind.REQUEST_CANCELLED)
    assert note.title == "Request cancelled by patient"
    assert note.meta["reason"] == "Changed my mind"


def test_unquoted_cancellation_notifies_nobody(tenant, medicine_request):
    ServiceRequestService.cancel(tenant_id=tenant.id, request_id=medicine_request.id)
    assert not ProviderNotification.objects.exists()


def test_provider_lists_and_reads_notifications(pharmacy_client, lab_client, tenant, quoted_medicine_request, fake_gateway):
    _pay(tenant, quoted_medicine_request, fake_gateway)

    r = pharmacy_client.get("/api/v1/provider/notifications/", {"unread": "true"}, **scope_headers(tenant))
    assert r.status_code == 200
    rows = r.json()["data"]
    assert len(rows) == 1
    assert rows[0]["requestId"] == str(quoted_medicine_request.id)

    r = lab_client.post(f"/api/v1/provider/notifications/{rows[0]['id']}/read/", {}, format="json", **scope_headers(tenant))
    assert r.status_code == 404

    r = pharmacy_client.post(f"/api/v1/provider/notifications/{rows[0]['id']}/read/", {}, format="json", **scope_headers(tenant))
    assert r.status_code == 200
    assert r.json()["data"]["isRead"] is True

    r = pharmacy_client.get("/api/v1/provider/notifications/", {"unread": "1"}, **scope_headers(tenant))
    assert r.json()["data"] == []
