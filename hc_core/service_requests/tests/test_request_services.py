# hc_core/service_requests/tests/test_request_services.py
from decimal import Decimal

import pytest
from rest_framework.exceptions import ValidationError

from hc_core.service_requests.models import QuoteLine, RequestStatus
from hc_core.service_requests.rules import is_payable, quote_total
from hc_core.service_requests.services import ServiceRequestService


def test_quote_total_prices_medicines_per_unit_and_tests_once():
    total = quote_total(
        medicines=[{"price": "100.00", "quantity": 2}, {"price": Decimal("50.50"), "quantity": 1}],
        tests=[{"price": "400"}],
    )
    assert total == Decimal("650.50")


def test_is_payable():
    assert is_payable(status="accepted", payment_confirmed=False, total_amount=Decimal("1"), has_lines=True)
    assert not is_payable(status="pending", payment_confirmed=False, total_amount=Decimal("1"), has_lines=True)
    assert not is_payable(status="accepted", payment_confirmed=True, total_amount=Decimal("1"), has_lines=True)
    assert not is_payable(status="accepted", payment_confirmed=False, total_amount=Decimal("0"), has_lines=True)
    assert not is_payable(status="accepted", payment_confirmed=False, total_amount=None, has_lines=True)
    assert not is_payable(status="accepted", payment_confirmed=False, total_amount=Decimal("1"), has_lines=False)


@pytest.mark.django_db
def test_requote_replaces_lines(tenant, quoted_medicine_request, pharmacy):
    req = ServiceRequestService.respond(
        tenant_id=tenant.id,
        request_id=quoted_medicine_request.id,
        medicines=[{"pharmacy_id": pharmacy.id, "name": "Ibuprofen", "quantity": 3, "price": "20.00"}],
        tests=[],
    )
    assert req.total_amount == Decimal("60.00")
    assert list(QuoteLine.objects.filter(request=req).values_list("name", flat=True)) == ["Ibuprofen"]


@pytest.mark.django_db
def test_medicine_request_cannot_carry_tests(tenant, medicine_request, lab):
    with pytest.raises(ValidationError):
        ServiceRequestService.respond(
            tenant_id=tenant.id,
            request_id=medicine_request.id,
            medicines=[],
            tests=[{"lab_id": lab.id, "name": "CBC", "price": "100"}],
        )


@pytest.mark.django_db
def test_zero_total_quote_rejected(tenant, medicine_request, pharmacy):
    with pytest.raises(ValidationError):
        ServiceRequestService.respond(
            tenant_id=tenant.id,
            request_id=medicine_request.id,
            medicines=[{"pharmacy_id": pharmacy.id, "name": "Free sample", "quantity": 1, "price": "0"}],
            tests=[],
        )
    medicine_request.refresh_from_db()
    assert medicine_request.status == RequestStatus.PENDING


@pytest.mark.django_db
def test_cancelled_request_cannot_be_quoted(tenant, medicine_request, pharmacy):
    ServiceRequestService.cancel(tenant_id=tenant.id, request_id=medicine_request.id)
    with pytest.raises(ValidationError):
        ServiceRequestService.respond(
            tenant_id=tenant.id,
            request_id=medicine_request.id,
            medicines=[{"pharmacy_id": pharmacy.id, "name": "X", "quantity": 1, "price": "5"}],
            tests=[],
        )
