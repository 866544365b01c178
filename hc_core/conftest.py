# hc_core/conftest.py
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from hc_core.common.permissions import ROLE_ADMIN, ROLE_LABORATORY, ROLE_PATIENT, ROLE_PHARMACY
from hc_core.iam.services.membership import grant_membership
from hc_core.patients.models import Patient
from hc_core.payments.tests.fakes import FakeGateway
from hc_core.service_requests.models import RequestType, VisitType
from hc_core.service_requests.services import ServiceRequestService
from hc_core.tenants.models import Provider, ProviderType, Tenant


def scope_headers(tenant):
    """
    Scope header as the DRF test client expects it (HTTP_ prefix).
    """
    return {"HTTP_X_TENANT_ID": str(tenant.id)}


def _client_for(user):
    c = APIClient()
    c.force_authenticate(user=user)
    return c


@pytest.fixture(autouse=True)
def fake_gateway():
    FakeGateway.reset()
    yield FakeGateway
    FakeGateway.reset()


@pytest.fixture
def tenant(db):
    return Tenant.objects.create(code="test-tenant", name="Test Tenant")


@pytest.fixture
def other_tenant(db):
    return Tenant.objects.create(code="other-tenant", name="Other Tenant")


@pytest.fixture
def pharmacy(db, tenant):
    return Provider.objects.create(
        tenant_id=tenant.id,
        provider_type=ProviderType.PHARMACY,
        name="City Pharmacy",
        phone="9000000001",
        address="12 Market Road",
    )


@pytest.fixture
def other_pharmacy(db, tenant):
    return Provider.objects.create(
        tenant_id=tenant.id,
        provider_type=ProviderType.PHARMACY,
        name="Night Pharmacy",
    )


@pytest.fixture
def lab(db, tenant):
    return Provider.objects.create(
        tenant_id=tenant.id,
        provider_type=ProviderType.LABORATORY,
        name="Prime Diagnostics",
        phone="9000000002",
        address="4 Lab Street",
    )


@pytest.fixture
def patient_user(db, tenant):
    user = get_user_model().objects.create_user(username="patient", password="testpass")
    grant_membership(tenant_id=tenant.id, user_id=user.id, role=ROLE_PATIENT)
    return user


@pytest.fixture
def patient(db, tenant, patient_user):
    return Patient.objects.create(
        tenant_id=tenant.id,
        user_id=patient_user.id,
        first_name="Asha",
        last_name="Rao",
        phone="9999999999",
        email="asha@example.com",
        address="221B Baker Street",
    )


@pytest.fixture
def other_patient_user(db, tenant):
    user = get_user_model().objects.create_user(username="other-patient", password="testpass")
    grant_membership(tenant_id=tenant.id, user_id=user.id, role=ROLE_PATIENT)
    Patient.objects.create(tenant_id=tenant.id, user_id=user.id, first_name="Ravi")
    return user


@pytest.fixture
def admin_user(db, tenant):
    user = get_user_model().objects.create_user(username="admin", password="testpass")
    grant_membership(tenant_id=tenant.id, user_id=user.id, role=ROLE_ADMIN)
    return user


@pytest.fixture
def pharmacy_user(db, tenant, pharmacy):
    user = get_user_model().objects.create_user(username="pharmacist", password="testpass")
    grant_membership(tenant_id=tenant.id, user_id=user.id, role=ROLE_PHARMACY, provider_id=pharmacy.id)
    return user


@pytest.fixture
def lab_user(db, tenant, lab):
    user = get_user_model().objects.create_user(username="lab-tech", password="testpass")
    grant_membership(tenant_id=tenant.id, user_id=user.id, role=ROLE_LABORATORY, provider_id=lab.id)
    return user


@pytest.fixture
def api_client(patient, patient_user):
    return _client_for(patient_user)


@pytest.fixture
def admin_client(admin_user):
    return _client_for(admin_user)


@pytest.fixture
def pharmacy_client(pharmacy_user):
    return _client_for(pharmacy_user)


@pytest.fixture
def lab_client(lab_user):
    return _client_for(lab_user)


@pytest.fixture
def medicine_request(tenant, patient):
    return ServiceRequestService.create(
        tenant_id=tenant.id,
        patient=patient,
        request_type=RequestType.ORDER_MEDICINE,
        prescription_id="rx-001",
    )


@pytest.fixture
def quoted_medicine_request(tenant, medicine_request, pharmacy):
    """
    2 x 100.00 + 1 x 50.50 = 250.50 from one pharmacy.
    """
    return ServiceRequestService.respond(
        tenant_id=tenant.id,
        request_id=medicine_request.id,
        medicines=[
            {"pharmacy_id": pharmacy.id, "name": "Paracetamol", "dosage": "500mg", "quantity": 2, "price": Decimal("100.00")},
            {"pharmacy_id": pharmacy.id, "name": "Cetirizine", "dosage": "10mg", "quantity": 1, "price": Decimal("50.50")},
        ],
        tests=[],
        message="Available today",
    )


@pytest.fixture
def quoted_lab_request(tenant, patient, lab):
    req = ServiceRequestService.create(
        tenant_id=tenant.id,
        patient=patient,
        request_type=RequestType.BOOK_TEST_VISIT,
        visit_type=VisitType.LAB,
    )
    return ServiceRequestService.respond(
        tenant_id=tenant.id,
        request_id=req.id,
        medicines=[],
        tests=[
            {"lab_id": lab.id, "name": "CBC", "price": Decimal("400.00")},
            {"lab_id": lab.id, "name": "Lipid Profile", "price": Decimal("800.00")},
        ],
    )
