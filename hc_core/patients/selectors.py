# hc_core/patients/selectors.py
from __future__ import annotations

from uuid import UUID

from rest_framework.exceptions import NotFound

from hc_core.patients.models import Patient


def patient_for_user(*, tenant_id: UUID, user_id: int) -> Patient:
    """
    Resolve the caller's patient profile; 404 when the user has none in this tenant.
    """
    patient = Patient.objects.filter(tenant_id=tenant_id, user_id=user_id).first()
    if patient is None:
        raise NotFound("Patient profile not found in this tenant.")
    return patient
