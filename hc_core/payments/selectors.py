# hc_core/payments/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet

from hc_core.payments.models import Transaction


def transactions_for_tenant(*, tenant_id: UUID, patient_id: UUID | None = None) -> QuerySet[Transaction]:
    qs = Transaction.objects.filter(tenant_id=tenant_id).select_related("request").order_by("-created_at", "-id")
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    return qs
