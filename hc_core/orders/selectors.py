# hc_core/orders/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet
from rest_framework.exceptions import NotFound

from hc_core.orders.models import FulfillmentOrder


def orders_for_tenant(
    *,
    tenant_id: UUID,
    patient_id: UUID | None = None,
    provider_id: UUID | None = None,
) -> QuerySet[FulfillmentOrder]:
    qs = (
        FulfillmentOrder.objects.filter(tenant_id=tenant_id)
        .select_related("provider", "request")
        .prefetch_related("items")
        .order_by("-created_at", "-id")
    )
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    if provider_id:
        qs = qs.filter(provider_id=provider_id)
    return qs


def get_order(*, tenant_id: UUID, order_id: UUID, patient_id: UUID | None = None) -> FulfillmentOrder:
    obj = orders_for_tenant(tenant_id=tenant_id, patient_id=patient_id).filter(id=order_id).first()
    if obj is None:
        raise NotFound("Order not found.")
    return obj
