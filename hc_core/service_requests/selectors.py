# hc_core/service_requests/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import Prefetch, QuerySet
from rest_framework.exceptions import NotFound

from hc_core.orders.models import FulfillmentOrder
from hc_core.service_requests.models import QuoteLine, ServiceRequest


def _with_relations(qs: QuerySet[ServiceRequest]) -> QuerySet[ServiceRequest]:
    return qs.prefetch_related(
        Prefetch("quote_lines", queryset=QuoteLine.objects.select_related("provider").order_by("position")),
        Prefetch(
            "orders",
            queryset=FulfillmentOrder.objects.select_related("provider")
            .prefetch_related("items")
            .order_by("created_at"),
        ),
    )


def requests_for_tenant(*, tenant_id: UUID, patient_id: UUID | None = None) -> QuerySet[ServiceRequest]:
    """
    Newest first; id breaks created_at ties so paging is stable.
    """
    qs = ServiceRequest.objects.filter(tenant_id=tenant_id)
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    return _with_relations(qs).order_by("-created_at", "-id")


def get_request(*, tenant_id: UUID, request_id: UUID, patient_id: UUID | None = None) -> ServiceRequest:
    qs = ServiceRequest.objects.filter(tenant_id=tenant_id, id=request_id)
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    obj = _with_relations(qs).first()
    if obj is None:
        raise NotFound("Request not found.")
    return obj


def requests_for_provider(*, tenant_id: UUID, provider_id: UUID) -> QuerySet[ServiceRequest]:
    """
    Requests that quote at least one line to this provider.
    """
    qs = ServiceRequest.objects.filter(tenant_id=tenant_id, quote_lines__provider_id=provider_id).distinct()
    return _with_relations(qs).order_by("-created_at", "-id")
