# hc_core/service_requests/api/filters.py
from __future__ import annotations

import django_filters

from hc_core.service_requests.models import RequestStatus, RequestType, ServiceRequest

# Accepts the canonical kinds plus the provider-flavoured spellings clients send.
REQUEST_TYPE_ALIASES = {
    "book_test_visit": RequestType.BOOK_TEST_VISIT.value,
    "lab": RequestType.BOOK_TEST_VISIT.value,
    "laboratory": RequestType.BOOK_TEST_VISIT.value,
    "test": RequestType.BOOK_TEST_VISIT.value,
    "order_medicine": RequestType.ORDER_MEDICINE.value,
    "pharmacy": RequestType.ORDER_MEDICINE.value,
    "medicine": RequestType.ORDER_MEDICINE.value,
}


class ServiceRequestFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=RequestStatus.choices)
    type = django_filters.CharFilter(method="filter_type")

    class Meta:
        model = ServiceRequest
        fields = ["status", "type"]

    def filter_type(self, queryset, name, value):
        kind = REQUEST_TYPE_ALIASES.get((value or "").strip().lower())
        if kind is None:
            return queryset.none()
        return queryset.filter(request_type=kind)
