# hc_core/orders/api/filters.py
from __future__ import annotations

import django_filters

from hc_core.orders.models import FulfillmentOrder, OrderStatus
from hc_core.tenants.models import ProviderType

PROVIDER_TYPE_ALIASES = {
    "lab": ProviderType.LABORATORY.value,
    "labs": ProviderType.LABORATORY.value,
    "laboratory": ProviderType.LABORATORY.value,
    "pharmacy": ProviderType.PHARMACY.value,
    "pharmacies": ProviderType.PHARMACY.value,
    "medicine": ProviderType.PHARMACY.value,
}


class OrderFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=OrderStatus.choices)
    providerType = django_filters.CharFilter(method="filter_provider_type")
    request = django_filters.UUIDFilter(field_name="request_id")

    class Meta:
        model = FulfillmentOrder
        fields = ["status", "providerType", "request"]

    def filter_provider_type(self, queryset, name, value):
        kind = PROVIDER_TYPE_ALIASES.get((value or "").strip().lower())
        if kind is None:
            return queryset.none()
        return queryset.filter(provider_type=kind)
