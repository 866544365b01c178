# hc_core/notifications/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet

from hc_core.notifications.models import ProviderNotification


def notifications_for_provider(
    *,
    tenant_id: UUID,
    provider_id: UUID,
    unread_only: bool = False,
) -> QuerySet[ProviderNotification]:
    qs = ProviderNotification.objects.filter(tenant_id=tenant_id, provider_id=provider_id)
    if unread_only:
        qs = qs.filter(is_read=False)
    return qs.order_by("-created_at", "-id")
