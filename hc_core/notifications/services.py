# hc_core/notifications/services.py
from __future__ import annotations

from typing import Iterable
from uuid import UUID

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound

from hc_core.notifications.models import ProviderNotification


class ProviderNotificationService:
    @staticmethod
    @transaction.atomic
    def notify_providers(
        *,
        tenant_id: UUID,
        provider_ids: Iterable[UUID],
        kind: str,
        request_id: UUID,
        title: str,
        message: str = "",
        meta: dict | None = None,
    ) -> list[ProviderNotification]:
        """
        Idempotent per (provider, kind, request): a re-published event does not duplicate notices.
        """
        out: list[ProviderNotification] = []
        for provider_id in provider_ids:
            obj, _ = ProviderNotification.objects.get_or_create(
                tenant_id=tenant_id,
                provider_id=provider_id,
                kind=kind,
                request_id=request_id,
                defaults={"title": title, "message": message, "meta": meta or {}},
            )
            out.append(obj)
        return out

    @staticmethod
    @transaction.atomic
    def mark_read(*, tenant_id: UUID, provider_id: UUID, notification_id: UUID) -> ProviderNotification:
        obj = (
            ProviderNotification.objects.select_for_update()
            .filter(id=notification_id, tenant_id=tenant_id, provider_id=provider_id)
            .first()
        )
        if obj is None:
            raise NotFound("Notification not found.")
        if not obj.is_read:
            obj.is_read = True
            obj.read_at = timezone.now()
            obj.save(update_fields=["is_read", "read_at", "updated_at"])
        return obj
