# hc_core/notifications/models.py
from __future__ import annotations

from django.db import models

from hc_core.common.models import ScopedModel
from hc_core.tenants.models import Provider


class NotificationKind(models.TextChoices):
    REQUEST_PAID = "request_paid", "Request paid"
    REQUEST_CANCELLED = "request_cancelled", "Request cancelled"


class ProviderNotification(ScopedModel):
    """
    In-app notice for a provider's staff. Links stay loose (UUIDs) to avoid
    coupling to the request tables.
    """
    provider = models.ForeignKey(Provider, on_delete=models.CASCADE, related_name="notifications")
    kind = models.CharField(max_length=32, choices=NotificationKind.choices, db_index=True)
    request_id = models.UUIDField(db_index=True)

    title = models.CharField(max_length=255)
    message = models.TextField(blank=True, default="")

    is_read = models.BooleanField(default=False, db_index=True)
    read_at = models.DateTimeField(null=True, blank=True)

    meta = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "notifications_provider_notification"
        constraints = [
            models.UniqueConstraint(fields=["provider", "kind", "request_id"], name="uq_provider_notification_event"),
        ]
        indexes = [
            models.Index(fields=["tenant_id", "provider", "is_read", "created_at"]),
        ]
