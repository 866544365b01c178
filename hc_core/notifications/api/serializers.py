# hc_core/notifications/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from hc_core.notifications.models import ProviderNotification


class ProviderNotificationSerializer(serializers.ModelSerializer):
    providerId = serializers.UUIDField(source="provider_id", read_only=True)
    requestId = serializers.UUIDField(source="request_id", read_only=True)
    isRead = serializers.BooleanField(source="is_read", read_only=True)
    readAt = serializers.DateTimeField(source="read_at", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = ProviderNotification
        fields = ["id", "providerId", "kind", "requestId", "title", "message", "isRead", "readAt", "meta", "createdAt"]
