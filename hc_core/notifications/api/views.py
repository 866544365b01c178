# hc_core/notifications/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action

from hc_core.common.api.pagination import paginate
from hc_core.common.api.responses import ok
from hc_core.common.permissions import NotificationPermission
from hc_core.common.scope import require_scope
from hc_core.notifications.api.serializers import ProviderNotificationSerializer
from hc_core.notifications.models import ProviderNotification
from hc_core.notifications.selectors import notifications_for_provider
from hc_core.notifications.services import ProviderNotificationService
from hc_core.orders.api.views import caller_provider
from hc_core.service_requests.api.views import UUID_PATTERN


class ProviderNotificationViewSet(viewsets.GenericViewSet):
    permission_classes = [NotificationPermission]
    serializer_class = ProviderNotificationSerializer
    queryset = ProviderNotification.objects.none()
    lookup_value_regex = UUID_PATTERN

    @extend_schema(
        tags=["Provider"],
        responses={200: ProviderNotificationSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="unread", type=OpenApiTypes.BOOL, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        scope = require_scope(request)
        provider = caller_provider(request)
        unread = (request.query_params.get("unread") or "").lower() in {"1", "true", "yes"}
        qs = notifications_for_provider(tenant_id=scope.tenant_id, provider_id=provider.id, unread_only=unread)
        return paginate(request, qs, ProviderNotificationSerializer)

    @extend_schema(tags=["Provider"], request=None, responses={200: ProviderNotificationSerializer})
    @action(detail=True, methods=["post"], url_path="read")
    def mark_read(self, request, pk=None):
        scope = require_scope(request)
        provider = caller_provider(request)
        obj = ProviderNotificationService.mark_read(
            tenant_id=scope.tenant_id,
            provider_id=provider.id,
            notification_id=pk,
        )
        return ok(ProviderNotificationSerializer(obj).data)
