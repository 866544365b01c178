# hc_core/orders/api/views.py
from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied

from hc_core.common.api.pagination import paginate
from hc_core.common.api.responses import ok
from hc_core.common.permissions import PatientOrderPermission, ProviderOrderPermission
from hc_core.common.scope import require_scope
from hc_core.orders.api.filters import OrderFilter
from hc_core.orders.api.serializers import OrderSerializer, OrderStatusUpdateSerializer
from hc_core.orders.models import FulfillmentOrder
from hc_core.orders.selectors import get_order, orders_for_tenant
from hc_core.orders.services import OrderService
from hc_core.service_requests.api.serializers import ServiceRequestSerializer
from hc_core.service_requests.api.views import UUID_PATTERN, caller_patient
from hc_core.service_requests.models import ServiceRequest
from hc_core.service_requests.selectors import requests_for_provider
from hc_core.tenants.models import Provider


def caller_provider(request) -> Provider:
    membership = getattr(request, "membership", None)
    provider = getattr(membership, "provider", None)
    if provider is None or not provider.is_active:
        raise PermissionDenied("Your account is not linked to an active provider.")
    return provider


class PatientOrderViewSet(viewsets.GenericViewSet):
    """
    Fulfillment orders as the patient sees them (admins: whole tenant).
    """
    permission_classes = [PatientOrderPermission]
    serializer_class = OrderSerializer
    queryset = FulfillmentOrder.objects.none()
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "updated_at"]
    lookup_value_regex = UUID_PATTERN

    @extend_schema(tags=["Orders"], responses={200: OrderSerializer(many=True)})
    def list(self, request):
        scope = require_scope(request)
        patient = caller_patient(request, scope.tenant_id)
        qs = orders_for_tenant(tenant_id=scope.tenant_id, patient_id=patient.id if patient else None)
        return paginate(request, self.filter_queryset(qs), OrderSerializer)

    @extend_schema(tags=["Orders"], responses={200: OrderSerializer})
    def retrieve(self, request, pk=None):
        scope = require_scope(request)
        patient = caller_patient(request, scope.tenant_id)
        order = get_order(tenant_id=scope.tenant_id, order_id=pk, patient_id=patient.id if patient else None)
        return ok(OrderSerializer(order).data)


class ProviderRequestViewSet(viewsets.GenericViewSet):
    """
    Requests quoted to the caller's laboratory or pharmacy.
    """
    permission_classes = [ProviderOrderPermission]
    serializer_class = ServiceRequestSerializer
    queryset = ServiceRequest.objects.none()
    lookup_value_regex = UUID_PATTERN

    @extend_schema(tags=["Provider"], responses={200: ServiceRequestSerializer(many=True)})
    def list(self, request):
        scope = require_scope(request)
        provider = caller_provider(request)
        qs = requests_for_provider(tenant_id=scope.tenant_id, provider_id=provider.id)

        status_q = request.query_params.get("status")
        if status_q:
            qs = qs.filter(status=status_q)
        return paginate(request, qs, ServiceRequestSerializer)

    @extend_schema(tags=["Provider"], request=None, responses={200: OrderSerializer})
    @action(detail=True, methods=["post"], url_path="accept")
    def accept(self, request, pk=None):
        scope = require_scope(request)
        provider = caller_provider(request)
        order = OrderService.accept_request(tenant_id=scope.tenant_id, request_id=pk, provider=provider)
        order = get_order(tenant_id=scope.tenant_id, order_id=order.id)
        return ok(OrderSerializer(order).data, message="Request accepted")


class ProviderOrderViewSet(viewsets.GenericViewSet):
    """
    The caller provider's fulfillment orders and their status pipeline.
    """
    permission_classes = [ProviderOrderPermission]
    serializer_class = OrderSerializer
    queryset = FulfillmentOrder.objects.none()
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "updated_at"]
    lookup_value_regex = UUID_PATTERN

    @extend_schema(tags=["Provider"], responses={200: OrderSerializer(many=True)})
    def list(self, request):
        scope = require_scope(request)
        provider = caller_provider(request)
        qs = orders_for_tenant(tenant_id=scope.tenant_id, provider_id=provider.id)
        return paginate(request, self.filter_queryset(qs), OrderSerializer)

    @extend_schema(tags=["Provider"], request=OrderStatusUpdateSerializer, responses={200: OrderSerializer})
    @action(detail=True, methods=["post"], url_path="status")
    def update_status(self, request, pk=None):
        scope = require_scope(request)
        provider = caller_provider(request)

        ser = OrderStatusUpdateSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        order = OrderService.update_status(
            tenant_id=scope.tenant_id,
            order_id=pk,
            provider=provider,
            status=ser.validated_data["status"],
            reason=ser.validated_data.get("reason", ""),
        )
        order = get_order(tenant_id=scope.tenant_id, order_id=order.id)
        return ok(OrderSerializer(order).data, message="Order status updated")
