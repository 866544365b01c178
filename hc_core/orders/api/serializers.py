# hc_core/orders/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from hc_core.orders.models import FulfillmentOrder, OrderLine, OrderStatus


class OrderLineSerializer(serializers.ModelSerializer):
    price = serializers.DecimalField(source="unit_price", max_digits=12, decimal_places=2, read_only=True)
    total = serializers.DecimalField(source="line_total", max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = OrderLine
        fields = ["id", "name", "dosage", "quantity", "price", "total"]


class OrderProviderSerializer(serializers.Serializer):
    id = serializers.UUIDField(read_only=True)
    name = serializers.CharField(read_only=True)
    type = serializers.CharField(source="provider_type", read_only=True)
    phone = serializers.CharField(read_only=True)
    email = serializers.CharField(read_only=True)
    address = serializers.CharField(read_only=True)


class OrderSerializer(serializers.ModelSerializer):
    requestId = serializers.UUIDField(source="request_id", read_only=True)
    patientId = serializers.UUIDField(source="patient_id", read_only=True)
    providerId = serializers.UUIDField(source="provider_id", read_only=True)
    providerType = serializers.CharField(source="provider_type", read_only=True)
    provider = OrderProviderSerializer(read_only=True)
    paymentStatus = serializers.CharField(source="payment_status", read_only=True)
    totalAmount = serializers.DecimalField(source="total_amount", max_digits=12, decimal_places=2, read_only=True)
    deliveryOption = serializers.CharField(source="delivery_option", read_only=True)
    acceptedAt = serializers.DateTimeField(source="accepted_at", read_only=True)
    completedAt = serializers.DateTimeField(source="completed_at", read_only=True)
    cancelledAt = serializers.DateTimeField(source="cancelled_at", read_only=True)
    cancellationReason = serializers.CharField(source="cancellation_reason", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)
    items = OrderLineSerializer(many=True, read_only=True)

    class Meta:
        model = FulfillmentOrder
        fields = [
            "id",
            "requestId",
            "patientId",
            "providerId",
            "providerType",
            "provider",
            "status",
            "paymentStatus",
            "totalAmount",
            "deliveryOption",
            "acceptedAt",
            "completedAt",
            "cancelledAt",
            "cancellationReason",
            "createdAt",
            "updatedAt",
            "items",
        ]


class OrderStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
    reason = serializers.CharField(required=False, allow_blank=True, max_length=500)
