# hc_core/payments/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from hc_core.payments.models import Transaction


class PaymentOrderSerializer(serializers.Serializer):
    orderId = serializers.CharField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    amountMinor = serializers.IntegerField()
    currency = serializers.CharField()
    gatewayKeyId = serializers.CharField()
    requestId = serializers.UUIDField()
    totalAmount = serializers.DecimalField(max_digits=12, decimal_places=2)
    name = serializers.CharField()
    description = serializers.CharField()


class PaymentConfirmSerializer(serializers.Serializer):
    # blank values are let through so the service reports every missing field at once
    paymentId = serializers.CharField(required=False, allow_blank=True, default="")
    orderId = serializers.CharField(required=False, allow_blank=True, default="")
    signature = serializers.CharField(required=False, allow_blank=True, default="")
    paymentMethod = serializers.CharField(required=False, allow_blank=True, default="", max_length=32)


class PaymentConfirmationSerializer(serializers.Serializer):
    requestId = serializers.UUIDField()
    status = serializers.CharField()
    paymentStatus = serializers.CharField()
    paymentConfirmed = serializers.BooleanField()
    transactionId = serializers.UUIDField()
    paymentId = serializers.CharField()
    orderId = serializers.CharField()
    replayed = serializers.BooleanField()


class TransactionSerializer(serializers.ModelSerializer):
    requestId = serializers.UUIDField(source="request_id", read_only=True)
    patientId = serializers.UUIDField(source="patient_id", read_only=True)
    type = serializers.CharField(source="transaction_type", read_only=True)
    paymentMethod = serializers.CharField(source="payment_method", read_only=True)
    paymentId = serializers.CharField(source="gateway_payment_id", read_only=True)
    orderId = serializers.CharField(source="gateway_order_id", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    request = serializers.SerializerMethodField()

    class Meta:
        model = Transaction
        fields = [
            "id",
            "requestId",
            "patientId",
            "type",
            "status",
            "category",
            "amount",
            "currency",
            "paymentMethod",
            "paymentId",
            "orderId",
            "description",
            "createdAt",
            "request",
        ]

    def get_request(self, obj: Transaction) -> dict:
        return {"type": obj.request.request_type, "status": obj.request.status}
