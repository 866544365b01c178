# hc_core/service_requests/api/serializers.py
from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from hc_core.orders.api.serializers import OrderSerializer
from hc_core.service_requests.models import LineType, RequestType, ServiceRequest, VisitType


class ServiceRequestCreateSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=RequestType.choices)
    visitType = serializers.ChoiceField(choices=VisitType.choices, required=False, allow_blank=True)
    prescriptionId = serializers.CharField(required=False, allow_blank=True, max_length=64)
    patientAddress = serializers.CharField(required=False, allow_blank=True)


class QuotedMedicineSerializer(serializers.Serializer):
    pharmacyId = serializers.UUIDField()
    name = serializers.CharField(max_length=255)
    dosage = serializers.CharField(required=False, allow_blank=True, max_length=128)
    quantity = serializers.IntegerField(min_value=1, default=1)
    price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.00"))


class QuotedTestSerializer(serializers.Serializer):
    labId = serializers.UUIDField()
    testName = serializers.CharField(max_length=255)
    price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.00"))


class ServiceRequestRespondSerializer(serializers.Serializer):
    medicines = QuotedMedicineSerializer(many=True, required=False, default=list)
    tests = QuotedTestSerializer(many=True, required=False, default=list)
    message = serializers.CharField(required=False, allow_blank=True, default="")

    def to_service_kwargs(self) -> dict:
        data = self.validated_data
        return {
            "medicines": [
                {
                    "pharmacy_id": m["pharmacyId"],
                    "name": m["name"],
                    "dosage": m.get("dosage", ""),
                    "quantity": m["quantity"],
                    "price": m["price"],
                }
                for m in data["medicines"]
            ],
            "tests": [{"lab_id": t["labId"], "name": t["testName"], "price": t["price"]} for t in data["tests"]],
            "message": data["message"],
        }


class ServiceRequestCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=500, default="")


class ServiceRequestSerializer(serializers.ModelSerializer):
    """
    Read model for patient and admin screens. `totalAmount` is the
    authoritative price; clients must not recompute it from the lines.
    """
    type = serializers.CharField(source="request_type", read_only=True)
    visitType = serializers.CharField(source="visit_type", read_only=True)
    prescriptionId = serializers.CharField(source="prescription_id", read_only=True)
    patientId = serializers.UUIDField(source="patient_id", read_only=True)
    patient = serializers.SerializerMethodField()
    adminResponse = serializers.SerializerMethodField()
    totalAmount = serializers.DecimalField(source="total_amount", max_digits=12, decimal_places=2, read_only=True)
    currency = serializers.CharField(read_only=True)
    paymentStatus = serializers.CharField(source="payment_status", read_only=True)
    paymentConfirmed = serializers.BooleanField(source="payment_confirmed", read_only=True)
    paymentId = serializers.CharField(source="payment_id", read_only=True)
    paidAt = serializers.DateTimeField(source="paid_at", read_only=True)
    cancelReason = serializers.CharField(source="cancel_reason", read_only=True)
    cancelledAt = serializers.DateTimeField(source="cancelled_at", read_only=True)
    completedAt = serializers.DateTimeField(source="completed_at", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)
    orders = OrderSerializer(many=True, read_only=True)

    class Meta:
        model = ServiceRequest
        fields = [
            "id",
            "type",
            "status",
            "visitType",
            "prescriptionId",
            "patientId",
            "patient",
            "adminResponse",
            "totalAmount",
            "currency",
            "paymentStatus",
            "paymentConfirmed",
            "paymentId",
            "paidAt",
            "cancelReason",
            "cancelledAt",
            "completedAt",
            "createdAt",
            "updatedAt",
            "orders",
        ]

    def get_patient(self, obj: ServiceRequest) -> dict:
        return {
            "name": obj.patient_name,
            "phone": obj.patient_phone,
            "email": obj.patient_email,
            "address": obj.patient_address,
        }

    def get_adminResponse(self, obj: ServiceRequest) -> dict | None:
        if obj.quoted_at is None:
            return None

        lines = list(obj.quote_lines.all())
        return {
            "medicines": [
                {
                    "pharmacyId": str(ln.provider_id),
                    "pharmacyName": ln.provider.name,
                    "name": ln.name,
                    "dosage": ln.dosage,
                    "quantity": ln.quantity,
                    "price": ln.unit_price,
                }
                for ln in lines
                if ln.line_type == LineType.MEDICINE
            ],
            "tests": [
                {
                    "labId": str(ln.provider_id),
                    "labName": ln.provider.name,
                    "testName": ln.name,
                    "price": ln.unit_price,
                }
                for ln in lines
                if ln.line_type == LineType.TEST
            ],
            "totalAmount": obj.total_amount,
            "message": obj.quote_message,
            "responseDate": obj.quoted_at,
        }
