# hc_core/orders/models.py
from decimal import Decimal

from django.db import models

from hc_core.common.models import ScopedModel
from hc_core.patients.models import Patient
from hc_core.service_requests.models import ServiceRequest
from hc_core.tenants.models import Provider, ProviderType


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    ACCEPTED = "accepted", "Accepted"
    # pharmacy pipeline
    PRESCRIPTION_RECEIVED = "prescription_received", "Prescription received"
    MEDICINE_COLLECTED = "medicine_collected", "Medicine collected"
    PACKED = "packed", "Packed"
    READY_TO_BE_PICKED = "ready_to_be_picked", "Ready to be picked"
    PICKED_UP = "picked_up", "Picked up"
    DELIVERED = "delivered", "Delivered"
    # laboratory pipeline
    VISIT_TIME = "visit_time", "Visit time"
    SAMPLE_COLLECTED = "sample_collected", "Sample collected"
    BEING_TESTED = "being_tested", "Being tested"
    REPORTS_BEING_GENERATED = "reports_being_generated", "Reports being generated"
    TEST_SUCCESSFUL = "test_successful", "Test successful"
    REPORTS_UPDATED = "reports_updated", "Reports updated"
    # terminal
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class OrderPaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"


class DeliveryOption(models.TextChoices):
    DELIVERY = "delivery", "Home delivery"
    PICKUP = "pickup", "Pickup"
    HOME_COLLECTION = "home_collection", "Home sample collection"
    LAB_VISIT = "lab_visit", "Lab visit"


class FulfillmentOrder(ScopedModel):
    """
    One provider's share of a paid request.
    Mutated only by provider actions; never deleted, only terminated.
    """
    request = models.ForeignKey(ServiceRequest, on_delete=models.PROTECT, related_name="orders")
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name="orders")
    provider = models.ForeignKey(Provider, on_delete=models.PROTECT, related_name="orders")
    provider_type = models.CharField(max_length=16, choices=ProviderType.choices)

    status = models.CharField(max_length=32, choices=OrderStatus.choices, default=OrderStatus.PENDING, db_index=True)
    payment_status = models.CharField(
        max_length=16,
        choices=OrderPaymentStatus.choices,
        default=OrderPaymentStatus.PENDING,
    )
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    delivery_option = models.CharField(max_length=16, choices=DeliveryOption.choices, blank=True)

    accepted_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True)

    class Meta:
        db_table = "orders_fulfillment_order"
        constraints = [
            models.UniqueConstraint(fields=["request", "provider"], name="uq_order_request_provider"),
        ]
        indexes = [
            models.Index(fields=["tenant_id", "patient", "created_at"]),
            models.Index(fields=["tenant_id", "provider", "status"]),
        ]

    def __str__(self) -> str:
        return f"order {self.id} ({self.provider_type}, {self.status})"


class OrderLine(ScopedModel):
    order = models.ForeignKey(FulfillmentOrder, on_delete=models.CASCADE, related_name="items")
    name = models.CharField(max_length=255)
    dosage = models.CharField(max_length=128, blank=True)
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    line_total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        db_table = "orders_order_line"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["tenant_id", "order"]),
        ]
