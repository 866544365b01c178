# hc_core/service_requests/models.py
from __future__ import annotations

from decimal import Decimal

from django.db import models

from hc_core.common.models import ScopedModel
from hc_core.patients.models import Patient
from hc_core.tenants.models import Provider


class RequestType(models.TextChoices):
    ORDER_MEDICINE = "order_medicine", "Order medicine"
    BOOK_TEST_VISIT = "book_test_visit", "Book test visit"


class RequestStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    ACCEPTED = "accepted", "Accepted"
    CONFIRMED = "confirmed", "Confirmed"
    CANCELLED = "cancelled", "Cancelled"
    COMPLETED = "completed", "Completed"


class VisitType(models.TextChoices):
    LAB = "lab", "Lab visit"
    HOME = "home", "Home collection"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    REFUNDED = "refunded", "Refunded"


class ServiceRequest(ScopedModel):
    """
    A patient's ask for a lab test visit or a pharmacy order.

    Lifecycle: pending -> accepted (priced) -> confirmed (paid) -> completed,
    with cancelled reachable until a provider starts fulfillment.
    Never moves to confirmed without a payment transaction.
    """
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name="service_requests")

    request_type = models.CharField(max_length=32, choices=RequestType.choices, db_index=True)
    status = models.CharField(
        max_length=16,
        choices=RequestStatus.choices,
        default=RequestStatus.PENDING,
        db_index=True,
    )
    visit_type = models.CharField(max_length=8, choices=VisitType.choices, blank=True)
    prescription_id = models.CharField(max_length=64, blank=True)

    # patient contact snapshot at submission
    patient_name = models.CharField(max_length=255, blank=True)
    patient_phone = models.CharField(max_length=32, blank=True)
    patient_email = models.EmailField(blank=True)
    patient_address = models.TextField(blank=True)

    # admin quote
    quote_message = models.TextField(blank=True)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    currency = models.CharField(max_length=8, default="INR")
    quoted_at = models.DateTimeField(null=True, blank=True)
    quoted_by_user_id = models.BigIntegerField(null=True, blank=True)

    # payment
    payment_status = models.CharField(
        max_length=16,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    payment_confirmed = models.BooleanField(default=False)
    payment_id = models.CharField(max_length=64, blank=True)
    gateway_order_id = models.CharField(max_length=64, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    # cancellation
    cancel_reason = models.TextField(blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by_user_id = models.BigIntegerField(null=True, blank=True)

    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "service_requests_request"
        indexes = [
            models.Index(fields=["tenant_id", "patient", "created_at"]),
            models.Index(fields=["tenant_id", "status", "created_at"]),
        ]

    def __str__(self) -> str:
        return f"{self.request_type} {self.id} ({self.status})"

    @property
    def is_lab(self) -> bool:
        return self.request_type == RequestType.BOOK_TEST_VISIT


class LineType(models.TextChoices):
    MEDICINE = "medicine", "Medicine"
    TEST = "test", "Test"


class QuoteLine(ScopedModel):
    """
    One priced item of the admin quote, tagged with the provider that will fulfill it.
    """
    request = models.ForeignKey(ServiceRequest, on_delete=models.CASCADE, related_name="quote_lines")
    provider = models.ForeignKey(Provider, on_delete=models.PROTECT, related_name="quote_lines")

    line_type = models.CharField(max_length=16, choices=LineType.choices)
    name = models.CharField(max_length=255)
    dosage = models.CharField(max_length=128, blank=True)
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    position = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "service_requests_quote_line"
        ordering = ["position", "created_at"]
        indexes = [
            models.Index(fields=["tenant_id", "request"]),
            models.Index(fields=["tenant_id", "provider"]),
        ]

    @property
    def line_total(self) -> Decimal:
        # tests are priced per test, medicines per unit
        if self.line_type == LineType.TEST:
            return self.unit_price
        return (self.unit_price * self.quantity).quantize(Decimal("0.01"))
