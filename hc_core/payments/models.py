# hc_core/payments/models.py
from __future__ import annotations

from decimal import Decimal

from django.db import models

from hc_core.common.models import ScopedModel
from hc_core.patients.models import Patient
from hc_core.service_requests.models import ServiceRequest


class IntentStatus(models.TextChoices):
    CREATED = "created", "Created"
    VERIFIED = "verified", "Verified"
    FAILED = "failed", "Failed"


class PaymentIntent(ScopedModel):
    """
    One gateway order opened for a request. A request may collect several
    (retries after failure); at most one ends up verified.
    """
    request = models.ForeignKey(ServiceRequest, on_delete=models.PROTECT, related_name="payment_intents")
    gateway_order_id = models.CharField(max_length=64, unique=True)

    amount = models.DecimalField(max_digits=12, decimal_places=2)
    amount_minor = models.BigIntegerField()
    currency = models.CharField(max_length=8, default="INR")

    status = models.CharField(max_length=16, choices=IntentStatus.choices, default=IntentStatus.CREATED)
    gateway_payment_id = models.CharField(max_length=64, blank=True)
    failure_reason = models.CharField(max_length=255, blank=True)
    verified_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "payments_intent"
        indexes = [
            models.Index(fields=["tenant_id", "request", "created_at"]),
        ]


class TransactionType(models.TextChoices):
    PAYMENT = "payment", "Payment"


class TransactionStatus(models.TextChoices):
    COMPLETED = "completed", "Completed"


class TransactionCategory(models.TextChoices):
    MEDICINE = "medicine", "Medicine"
    TEST = "test", "Test"


class ImmutableRecordError(Exception):
    pass


class Transaction(ScopedModel):
    """
    Payment ledger entry, written once by a successful verification.
    Unique per (request, gateway order) so a replayed confirmation cannot
    book the same payment twice. Rows are never updated or deleted.
    """
    request = models.ForeignKey(ServiceRequest, on_delete=models.PROTECT, related_name="transactions")
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name="transactions")

    transaction_type = models.CharField(max_length=16, choices=TransactionType.choices, default=TransactionType.PAYMENT)
    status = models.CharField(max_length=16, choices=TransactionStatus.choices, default=TransactionStatus.COMPLETED)
    category = models.CharField(max_length=16, choices=TransactionCategory.choices)

    amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=8, default="INR")
    payment_method = models.CharField(max_length=32, default="razorpay")
    gateway_payment_id = models.CharField(max_length=64)
    gateway_order_id = models.CharField(max_length=64)
    description = models.CharField(max_length=255, blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "payments_transaction"
        constraints = [
            models.UniqueConstraint(fields=["request", "gateway_order_id"], name="uq_transaction_request_gateway_order"),
        ]
        indexes = [
            models.Index(fields=["tenant_id", "patient", "created_at"]),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableRecordError("Transactions are immutable once recorded.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRecordError("Transactions cannot be deleted.")
