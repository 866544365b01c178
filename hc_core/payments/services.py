# hc_core/payments/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from hc_core.common.api.exceptions import OrderCreationError, PaymentVerificationError
from hc_core.common.events import publish
from hc_core.common.money import quantize_major, to_minor_units
from hc_core.orders.services import OrderService
from hc_core.patients.models import Patient
from hc_core.payments.gateway import GatewayError, get_gateway
from hc_core.payments.models import IntentStatus, PaymentIntent, Transaction, TransactionCategory
from hc_core.service_requests.models import (
    PaymentStatus,
    QuoteLine,
    RequestStatus,
    RequestType,
    ServiceRequest,
    VisitType,
)
from hc_core.service_requests.rules import is_payable

logger = logging.getLogger(__name__)

REQUEST_PAID = "service_request.paid"


@dataclass(frozen=True)
class Confirmation:
    request: ServiceRequest
    transaction: Transaction
    replayed: bool


def _get_request(*, tenant_id: UUID, request_id: UUID, patient: Patient, lock: bool = False) -> ServiceRequest:
    qs = ServiceRequest.objects.filter(id=request_id, tenant_id=tenant_id, patient=patient)
    if lock:
        qs = qs.select_for_update()
    req = qs.first()
    if req is None:
        raise NotFound("Request not found.")
    return req


def _existing_transaction(*, req: ServiceRequest, gateway_order_id: str) -> Transaction | None:
    return Transaction.objects.filter(request=req, gateway_order_id=gateway_order_id).first()


class PaymentService:
    """
    Payment reconciliation for priced requests.

    create_payment_order: opens a gateway order for the server-side total.
    confirm_payment: verifies a gateway callback and books it exactly once,
    keyed by (request id, gateway order id).
    """

    @staticmethod
    @transaction.atomic
    def create_payment_order(
        *,
        tenant_id: UUID,
        request_id: UUID,
        patient: Patient,
        gateway=None,
    ) -> dict:
        req = _get_request(tenant_id=tenant_id, request_id=request_id, patient=patient, lock=True)

        if req.payment_confirmed:
            raise OrderCreationError("Payment already completed for this request.")
        if req.status != RequestStatus.ACCEPTED:
            raise OrderCreationError(f"Request is not awaiting payment (status '{req.status}').")

        has_lines = QuoteLine.objects.filter(tenant_id=tenant_id, request=req).exists()
        if not is_payable(
            status=req.status,
            payment_confirmed=req.payment_confirmed,
            total_amount=req.total_amount,
            has_lines=has_lines,
        ):
            raise OrderCreationError("Total amount is not set or invalid. Please contact support.")

        gateway = gateway or get_gateway()
        currency = req.currency or getattr(settings, "PAYMENT_CURRENCY", "INR")
        amount = quantize_major(req.total_amount, currency)
        amount_minor = to_minor_units(amount, currency)

        try:
            gw_order = gateway.create_order(
                amount_minor=amount_minor,
                currency=currency,
                receipt=f"req_{req.id.hex[:20]}",
                notes={
                    "request_id": str(req.id),
                    "patient_id": str(req.patient_id),
                    "request_type": req.request_type,
                },
            )
        except GatewayError as exc:
            raise OrderCreationError(f"Payment gateway rejected the order: {exc}") from exc

        PaymentIntent.objects.create(
            tenant_id=tenant_id,
            request=req,
            gateway_order_id=gw_order.order_id,
            amount=amount,
            amount_minor=gw_order.amount_minor,
            currency=gw_order.currency,
            status=IntentStatus.CREATED,
        )

        req.gateway_order_id = gw_order.order_id
        req.save(update_fields=["gateway_order_id", "updated_at"])

        logger.info("Opened gateway order %s for request %s (%s %s)", gw_order.order_id, req.id, amount, currency)

        return {
            "orderId": gw_order.order_id,
            "amount": amount,
            "amountMinor": gw_order.amount_minor,
            "currency": gw_order.currency,
            "gatewayKeyId": gateway.public_key,
            "requestId": str(req.id),
            "totalAmount": req.total_amount,
            "name": getattr(settings, "PAYMENT_MERCHANT_NAME", ""),
            "description": "Lab Test Payment" if req.is_lab else "Medicine Order Payment",
        }

    @staticmethod
    def _fail(intent: PaymentIntent, reason: str, *, payment_id: str = "") -> None:
        with transaction.atomic():
            PaymentIntent.objects.filter(pk=intent.pk, status=IntentStatus.CREATED).update(
                status=IntentStatus.FAILED,
                failure_reason=reason[:255],
                gateway_payment_id=payment_id,
                updated_at=timezone.now(),
            )
        logger.warning("Payment verification failed for order %s: %s", intent.gateway_order_id, reason)

    @staticmethod
    def confirm_payment(
        *,
        tenant_id: UUID,
        request_id: UUID,
        patient: Patient,
        payment_id: str,
        order_id: str,
        signature: str,
        payment_method: str = "",
        gateway=None,
    ) -> Confirmation:
        """
        Verification happens outside the booking transaction so a failed
        attempt is recorded on the intent while the request stays accepted.
        """
        fields = {"paymentId": payment_id, "orderId": order_id, "signature": signature}
        missing = {name: "This field is required." for name, value in fields.items() if not value}
        if missing:
            raise ValidationError(missing)

        req = _get_request(tenant_id=tenant_id, request_id=request_id, patient=patient)

        gateway = gateway or get_gateway()

        existing = _existing_transaction(req=req, gateway_order_id=order_id)
        if existing is not None:
            if existing.gateway_payment_id != payment_id or not gateway.verify_signature(
                order_id=order_id, payment_id=payment_id, signature=signature
            ):
                logger.warning("Mismatched replay for request %s order %s", req.id, order_id)
                raise PaymentVerificationError("Payment details do not match the payment recorded for this order.")
            logger.info("Replayed confirmation for request %s order %s", req.id, order_id)
            return Confirmation(request=req, transaction=existing, replayed=True)

        if req.payment_confirmed:
            raise PaymentVerificationError("Payment already confirmed for this request.")
        if req.status != RequestStatus.ACCEPTED:
            raise PaymentVerificationError(f"Request is not awaiting payment (status '{req.status}').")

        intent = PaymentIntent.objects.filter(tenant_id=tenant_id, request=req, gateway_order_id=order_id).first()
        if intent is None:
            raise PaymentVerificationError("Unknown payment order for this request.")
        if intent.status == IntentStatus.FAILED:
            raise PaymentVerificationError("This payment attempt already failed. Please start a new payment.")

        if not gateway.verify_signature(order_id=order_id, payment_id=payment_id, signature=signature):
            PaymentService._fail(intent, "Invalid payment signature", payment_id=payment_id)
            raise PaymentVerificationError("Invalid payment signature.")

        try:
            payment = gateway.fetch_payment(payment_id)
        except GatewayError as exc:
            # transient; the intent stays open so the client can retry the same confirmation
            raise PaymentVerificationError(f"Unable to verify payment with the gateway: {exc}") from exc

        if not payment.is_successful:
            reason = f"Payment not successful. Status: {payment.status or 'unknown'}"
            PaymentService._fail(intent, reason, payment_id=payment_id)
            raise PaymentVerificationError(reason)

        if payment.order_id and payment.order_id != order_id:
            PaymentService._fail(intent, "Payment does not belong to this order", payment_id=payment_id)
            raise PaymentVerificationError("Payment does not belong to this order.")

        if payment.amount_minor != intent.amount_minor:
            PaymentService._fail(intent, "Amount mismatch", payment_id=payment_id)
            raise PaymentVerificationError("Payment amount does not match the order amount.")

        try:
            return PaymentService._book(
                tenant_id=tenant_id,
                request_id=req.id,
                intent_id=intent.id,
                payment_id=payment_id,
                payment_method=payment_method or payment.method or "razorpay",
            )
        except IntegrityError:
            # a concurrent confirmation booked it first
            existing = _existing_transaction(req=req, gateway_order_id=order_id)
            if existing is None:
                raise
            req.refresh_from_db()
            return Confirmation(request=req, transaction=existing, replayed=True)

    @staticmethod
    @transaction.atomic
    def _book(
        *,
        tenant_id: UUID,
        request_id: UUID,
        intent_id: UUID,
        payment_id: str,
        payment_method: str,
    ) -> Confirmation:
        req = ServiceRequest.objects.select_for_update().get(id=request_id, tenant_id=tenant_id)
        intent = PaymentIntent.objects.select_for_update().get(id=intent_id, tenant_id=tenant_id)

        existing = _existing_transaction(req=req, gateway_order_id=intent.gateway_order_id)
        if existing is not None:
            return Confirmation(request=req, transaction=existing, replayed=True)

        if req.status != RequestStatus.ACCEPTED or req.payment_confirmed:
            raise PaymentVerificationError("Request is no longer awaiting payment.")

        now = timezone.now()
        category = TransactionCategory.TEST if req.is_lab else TransactionCategory.MEDICINE

        txn = Transaction.objects.create(
            tenant_id=tenant_id,
            request=req,
            patient_id=req.patient_id,
            category=category,
            amount=intent.amount,
            currency=intent.currency,
            payment_method=payment_method,
            gateway_payment_id=payment_id,
            gateway_order_id=intent.gateway_order_id,
            description="Lab test payment" if req.is_lab else "Medicine order payment",
            metadata={"amount_minor": intent.amount_minor, "visit_type": req.visit_type},
        )

        intent.status = IntentStatus.VERIFIED
        intent.gateway_payment_id = payment_id
        intent.verified_at = now
        intent.save(update_fields=["status", "gateway_payment_id", "verified_at", "updated_at"])

        req.status = RequestStatus.CONFIRMED
        req.payment_status = PaymentStatus.PAID
        req.payment_confirmed = True
        req.payment_id = payment_id
        req.gateway_order_id = intent.gateway_order_id
        req.paid_at = now
        req.save(
            update_fields=[
                "status",
                "payment_status",
                "payment_confirmed",
                "payment_id",
                "gateway_order_id",
                "paid_at",
                "updated_at",
            ]
        )

        if req.request_type == RequestType.BOOK_TEST_VISIT and req.visit_type == VisitType.LAB:
            OrderService.open_lab_visit_orders(req=req)

        publish(
            REQUEST_PAID,
            {
                "tenant_id": str(tenant_id),
                "request_id": str(req.id),
                "patient_id": str(req.patient_id),
                "provider_ids": sorted(
                    {str(p) for p in QuoteLine.objects.filter(request=req).values_list("provider_id", flat=True)}
                ),
                "amount": str(intent.amount),
            },
        )
        logger.info("Payment %s booked for request %s (transaction %s)", payment_id, req.id, txn.id)
        return Confirmation(request=req, transaction=txn, replayed=False)
