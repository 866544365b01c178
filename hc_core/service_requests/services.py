# hc_core/service_requests/services.py
from __future__ import annotations

import logging
from decimal import Decimal
from uuid import UUID

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from hc_core.common.api.exceptions import CancellationRejectedError
from hc_core.common.events import publish
from hc_core.orders import rules as order_rules
from hc_core.orders.models import FulfillmentOrder, OrderStatus
from hc_core.patients.models import Patient
from hc_core.service_requests.models import (
    LineType,
    QuoteLine,
    RequestStatus,
    RequestType,
    ServiceRequest,
    VisitType,
)
from hc_core.service_requests.rules import CLOSED_STATUSES, PRICEABLE_STATUSES, quote_total
from hc_core.tenants.models import Provider, ProviderType

logger = logging.getLogger(__name__)

REQUEST_CANCELLED = "service_request.cancelled"


class ServiceRequestService:
    """
    Write-model operations for patient service requests.

    - create: patient submits a lab visit or medicine order
    - respond: admin prices the request (quote lines + authoritative total)
    - cancel: patient/admin cancels before fulfillment starts
    Payment confirmation lives in hc_core.payments.services.
    """

    @staticmethod
    @transaction.atomic
    def create(
        *,
        tenant_id: UUID,
        patient: Patient,
        request_type: str,
        visit_type: str = "",
        prescription_id: str = "",
        patient_address: str = "",
    ) -> ServiceRequest:
        if request_type not in RequestType.values:
            raise ValidationError({"type": f"Invalid type. Allowed: {list(RequestType.values)}"})

        visit_type = visit_type or ""
        if request_type == RequestType.BOOK_TEST_VISIT:
            if visit_type not in VisitType.values:
                raise ValidationError({"visitType": "Test visits need visitType 'lab' or 'home'."})
        elif visit_type:
            raise ValidationError({"visitType": "visitType only applies to test visits."})

        req = ServiceRequest.objects.create(
            tenant_id=tenant_id,
            patient=patient,
            request_type=request_type,
            visit_type=visit_type,
            prescription_id=prescription_id or "",
            patient_name=patient.full_name,
            patient_phone=patient.phone,
            patient_email=patient.email,
            patient_address=patient_address or patient.address,
            currency=getattr(settings, "PAYMENT_CURRENCY", "INR"),
            status=RequestStatus.PENDING,
        )
        logger.info("Service request %s created (%s) for patient %s", req.id, request_type, patient.id)
        return req

    @staticmethod
    def _resolve_provider(*, tenant_id: UUID, provider_id, provider_type: str, field: str) -> Provider:
        provider = Provider.objects.filter(id=provider_id, tenant_id=tenant_id, is_active=True).first()
        if provider is None:
            raise ValidationError({field: f"Provider {provider_id} not found in this tenant."})
        if provider.provider_type != provider_type:
            raise ValidationError({field: f"Provider {provider.name} is not a {provider_type}."})
        return provider

    @staticmethod
    @transaction.atomic
    def respond(
        *,
        tenant_id: UUID,
        request_id: UUID,
        medicines: list[dict],
        tests: list[dict],
        message: str = "",
        actor_user_id: int | None = None,
    ) -> ServiceRequest:
        """
        Replace the quote and move the request to accepted.

        medicines: [{pharmacy_id, name, dosage, quantity, price}]
        tests:     [{lab_id, name, price}]
        """
        req = ServiceRequest.objects.select_for_update().filter(id=request_id, tenant_id=tenant_id).first()
        if req is None:
            raise NotFound("Request not found.")

        if req.status not in PRICEABLE_STATUSES:
            raise ValidationError({"status": f"Cannot respond to a request in status '{req.status}'."})

        if req.request_type == RequestType.ORDER_MEDICINE and tests:
            raise ValidationError({"tests": "Medicine orders cannot carry tests."})
        if req.request_type == RequestType.BOOK_TEST_VISIT and medicines:
            raise ValidationError({"medicines": "Test visits cannot carry medicines."})
        if not medicines and not tests:
            raise ValidationError({"detail": "Provide at least one priced medicine or test."})

        lines: list[QuoteLine] = []
        position = 0
        for m in medicines:
            provider = ServiceRequestService._resolve_provider(
                tenant_id=tenant_id,
                provider_id=m["pharmacy_id"],
                provider_type=ProviderType.PHARMACY,
                field="medicines",
            )
            lines.append(
                QuoteLine(
                    tenant_id=tenant_id,
                    request=req,
                    provider=provider,
                    line_type=LineType.MEDICINE,
                    name=m["name"],
                    dosage=m.get("dosage") or "",
                    quantity=int(m.get("quantity") or 1),
                    unit_price=Decimal(str(m["price"])).quantize(Decimal("0.01")),
                    position=position,
                )
            )
            position += 1

        for t in tests:
            provider = ServiceRequestService._resolve_provider(
                tenant_id=tenant_id,
                provider_id=t["lab_id"],
                provider_type=ProviderType.LABORATORY,
                field="tests",
            )
            lines.append(
                QuoteLine(
                    tenant_id=tenant_id,
                    request=req,
                    provider=provider,
                    line_type=LineType.TEST,
                    name=t["name"],
                    quantity=1,
                    unit_price=Decimal(str(t["price"])).quantize(Decimal("0.01")),
                    position=position,
                )
            )
            position += 1

        total = quote_total(medicines=medicines, tests=tests)
        if total <= 0:
            raise ValidationError({"totalAmount": "Quoted total must be greater than zero."})

        QuoteLine.objects.filter(tenant_id=tenant_id, request=req).delete()
        QuoteLine.objects.bulk_create(lines)

        req.total_amount = total
        req.quote_message = message or ""
        req.quoted_at = timezone.now()
        req.quoted_by_user_id = actor_user_id
        req.status = RequestStatus.ACCEPTED
        req.save(
            update_fields=[
                "total_amount",
                "quote_message",
                "quoted_at",
                "quoted_by_user_id",
                "status",
                "updated_at",
            ]
        )
        logger.info("Service request %s priced at %s by user %s", req.id, total, actor_user_id)
        return req

    @staticmethod
    @transaction.atomic
    def cancel(
        *,
        tenant_id: UUID,
        request_id: UUID,
        reason: str = "",
        actor_user_id: int | None = None,
    ) -> ServiceRequest:
        """
        Cancel a request that no provider has started on.

        Rejects (409) when already completed/cancelled, or when any order has
        moved past pending. Pending orders are cancelled with the request and
        every matched provider is notified through REQUEST_CANCELLED.
        """
        req = ServiceRequest.objects.select_for_update().filter(id=request_id, tenant_id=tenant_id).first()
        if req is None:
            raise NotFound("Request not found.")

        if req.status in CLOSED_STATUSES:
            raise CancellationRejectedError("Request already completed or cancelled.")

        orders = list(
            FulfillmentOrder.objects.select_for_update().filter(tenant_id=tenant_id, request=req)
        )
        if any(order_rules.has_started(o.status) for o in orders):
            raise CancellationRejectedError("A provider has already started fulfilling this request.")

        now = timezone.now()
        reason = (reason or "").strip()

        for order in orders:
            if order.status == OrderStatus.CANCELLED:
                continue
            order.status = OrderStatus.CANCELLED
            order.cancelled_at = now
            order.cancellation_reason = reason
            order.save(update_fields=["status", "cancelled_at", "cancellation_reason", "updated_at"])

        req.status = RequestStatus.CANCELLED
        req.cancel_reason = reason
        req.cancelled_at = now
        req.cancelled_by_user_id = actor_user_id
        req.save(update_fields=["status", "cancel_reason", "cancelled_at", "cancelled_by_user_id", "updated_at"])

        provider_ids = set(
            QuoteLine.objects.filter(tenant_id=tenant_id, request=req).values_list("provider_id", flat=True)
        )
        provider_ids.update(o.provider_id for o in orders)

        publish(
            REQUEST_CANCELLED,
            {
                "tenant_id": str(tenant_id),
                "request_id": str(req.id),
                "patient_id": str(req.patient_id),
                "provider_ids": sorted(str(p) for p in provider_ids),
                "reason": reason,
                "was_paid": req.payment_confirmed,
            },
        )
        logger.info("Service request %s cancelled by user %s", req.id, actor_user_id)
        return req
