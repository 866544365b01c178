# hc_core/orders/services.py
from __future__ import annotations

import logging
from decimal import Decimal
from uuid import UUID

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from hc_core.orders import rules
from hc_core.orders.models import (
    DeliveryOption,
    FulfillmentOrder,
    OrderLine,
    OrderPaymentStatus,
    OrderStatus,
)
from hc_core.service_requests.models import QuoteLine, RequestStatus, ServiceRequest, VisitType
from hc_core.tenants.models import Provider, ProviderType

logger = logging.getLogger(__name__)


def _delivery_option_for(req: ServiceRequest, provider: Provider) -> str:
    if provider.provider_type == ProviderType.PHARMACY:
        return DeliveryOption.DELIVERY
    if req.visit_type == VisitType.HOME:
        return DeliveryOption.HOME_COLLECTION
    return DeliveryOption.LAB_VISIT


class OrderService:
    """
    Write-model operations for provider fulfillment orders.

    - One order per (request, provider), built from that provider's quote lines.
    - Lab-visit orders are opened at payment time; everything else when the
      provider accepts.
    - Status only moves forward along the provider's pipeline.
    """

    @staticmethod
    def _get_or_create_for_provider(
        *,
        req: ServiceRequest,
        provider: Provider,
        lines: list[QuoteLine],
        status: str,
    ) -> tuple[FulfillmentOrder, bool]:
        order, created = FulfillmentOrder.objects.get_or_create(
            tenant_id=req.tenant_id,
            request=req,
            provider=provider,
            defaults={
                "patient_id": req.patient_id,
                "provider_type": provider.provider_type,
                "status": status,
                "payment_status": OrderPaymentStatus.PAID if req.payment_confirmed else OrderPaymentStatus.PENDING,
                "delivery_option": _delivery_option_for(req, provider),
                "total_amount": sum((ln.line_total for ln in lines), Decimal("0.00")),
            },
        )
        if created:
            OrderLine.objects.bulk_create(
                [
                    OrderLine(
                        tenant_id=req.tenant_id,
                        order=order,
                        name=ln.name,
                        dosage=ln.dosage,
                        quantity=ln.quantity,
                        unit_price=ln.unit_price,
                        line_total=ln.line_total,
                    )
                    for ln in lines
                ]
            )
        return order, created

    @staticmethod
    @transaction.atomic
    def open_lab_visit_orders(*, req: ServiceRequest) -> list[FulfillmentOrder]:
        """
        One pending, paid order per laboratory on the quote.
        Idempotent: re-running returns the existing orders.
        """
        by_provider: dict[UUID, list[QuoteLine]] = {}
        providers: dict[UUID, Provider] = {}
        for ln in QuoteLine.objects.select_related("provider").filter(tenant_id=req.tenant_id, request=req):
            if ln.provider.provider_type != ProviderType.LABORATORY:
                continue
            by_provider.setdefault(ln.provider_id, []).append(ln)
            providers[ln.provider_id] = ln.provider

        orders: list[FulfillmentOrder] = []
        for provider_id, lines in by_provider.items():
            order, created = OrderService._get_or_create_for_provider(
                req=req,
                provider=providers[provider_id],
                lines=lines,
                status=OrderStatus.PENDING,
            )
            if created:
                logger.info("Opened lab order %s for request %s", order.id, req.id)
            orders.append(order)
        return orders

    @staticmethod
    @transaction.atomic
    def accept_request(*, tenant_id: UUID, request_id: UUID, provider: Provider) -> FulfillmentOrder:
        """
        Provider takes on its share of a paid request.
        Find-or-create the provider's order and mark it accepted; repeat calls
        return the same order without moving it backwards.
        """
        req = ServiceRequest.objects.select_for_update().filter(id=request_id, tenant_id=tenant_id).first()
        if req is None:
            raise NotFound("Request not found.")

        if req.status == RequestStatus.CANCELLED:
            raise ValidationError({"detail": "Request has been cancelled."})
        if not req.payment_confirmed:
            raise ValidationError({"detail": "Payment not confirmed for this request."})

        lines = list(QuoteLine.objects.filter(tenant_id=tenant_id, request=req, provider=provider))
        if not lines:
            raise NotFound("This request has no items for your provider.")

        order, created = OrderService._get_or_create_for_provider(
            req=req,
            provider=provider,
            lines=lines,
            status=OrderStatus.ACCEPTED,
        )

        if order.status == OrderStatus.CANCELLED:
            raise ValidationError({"detail": "Order has been cancelled."})

        if order.status == OrderStatus.PENDING:
            order.status = OrderStatus.ACCEPTED
            order.accepted_at = timezone.now()
            order.save(update_fields=["status", "accepted_at", "updated_at"])
        elif created:
            order.accepted_at = timezone.now()
            order.save(update_fields=["accepted_at", "updated_at"])

        logger.info("Provider %s accepted request %s (order %s)", provider.id, req.id, order.id)
        return order

    @staticmethod
    @transaction.atomic
    def update_status(
        *,
        tenant_id: UUID,
        order_id: UUID,
        provider: Provider,
        status: str,
        reason: str = "",
    ) -> FulfillmentOrder:
        order = (
            FulfillmentOrder.objects.select_for_update()
            .filter(id=order_id, tenant_id=tenant_id, provider=provider)
            .first()
        )
        if order is None:
            raise NotFound("Order not found.")

        if order.status == status:
            return order

        if not rules.can_transition(order.provider_type, order.status, status):
            raise ValidationError(
                {
                    "status": f"Cannot move order from '{order.status}' to '{status}'.",
                    "allowed": rules.allowed_next(order.provider_type, order.status),
                }
            )

        now = timezone.now()
        order.status = status
        fields = ["status", "updated_at"]
        if status == OrderStatus.CANCELLED:
            order.cancelled_at = now
            order.cancellation_reason = reason or ""
            fields += ["cancelled_at", "cancellation_reason"]
        elif rules.is_fulfilled(status) and order.completed_at is None:
            order.completed_at = now
            fields.append("completed_at")
        order.save(update_fields=fields)

        OrderService._complete_request_if_fulfilled(request_id=order.request_id, tenant_id=tenant_id)
        return order

    @staticmethod
    def _complete_request_if_fulfilled(*, request_id: UUID, tenant_id: UUID) -> None:
        req = ServiceRequest.objects.select_for_update().get(id=request_id, tenant_id=tenant_id)
        if req.status != RequestStatus.CONFIRMED:
            return

        live = [
            o.status
            for o in FulfillmentOrder.objects.filter(tenant_id=tenant_id, request_id=request_id)
            if o.status != OrderStatus.CANCELLED
        ]
        if not live or not all(rules.is_fulfilled(s) for s in live):
            return

        # every quoted provider must have an order before the request can close
        quoted = set(
            QuoteLine.objects.filter(tenant_id=tenant_id, request_id=request_id).values_list("provider_id", flat=True)
        )
        ordered = set(
            FulfillmentOrder.objects.filter(tenant_id=tenant_id, request_id=request_id)
            .exclude(status=OrderStatus.CANCELLED)
            .values_list("provider_id", flat=True)
        )
        if not quoted.issubset(ordered):
            return

        req.status = RequestStatus.COMPLETED
        req.completed_at = timezone.now()
        req.save(update_fields=["status", "completed_at", "updated_at"])
        logger.info("Service request %s completed", req.id)
