# hc_core/notifications/subscribers.py
import logging
from uuid import UUID

from hc_core.common.events import subscribe
from hc_core.notifications.models import NotificationKind
from hc_core.notifications.services import ProviderNotificationService

logger = logging.getLogger(__name__)


@subscribe("service_request.cancelled")
def on_request_cancelled(payload: dict) -> None:
    provider_ids = [UUID(p) for p in payload.get("provider_ids") or []]
    if not provider_ids:
        return

    reason = payload.get("reason") or ""
    ProviderNotificationService.notify_providers(
        tenant_id=UUID(payload["tenant_id"]),
        provider_ids=provider_ids,
        kind=NotificationKind.REQUEST_CANCELLED,
        request_id=UUID(payload["request_id"]),
        title="Request cancelled by patient",
        message=f"Reason: {reason}" if reason else "No reason given.",
        meta={"reason": reason, "was_paid": bool(payload.get("was_paid"))},
    )
    logger.info("Notified %d provider(s) of cancellation of %s", len(provider_ids), payload["request_id"])


@subscribe("service_request.paid")
def on_request_paid(payload: dict) -> None:
    provider_ids = [UUID(p) for p in payload.get("provider_ids") or []]
    if not provider_ids:
        return

    ProviderNotificationService.notify_providers(
        tenant_id=UUID(payload["tenant_id"]),
        provider_ids=provider_ids,
        kind=NotificationKind.REQUEST_PAID,
        request_id=UUID(payload["request_id"]),
        title="New paid request",
        message="Payment received. Accept the request to start fulfillment.",
        meta={"amount": payload.get("amount")},
    )
