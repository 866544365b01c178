# hc_core/client/aggregator.py
"""
Request aggregation for the patient's requests screen.

Merges service requests with their fulfillment orders, groups quoted lines
by provider and derives the status shown to the patient.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable

from hc_core.client.normalizer import NOT_PROVIDED, first_of, format_address, status_label
from hc_core.common.money import to_decimal

logger = logging.getLogger(__name__)

LAB = "lab"
PHARMACY = "pharmacy"

KIND_ALIASES = {
    "book_test_visit": LAB,
    "lab": LAB,
    "laboratory": LAB,
    "test": LAB,
    "order_medicine": PHARMACY,
    "pharmacy": PHARMACY,
    "medicine": PHARMACY,
}

# once paid, the request never shows one of these again
PRE_CONFIRMATION_STATUSES = frozenset({"pending", "accepted", "paid"})

# an order in any other status means its provider has taken the request on
NOT_STARTED_ORDER_STATUSES = frozenset({"pending", "cancelled"})

HOME_VISIT = "home"

# pharmacies are never named to the patient
PHARMACY_DISPLAY_NAME = "Prescription Medicines"
LAB_DISPLAY_NAME = "Laboratory"


def canonical_kind(value: Any) -> str:
    text = str(value or "").strip().lower()
    return KIND_ALIASES.get(text, text)


@dataclass(frozen=True)
class LineItem:
    name: str
    price: Decimal
    quantity: int = 1
    dosage: str = ""

    @property
    def total(self) -> Decimal:
        return self.price * self.quantity


@dataclass(frozen=True)
class ProviderGroup:
    provider_id: str
    provider_name: str
    items: tuple[LineItem, ...]
    subtotal: Decimal


def _quantity(value: Any) -> int:
    try:
        qty = int(value)
    except (TypeError, ValueError):
        return 1
    return qty if qty > 0 else 1


def _group(lines: Iterable[Any], *, id_key: str, name_key: str, placeholder: str, item_name_paths, by_quantity: bool):
    groups: dict[str, dict] = {}
    for line in lines or ():
        if not isinstance(line, dict):
            continue
        key = str(line.get(id_key) or "unknown")
        group = groups.setdefault(key, {"name": line.get(name_key) or placeholder, "items": []})
        group["items"].append(
            LineItem(
                name=str(first_of(line, item_name_paths, default="")),
                price=to_decimal(line.get("price")) or Decimal("0"),
                quantity=_quantity(first_of(line, ("quantity", "qty"))) if by_quantity else 1,
                dosage=str(line.get("dosage") or ""),
            )
        )

    return [
        ProviderGroup(
            provider_id=key,
            provider_name=str(group["name"]),
            items=tuple(group["items"]),
            subtotal=sum((item.total for item in group["items"]), Decimal("0")),
        )
        for key, group in groups.items()
    ]


def group_medicines(medicines: Iterable[Any]) -> list[ProviderGroup]:
    """Medicines per pharmacy; subtotal is sum(price * quantity)."""
    return _group(
        medicines,
        id_key="pharmacyId",
        name_key="pharmacyName",
        placeholder="Pharmacy",
        item_name_paths=("name", "medicineName"),
        by_quantity=True,
    )


def group_tests(tests: Iterable[Any]) -> list[ProviderGroup]:
    """Tests per laboratory; subtotal is sum(price)."""
    return _group(
        tests,
        id_key="labId",
        name_key="labName",
        placeholder="Laboratory",
        item_name_paths=("testName", "name"),
        by_quantity=False,
    )


def effective_status(request_status: Any, orders: Iterable[Any] = ()) -> str:
    """
    The latest order's status wins over the request's own, except that a
    confirmed request never goes back to a pre-confirmation status.
    """
    request_status = str(request_status or "").strip()
    latest = None
    for order in orders or ():
        if isinstance(order, dict) and order.get("status"):
            latest = str(order["status"])

    status = latest or request_status or "pending"
    if request_status == "confirmed" and status in PRE_CONFIRMATION_STATUSES:
        return "confirmed"
    return status


def parse_timestamp(value: Any) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class ProviderContact:
    provider_id: str
    name: str
    address: str = NOT_PROVIDED
    phone: str = NOT_PROVIDED


@dataclass(frozen=True)
class RequestView:
    id: str
    kind: str
    status: str
    request_status: str
    status_label: str
    created_at: str | None
    total_amount: Decimal | None
    currency: str = "INR"
    visit_type: str = ""
    prescription_id: str = ""
    message: str = ""
    response_date: str | None = None
    payment_confirmed: bool = False
    cancel_reason: str = ""
    medicine_groups: tuple[ProviderGroup, ...] = ()
    test_groups: tuple[ProviderGroup, ...] = ()
    orders: tuple[dict, ...] = ()
    raw: dict = field(default_factory=dict, compare=False, repr=False)

    @property
    def awaiting_quote(self) -> bool:
        return not (self.medicine_groups or self.test_groups)

    @property
    def can_pay(self) -> bool:
        return (
            self.request_status == "accepted"
            and not self.payment_confirmed
            and not self.awaiting_quote
            and self.total_amount is not None
            and self.total_amount > 0
        )

    @property
    def is_cancelled(self) -> bool:
        return self.request_status == "cancelled" or self.status == "cancelled"

    @property
    def accepted_orders(self) -> list[dict]:
        return [o for o in self.orders if str(o.get("status") or "pending") not in NOT_STARTED_ORDER_STATUSES]

    @property
    def provider_contact(self) -> ProviderContact | None:
        """
        The laboratory disclosed to the patient.

        Lab visit: the quoted lab, since the patient travels to it.
        Home collection: the lab whose order was accepted; None until then.
        Pharmacy requests never disclose a provider.
        """
        if self.kind != LAB:
            return None

        if self.visit_type == HOME_VISIT:
            accepted = self.accepted_orders
            if not accepted:
                return None
            order = accepted[0]
            provider_id = str(first_of(order, ("providerId", "provider.id"), default=""))
            quoted = next((g for g in self.test_groups if g.provider_id == provider_id), None)
            return _contact(provider_id, order, quoted.provider_name if quoted else None)

        if not self.test_groups:
            return None
        group = self.test_groups[0]
        order = next((o for o in self.orders if str(o.get("providerId") or "") == group.provider_id), {})
        return _contact(group.provider_id, order, group.provider_name)

    @property
    def provider_name(self) -> str:
        if self.kind == PHARMACY:
            return PHARMACY_DISPLAY_NAME
        if self.kind == LAB:
            contact = self.provider_contact
            return contact.name if contact else LAB_DISPLAY_NAME
        return ""


def _contact(provider_id: str, order: dict, quoted_name: str | None) -> ProviderContact:
    provider = order.get("provider") if isinstance(order.get("provider"), dict) else {}
    return ProviderContact(
        provider_id=provider_id,
        name=str(first_of(provider, ("name", "labName")) or quoted_name or LAB_DISPLAY_NAME),
        address=format_address(provider.get("address")) or NOT_PROVIDED,
        phone=str(first_of(provider, ("phone",), default=NOT_PROVIDED)),
    )


def build_request_view(raw: dict, orders: Iterable[dict] = ()) -> RequestView:
    response = raw.get("adminResponse") if isinstance(raw.get("adminResponse"), dict) else {}

    embedded = [o for o in raw.get("orders") or () if isinstance(o, dict)]
    seen = {str(o.get("id")) for o in embedded}
    merged = embedded + [o for o in orders if str(o.get("id")) not in seen]
    merged.sort(key=lambda o: parse_timestamp(o.get("createdAt")) or datetime.min.replace(tzinfo=timezone.utc))

    request_status = str(raw.get("status") or "pending")
    status = effective_status(request_status, merged)

    return RequestView(
        id=str(raw.get("id") or raw.get("_id") or ""),
        kind=canonical_kind(raw.get("type")),
        status=status,
        request_status=request_status,
        status_label=status_label(status),
        created_at=first_of(raw, ("createdAt", "requestDate")),
        total_amount=to_decimal(first_of(raw, ("adminResponse.totalAmount", "totalAmount"))),
        currency=str(raw.get("currency") or "INR"),
        visit_type=str(raw.get("visitType") or ""),
        prescription_id=str(raw.get("prescriptionId") or ""),
        message=str(response.get("message") or ""),
        response_date=response.get("responseDate"),
        payment_confirmed=bool(raw.get("paymentConfirmed")),
        cancel_reason=str(raw.get("cancelReason") or ""),
        medicine_groups=tuple(group_medicines(response.get("medicines") or ())),
        test_groups=tuple(group_tests(response.get("tests") or ())),
        orders=tuple(merged),
        raw=raw,
    )


def aggregate_requests(raw_requests: Iterable[Any], raw_orders: Iterable[Any] = ()) -> list[RequestView]:
    """
    One RequestView per request, newest first. Orders listed separately are
    attached to their request via requestId; ties keep server order.
    """
    orders_by_request: dict[str, list[dict]] = {}
    for order in raw_orders or ():
        if isinstance(order, dict) and order.get("requestId"):
            orders_by_request.setdefault(str(order["requestId"]), []).append(order)

    views = []
    for raw in raw_requests or ():
        if not isinstance(raw, dict):
            logger.warning("Skipping malformed request record of type %s", type(raw).__name__)
            continue
        views.append(build_request_view(raw, orders_by_request.get(str(raw.get("id")), ())))

    def sort_key(view: RequestView):
        ts = parse_timestamp(view.created_at)
        return (ts is not None, ts or datetime.min.replace(tzinfo=timezone.utc))

    return sorted(views, key=sort_key, reverse=True)
