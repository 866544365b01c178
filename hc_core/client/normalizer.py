# hc_core/client/normalizer.py
"""
Record normalization for heterogeneous list payloads.

Records arrive from several endpoints (and older payload shapes) with the
same fact under different keys. Every field below is resolved from an
ordered precedence list: the first populated path wins. Missing or odd data
degrades to a placeholder; normalize_record never raises.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable
from urllib.parse import quote

from hc_core.common.money import to_decimal

logger = logging.getLogger(__name__)

APPOINTMENT = "appointment"
LAB_ORDER = "lab_order"
PHARMACY_ORDER = "pharmacy_order"
TRANSACTION = "transaction"

RECORD_KINDS = (APPOINTMENT, LAB_ORDER, PHARMACY_ORDER, TRANSACTION)

UNKNOWN_PATIENT = "Unknown Patient"
NOT_PROVIDED = "Not provided"

AVATAR_URL = "https://ui-avatars.com/api/?name={name}&background=3b82f6&color=fff&size=128"

ID_PATHS = ("id", "_id", "orderId", "requestId")
STATUS_PATHS = ("status", "orderStatus", "request.status")
AMOUNT_PATHS = ("totalAmount", "amount", "fee", "adminResponse.totalAmount", "request.totalAmount")
DATE_PATHS = ("createdAt", "appointmentDate", "requestDate", "paidAt", "date")
ITEM_LIST_PATHS = ("items", "tests", "medicines", "investigations")
ITEM_NAME_PATHS = ("name", "testName", "medicineName", "title")

# where the counterparty entity lives, per viewer
PATIENT_ENTITY_PATHS = ("patient", "patientId", "request.patient")
PROVIDER_ENTITY_PATHS = {
    APPOINTMENT: ("doctor", "doctorId", "provider"),
    LAB_ORDER: ("provider", "laboratory", "lab", "providerId", "labId"),
    PHARMACY_ORDER: ("provider", "pharmacy", "providerId", "pharmacyId"),
    TRANSACTION: ("provider", "doctor", "laboratory", "pharmacy"),
}

PATIENT_NAME_FALLBACK_PATHS = ("patientName", "patient_name")
PROVIDER_NAME_FALLBACK_PATHS = ("providerName", "doctorName", "labName", "pharmacyName")
ENTITY_NAME_PATHS = ("name", "labName", "pharmacyName", "fullName")

IMAGE_PATHS = ("profileImage", "avatar", "image")
PHONE_PATHS = ("phone", "phoneNumber", "mobile", "contact.phone")
ADDRESS_PATHS = ("address", "deliveryAddress", "location")

PROVIDER_PLACEHOLDER = {
    APPOINTMENT: "Doctor",
    LAB_ORDER: "Laboratory",
    PHARMACY_ORDER: "Pharmacy",
    TRANSACTION: "Healiinn",
}

RECORD_TYPES = {
    APPOINTMENT: "appointment",
    LAB_ORDER: "lab",
    PHARMACY_ORDER: "pharmacy",
    TRANSACTION: "payment",
}

# display-only; the stored status keeps its own value
STATUS_LABELS = {
    "pending": "Pending",
    "accepted": "Payment Pending",
    "paid": "Processing",
    "confirmed": "Paid",
    "completed": "Request Accepted",
}


@dataclass(frozen=True)
class RecordView:
    id: str
    kind: str
    type: str
    status: str
    status_label: str
    amount: Decimal
    date: str | None
    counterparty_name: str
    counterparty_image: str
    counterparty_phone: str
    counterparty_address: str
    items: tuple[str, ...] = ()
    raw: dict = field(default_factory=dict, compare=False, repr=False)


def _populated(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, dict)):
        return bool(value)
    return True


def resolve(raw: Any, path: str) -> Any:
    """Dotted lookup that stops quietly at anything that is not a dict."""
    current = raw
    for part in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
    return current


def first_of(raw: Any, paths: Iterable[str], default: Any = None) -> Any:
    for path in paths:
        value = resolve(raw, path)
        if _populated(value):
            return value
    return default


def status_label(status: Any) -> str:
    """
    accepted -> "Payment Pending", completed -> "Request Accepted", ...
    anything else is title-cased with underscores as spaces.
    """
    text = str(status or "").strip()
    if not text:
        return STATUS_LABELS["pending"]
    label = STATUS_LABELS.get(text.lower())
    if label:
        return label
    return title_case(text)


def title_case(status: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in str(status).split("_") if word)


def avatar_url(name: str | None) -> str:
    return AVATAR_URL.format(name=quote(name or UNKNOWN_PATIENT, safe=""))


def _entity_name(entity: Any) -> str | None:
    if isinstance(entity, str):
        return None
    first = str(resolve(entity, "firstName") or "").strip()
    last = str(resolve(entity, "lastName") or "").strip()
    full = " ".join(p for p in (first, last) if p)
    if full:
        return full
    name = first_of(entity, ENTITY_NAME_PATHS)
    return str(name).strip() if name is not None else None


def format_address(value: Any) -> str | None:
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, dict):
        parts = [
            value.get("line1"),
            value.get("line2"),
            value.get("city"),
            value.get("state"),
            value.get("pincode") or value.get("postalCode"),
        ]
        text = ", ".join(str(p).strip() for p in parts if _populated(p))
        return text or None
    return None


def _counterparty(raw: dict, kind: str, viewer: str) -> tuple[str, str, str, str]:
    if viewer == "provider":
        entity = first_of(raw, PATIENT_ENTITY_PATHS)
        fallback_names = PATIENT_NAME_FALLBACK_PATHS
        placeholder = UNKNOWN_PATIENT
    else:
        entity = first_of(raw, PROVIDER_ENTITY_PATHS.get(kind, ()))
        fallback_names = PROVIDER_NAME_FALLBACK_PATHS
        placeholder = PROVIDER_PLACEHOLDER.get(kind, "Provider")

    entity = entity if isinstance(entity, dict) else {}

    name = _entity_name(entity) or first_of(raw, fallback_names) or placeholder
    name = str(name)
    image = first_of(entity, IMAGE_PATHS) or avatar_url(name)
    phone = first_of(entity, PHONE_PATHS) or first_of(raw, ("patientPhone", "phone")) or NOT_PROVIDED
    address = (
        format_address(first_of(entity, ADDRESS_PATHS))
        or format_address(first_of(raw, ("patientAddress",) + ADDRESS_PATHS))
        or NOT_PROVIDED
    )
    return name, str(image), str(phone), address


def _item_names(raw: dict) -> tuple[str, ...]:
    items = first_of(raw, ITEM_LIST_PATHS, default=[])
    if not isinstance(items, list):
        return ()
    names = []
    for item in items:
        if isinstance(item, str):
            name = item
        else:
            name = first_of(item, ITEM_NAME_PATHS)
        if _populated(name):
            names.append(str(name))
    return tuple(names)


def normalize_record(raw: Any, kind: str, *, viewer: str = "patient") -> RecordView:
    """
    Map one raw record onto the canonical RecordView.

    kind: appointment | lab_order | pharmacy_order | transaction.
    viewer: "patient" shows the provider as counterparty, "provider" the patient.
    """
    if not isinstance(raw, dict):
        logger.debug("Normalizing non-dict %s record: %r", kind, type(raw).__name__)
        raw = {}

    default_status = "completed" if kind == TRANSACTION else "pending"
    status = str(first_of(raw, STATUS_PATHS, default=default_status)).strip()
    amount = to_decimal(first_of(raw, AMOUNT_PATHS)) or Decimal("0")
    date = first_of(raw, DATE_PATHS)
    name, image, phone, address = _counterparty(raw, kind, viewer)

    record_type = RECORD_TYPES.get(kind, str(kind))
    if kind == TRANSACTION:
        record_type = str(first_of(raw, ("type", "transactionType"), default="payment"))

    return RecordView(
        id=str(first_of(raw, ID_PATHS, default="")),
        kind=kind,
        type=record_type,
        status=status,
        status_label=title_case(status) if kind == TRANSACTION else status_label(status),
        amount=amount,
        date=str(date) if date is not None else None,
        counterparty_name=name,
        counterparty_image=image,
        counterparty_phone=phone,
        counterparty_address=address,
        items=_item_names(raw),
        raw=raw,
    )


def normalize_records(raws: Iterable[Any], kind: str, *, viewer: str = "patient") -> list[RecordView]:
    return [normalize_record(raw, kind, viewer=viewer) for raw in raws or ()]
