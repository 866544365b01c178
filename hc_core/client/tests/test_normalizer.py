# hc_core/client/tests/test_normalizer.py
from decimal import Decimal

import pytest

from hc_core.client.normalizer import (
    LAB_ORDER,
    NOT_PROVIDED,
    PHARMACY_ORDER,
    TRANSACTION,
    UNKNOWN_PATIENT,
    APPOINTMENT,
    avatar_url,
    normalize_record,
    status_label,
)


def test_nested_entity_fields_win_over_denormalized_ones():
    raw = {
        "id": "o1",
        "status": "accepted",
        "totalAmount": "250.50",
        "createdAt": "2026-01-10T10:00:00Z",
        "patient": {"firstName": "Asha", "lastName": "Rao", "phone": "9000000001", "profileImage": "https://img/a.png"},
        "patientName": "Someone Else",
        "patientPhone": "9999999999",
    }

    view = normalize_record(raw, LAB_ORDER, viewer="provider")

    assert view.id == "o1"
    assert view.type == "lab"
    assert view.amount == Decimal("250.50")
    assert view.date == "2026-01-10T10:00:00Z"
    assert view.counterparty_name == "Asha Rao"
    assert view.counterparty_phone == "9000000001"
    assert view.counterparty_image == "https://img/a.png"


def test_falls_back_to_top_level_then_placeholders():
    view = normalize_record({"_id": "x", "patientName": "Ravi K"}, PHARMACY_ORDER, viewer="provider")
    assert view.id == "x"
    assert view.counterparty_name == "Ravi K"
    assert view.counterparty_image == avatar_url("Ravi K")
    assert view.counterparty_phone == NOT_PROVIDED
    assert view.counterparty_address == NOT_PROVIDED

    bare = normalize_record({"id": "y"}, PHARMACY_ORDER, viewer="provider")
    assert bare.counterparty_name == UNKNOWN_PATIENT
    assert "Unknown%20Patient" in bare.counterparty_image


@pytest.mark.parametrize(
    "raw",
    [
        None,
        "not-a-record",
        {"patient": "6650a1", "amount": "abc", "items": "oops"},
        {"patient": {"firstName": None}, "provider": [], "adminResponse": "x"},
        {"totalAmount": "NaN"},
        {"amount": "Infinity", "adminResponse": {"totalAmount": "-Infinity"}},
        {"amount": float("nan")},
    ],
)
def test_malformed_records_degrade_without_raising(raw):
    view = normalize_record(raw, APPOINTMENT, viewer="provider")
    assert view.id == ""
    assert view.status == "pending"
    assert view.amount == Decimal("0")
    assert view.date is None
    assert view.counterparty_name == UNKNOWN_PATIENT
    assert view.items == ()


def test_patient_viewer_sees_provider_with_kind_placeholder():
    with_provider = normalize_record(
        {"id": "o1", "provider": {"name": "City Pharmacy", "address": {"line1": "1 Main Rd", "city": "Pune"}}},
        PHARMACY_ORDER,
    )
    assert with_provider.counterparty_name == "City Pharmacy"
    assert with_provider.counterparty_address == "1 Main Rd, Pune"

    assert normalize_record({"id": "o2"}, LAB_ORDER).counterparty_name == "Laboratory"
    assert normalize_record({"id": "o3"}, PHARMACY_ORDER).counterparty_name == "Pharmacy"


def test_amount_precedence_uses_first_populated_field():
    view = normalize_record({"amount": 120, "adminResponse": {"totalAmount": 999}}, LAB_ORDER)
    assert view.amount == Decimal("120")

    quoted = normalize_record({"totalAmount": None, "adminResponse": {"totalAmount": 300}}, LAB_ORDER)
    assert quoted.amount == Decimal("300")


def test_item_names_from_mixed_shapes():
    view = normalize_record({"items": [{"name": "Paracetamol"}, {"testName": "CBC"}, "Vitamin D", {}]}, LAB_ORDER)
    assert view.items == ("Paracetamol", "CBC", "Vitamin D")


@pytest.mark.parametrize(
    "status,label",
    [
        ("pending", "Pending"),
        ("accepted", "Payment Pending"),
        ("paid", "Processing"),
        ("confirmed", "Paid"),
        ("completed", "Request Accepted"),
        ("sample_collected", "Sample Collected"),
        ("out_for_delivery", "Out For Delivery"),
        ("", "Pending"),
        (None, "Pending"),
    ],
)
def test_status_label(status, label):
    assert status_label(status) == label


def test_completed_label_does_not_rename_status():
    view = normalize_record({"id": "r", "status": "completed"}, PHARMACY_ORDER)
    assert view.status == "completed"
    assert view.status_label == "Request Accepted"


def test_unknown_status_passes_through():
    view = normalize_record({"status": "ready_for_pickup"}, PHARMACY_ORDER)
    assert view.status == "ready_for_pickup"
    assert view.status_label == "Ready For Pickup"


def test_transaction_defaults():
    view = normalize_record({"id": "t1", "transactionType": "refund", "amount": 45}, TRANSACTION)
    assert view.type == "refund"
    assert view.status == "completed"
    assert view.status_label == "Completed"
    assert view.counterparty_name == "Healiinn"
