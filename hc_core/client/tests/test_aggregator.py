# hc_core/client/tests/test_aggregator.py
from decimal import Decimal

import pytest

from hc_core.client.aggregator import (
    PRE_CONFIRMATION_STATUSES,
    aggregate_requests,
    canonical_kind,
    effective_status,
    group_medicines,
    group_tests,
)
from hc_core.client.tests.conftest import raw_request


@pytest.mark.parametrize(
    "value,expected",
    [
        ("book_test_visit", "lab"),
        ("lab", "lab"),
        ("Laboratory", "lab"),
        ("order_medicine", "pharmacy"),
        ("pharmacy", "pharmacy"),
        ("home_visit", "home_visit"),
        (None, ""),
    ],
)
def test_canonical_kind(value, expected):
    assert canonical_kind(value) == expected


def test_medicines_grouped_per_pharmacy_with_subtotals():
    groups = group_medicines(
        [
            {"pharmacyId": "A", "pharmacyName": "Alpha", "name": "m1", "price": 10, "qty": 2},
            {"pharmacyId": "A", "name": "m2", "price": 5, "qty": 1},
            {"pharmacyId": "B", "pharmacyName": "Beta", "name": "m3", "price": 20, "quantity": 1},
        ]
    )

    assert [(g.provider_id, g.provider_name, g.subtotal) for g in groups] == [
        ("A", "Alpha", Decimal("25")),
        ("B", "Beta", Decimal("20")),
    ]
    assert [i.name for i in groups[0].items] == ["m1", "m2"]


def test_tests_grouped_per_lab_ignore_quantity():
    groups = group_tests(
        [
            {"labId": "L1", "labName": "Prime", "testName": "CBC", "price": 300, "quantity": 3},
            {"labId": "L1", "testName": "Lipid", "price": "800"},
            {"testName": "Thyroid", "price": 100},
        ]
    )
    assert [(g.provider_id, g.provider_name, g.subtotal) for g in groups] == [
        ("L1", "Prime", Decimal("1100")),
        ("unknown", "Laboratory", Decimal("100")),
    ]


def test_total_is_read_from_the_authoritative_field():
    medicines = [
        {"pharmacyId": "A", "price": 10, "qty": 2},
        {"pharmacyId": "A", "price": 5, "qty": 1},
        {"pharmacyId": "B", "price": 20, "qty": 1},
    ]
    agreeing = aggregate_requests([raw_request("r1", medicines=medicines, total=45)])[0]
    assert agreeing.total_amount == Decimal("45")

    disagreeing = aggregate_requests([raw_request("r2", medicines=medicines, total=50)])[0]
    assert sum(g.subtotal for g in disagreeing.medicine_groups) == Decimal("45")
    assert disagreeing.total_amount == Decimal("50")


@pytest.mark.parametrize(
    "request_status,order_statuses,expected",
    [
        ("pending", [], "pending"),
        ("", [], "pending"),
        (None, [], "pending"),
        ("accepted", [], "accepted"),
        ("accepted", ["accepted"], "accepted"),
        ("confirmed", [], "confirmed"),
        ("confirmed", ["pending"], "confirmed"),
        ("confirmed", ["accepted"], "confirmed"),
        ("confirmed", ["paid"], "confirmed"),
        ("confirmed", ["sample_collected"], "sample_collected"),
        ("confirmed", ["completed", "accepted"], "confirmed"),
        ("confirmed", ["accepted", "delivered"], "delivered"),
        ("confirmed", ["cancelled"], "cancelled"),
        ("completed", ["delivered"], "delivered"),
        ("cancelled", ["cancelled"], "cancelled"),
        ("pending", [None, "accepted"], "accepted"),
    ],
)
def test_effective_status(request_status, order_statuses, expected):
    orders = [{"status": s} if s else {} for s in order_statuses]
    assert effective_status(request_status, orders) == expected


@pytest.mark.parametrize("order_status", sorted(PRE_CONFIRMATION_STATUSES))
def test_confirmed_request_never_shows_an_earlier_status(order_status):
    view = aggregate_requests(
        [raw_request("r1", status="confirmed", orders=[{"id": "o1", "status": order_status}], payment_confirmed=True)]
    )[0]
    assert view.status == "confirmed"
    assert view.status_label == "Paid"


def test_sorted_newest_first_with_stable_ties_and_undated_last():
    views = aggregate_requests(
        [
            raw_request("old", created_at="2026-01-01T09:00:00Z"),
            raw_request("tie-a", created_at="2026-01-05T09:00:00+00:00"),
            {"id": "undated", "status": "pending"},
            raw_request("tie-b", created_at="2026-01-05T09:00:00Z"),
            raw_request("new", created_at="2026-01-09T09:00:00Z"),
        ]
    )
    assert [v.id for v in views] == ["new", "tie-a", "tie-b", "old", "undated"]


def test_request_without_quote_is_waiting_not_failing():
    view = aggregate_requests([{"id": "r1", "type": "order_medicine", "status": "pending", "adminResponse": None}])[0]
    assert view.awaiting_quote
    assert view.medicine_groups == ()
    assert view.test_groups == ()
    assert view.total_amount is None
    assert not view.can_pay


def test_can_pay_needs_accepted_status_total_and_lines():
    tests = [{"labId": "L1", "testName": "CBC", "price": 300}]
    payable = aggregate_requests([raw_request("r1", type="lab", tests=tests, total=300)])[0]
    assert payable.kind == "lab"
    assert payable.can_pay

    zero = aggregate_requests([raw_request("r2", tests=tests, total=0)])[0]
    assert not zero.can_pay

    paid = aggregate_requests([raw_request("r3", status="confirmed", tests=tests, total=300, payment_confirmed=True)])[0]
    assert not paid.can_pay

    for junk in ("NaN", "Infinity", float("nan")):
        view = aggregate_requests([raw_request("r4", tests=tests, total=junk)])[0]
        assert view.total_amount is None
        assert not view.can_pay


def test_separately_listed_orders_attach_by_request_id():
    views = aggregate_requests(
        [raw_request("r1", status="confirmed", payment_confirmed=True, orders=[{"id": "o1", "status": "accepted"}])],
        [
            {"id": "o1", "requestId": "r1", "status": "accepted", "createdAt": "2026-01-10T11:00:00Z"},
            {"id": "o2", "requestId": "r1", "status": "sample_collected", "createdAt": "2026-01-10T12:00:00Z"},
            {"id": "o9", "requestId": "other", "status": "delivered"},
        ],
    )
    view = views[0]
    assert [o["id"] for o in view.orders] == ["o1", "o2"]
    assert view.status == "sample_collected"


def test_malformed_entries_are_skipped():
    views = aggregate_requests([None, "junk", raw_request("r1")])
    assert [v.id for v in views] == ["r1"]


LAB_QUOTE = [
    {"labId": "L1", "labName": "Prime Diagnostics", "testName": "CBC", "price": 400},
    {"labId": "L2", "labName": "Metro Labs", "testName": "Lipid", "price": 800},
]
ACCEPTED_BY_L2 = {
    "id": "o2",
    "providerId": "L2",
    "status": "accepted",
    "provider": {"id": "L2", "name": "Metro Labs", "phone": "020-5550101", "address": "12 Hill Rd, Pune"},
}


def _lab_view(visit_type, orders=()):
    return aggregate_requests(
        [raw_request("r1", type="book_test_visit", status="confirmed", tests=LAB_QUOTE, total=1200,
                     payment_confirmed=True, visit_type=visit_type, orders=orders)]
    )[0]


def test_lab_visit_discloses_quoted_lab_before_acceptance():
    view = _lab_view("lab")
    assert view.provider_contact.provider_id == "L1"
    assert view.provider_contact.name == "Prime Diagnostics"
    assert view.provider_contact.address == "Not provided"
    assert view.provider_name == "Prime Diagnostics"


def test_lab_visit_uses_order_details_once_available():
    order = {"id": "o1", "providerId": "L1", "status": "accepted",
             "provider": {"id": "L1", "name": "Prime Diagnostics", "phone": "020-5550100", "address": "4 MG Rd, Pune"}}
    contact = _lab_view("lab", orders=[order]).provider_contact
    assert contact.address == "4 MG Rd, Pune"
    assert contact.phone == "020-5550100"


def test_home_collection_hides_lab_until_an_order_is_accepted():
    before = _lab_view("home")
    assert before.provider_contact is None
    assert before.provider_name == "Laboratory"

    pending = _lab_view("home", orders=[{"id": "o1", "providerId": "L1", "status": "pending"}])
    assert pending.provider_contact is None

    after = _lab_view("home", orders=[{"id": "o1", "providerId": "L1", "status": "cancelled"}, ACCEPTED_BY_L2])
    assert after.provider_contact.provider_id == "L2"
    assert after.provider_contact.name == "Metro Labs"
    assert after.provider_contact.phone == "020-5550101"
    assert after.provider_name == "Metro Labs"


def test_pharmacy_names_are_never_disclosed():
    medicines = [{"pharmacyId": "A", "pharmacyName": "City Pharmacy", "name": "m1", "price": 10}]
    order = {"id": "o1", "providerId": "A", "status": "accepted", "provider": {"id": "A", "name": "City Pharmacy"}}
    view = aggregate_requests(
        [raw_request("r1", status="confirmed", medicines=medicines, total=10, payment_confirmed=True, orders=[order])]
    )[0]
    assert view.provider_contact is None
    assert view.provider_name == "Prescription Medicines"
