# hc_core/service_requests/rules.py
from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from hc_core.service_requests.models import RequestStatus

# statuses an admin may (re)price from
PRICEABLE_STATUSES = frozenset({RequestStatus.PENDING.value, RequestStatus.ACCEPTED.value})

# terminal for cancellation purposes
CLOSED_STATUSES = frozenset({RequestStatus.COMPLETED.value, RequestStatus.CANCELLED.value})


def quote_total(*, medicines: Iterable[dict], tests: Iterable[dict]) -> Decimal:
    """
    totalAmount = sum(price * quantity) over medicines + sum(price) over tests.
    """
    total = Decimal("0.00")
    for m in medicines:
        total += Decimal(str(m.get("price") or 0)) * int(m.get("quantity") or 1)
    for t in tests:
        total += Decimal(str(t.get("price") or 0))
    return total.quantize(Decimal("0.01"))


def is_payable(*, status: str, payment_confirmed: bool, total_amount, has_lines: bool) -> bool:
    return (
        str(status) == RequestStatus.ACCEPTED.value
        and not payment_confirmed
        and has_lines
        and total_amount is not None
        and total_amount > 0
    )
