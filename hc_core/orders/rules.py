# hc_core/orders/rules.py
"""
Provider-side order pipelines.

Orders only move forward along their provider's pipeline (steps may be
skipped) and can be cancelled from any non-terminal state.
"""
from __future__ import annotations

from hc_core.orders.models import OrderStatus
from hc_core.tenants.models import ProviderType

PIPELINES: dict[str, tuple[str, ...]] = {
    ProviderType.PHARMACY.value: (
        OrderStatus.PENDING.value,
        OrderStatus.ACCEPTED.value,
        OrderStatus.PRESCRIPTION_RECEIVED.value,
        OrderStatus.MEDICINE_COLLECTED.value,
        OrderStatus.PACKED.value,
        OrderStatus.READY_TO_BE_PICKED.value,
        OrderStatus.PICKED_UP.value,
        OrderStatus.DELIVERED.value,
        OrderStatus.COMPLETED.value,
    ),
    ProviderType.LABORATORY.value: (
        OrderStatus.PENDING.value,
        OrderStatus.ACCEPTED.value,
        OrderStatus.VISIT_TIME.value,
        OrderStatus.SAMPLE_COLLECTED.value,
        OrderStatus.BEING_TESTED.value,
        OrderStatus.REPORTS_BEING_GENERATED.value,
        OrderStatus.TEST_SUCCESSFUL.value,
        OrderStatus.REPORTS_UPDATED.value,
        OrderStatus.COMPLETED.value,
    ),
}

TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED.value, OrderStatus.CANCELLED.value})

# an order in one of these has delivered what the patient paid for
FULFILLED_STATUSES = frozenset(
    {OrderStatus.COMPLETED.value, OrderStatus.DELIVERED.value, OrderStatus.REPORTS_UPDATED.value}
)

# statuses that still allow the patient to cancel the whole request
NOT_STARTED_STATUSES = frozenset({OrderStatus.PENDING.value, OrderStatus.CANCELLED.value})


def allowed_next(provider_type: str, current: str) -> list[str]:
    current = str(current)
    if current in TERMINAL_STATUSES:
        return []
    pipeline = PIPELINES.get(str(provider_type), ())
    if current not in pipeline:
        return [OrderStatus.CANCELLED.value]
    idx = pipeline.index(current)
    return list(pipeline[idx + 1:]) + [OrderStatus.CANCELLED.value]


def can_transition(provider_type: str, current: str, target: str) -> bool:
    return str(target) in allowed_next(provider_type, current)


def has_started(status: str) -> bool:
    return str(status) not in NOT_STARTED_STATUSES


def is_fulfilled(status: str) -> bool:
    return str(status) in FULFILLED_STATUSES
