# hc_core/client/payments.py
"""
Patient-side payment flow.

idle -> order_created -> gateway_open -> verifying -> confirmed | failed

Only one attempt runs at a time. A second pay() for the same request waits
on the running attempt instead of opening another gateway order; pay() for
any other request meanwhile returns an idle attempt carrying a ValidationError.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Protocol

from hc_core.client.board import RequestBoard
from hc_core.client.errors import ClientError, NetworkError, OrderCreationError, ValidationError
from hc_core.client.notify import LoggingNotifier, Notifier
from hc_core.common.money import to_minor_units

logger = logging.getLogger(__name__)

DEFAULT_MERCHANT_NAME = "Healiinn"
DEFAULT_THEME_COLOR = "#11496c"


class PaymentState(str, Enum):
    IDLE = "idle"
    ORDER_CREATED = "order_created"
    GATEWAY_OPEN = "gateway_open"
    VERIFYING = "verifying"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass(frozen=True)
class GatewayResult:
    payment_id: str
    order_id: str
    signature: str


@dataclass
class CheckoutOptions:
    key: str
    amount: int
    currency: str
    order_id: str
    name: str
    description: str
    on_success: Callable[[GatewayResult], None]
    on_dismiss: Callable[[], None]
    prefill: dict = field(default_factory=dict)
    theme_color: str = DEFAULT_THEME_COLOR


class CheckoutGateway(Protocol):
    """Hosted checkout widget; reports back through the option callbacks."""

    def open(self, options: CheckoutOptions) -> None: ...


@dataclass
class PaymentAttempt:
    request_id: str
    state: PaymentState = PaymentState.IDLE
    idempotency_key: str = field(default_factory=lambda: uuid.uuid4().hex)
    order: dict | None = None
    confirmation: dict | None = None
    error: ClientError | None = None


class PaymentOrchestrator:
    def __init__(
        self,
        api,
        board: RequestBoard,
        gateway: CheckoutGateway,
        *,
        notifier: Notifier | None = None,
        prefill: dict | None = None,
        merchant_name: str = DEFAULT_MERCHANT_NAME,
        gateway_key: str = "",
        verify_retries: int = 1,
    ):
        self._api = api
        self._board = board
        self._gateway = gateway
        self._notifier = notifier or LoggingNotifier()
        self._prefill = prefill or {}
        self._merchant_name = merchant_name
        self._gateway_key = gateway_key
        self._verify_retries = verify_retries
        self._task: asyncio.Task | None = None
        self._task_request_id: str | None = None
        self.attempt: PaymentAttempt | None = None

    @property
    def state(self) -> PaymentState:
        return self.attempt.state if self.attempt else PaymentState.IDLE

    @property
    def busy(self) -> bool:
        return self._task is not None and not self._task.done()

    async def pay(self, request_id: str) -> PaymentAttempt:
        request_id = str(request_id)
        if self.busy:
            if request_id != self._task_request_id:
                logger.info("Payment for request %s in progress; rejecting pay for %s", self._task_request_id, request_id)
                attempt = PaymentAttempt(request_id=request_id)
                attempt.error = ValidationError("Another payment is already in progress.")
                self._notifier.error(attempt.error.message)
                return attempt
            logger.info("Payment already in progress; joining attempt for request %s", request_id)
        else:
            self._task_request_id = request_id
            self._task = asyncio.get_running_loop().create_task(self._run(request_id))
        return await asyncio.shield(self._task)

    def _fail(self, attempt: PaymentAttempt, exc: ClientError, state: PaymentState) -> PaymentAttempt:
        attempt.error = exc
        attempt.state = state
        self._notifier.error(exc.message)
        return attempt

    async def _run(self, request_id: str) -> PaymentAttempt:
        attempt = PaymentAttempt(request_id=request_id)
        self.attempt = attempt

        view = self._board.get(request_id)
        if view is None or not view.can_pay:
            return self._fail(attempt, ValidationError("This request is not ready for payment."), PaymentState.IDLE)

        try:
            order = await self._api.create_payment_order(request_id, idempotency_key=attempt.idempotency_key)
        except ClientError as exc:
            return self._fail(attempt, exc, PaymentState.IDLE)

        attempt.order = order
        attempt.state = PaymentState.ORDER_CREATED

        key = order.get("gatewayKeyId") or self._gateway_key
        order_id = order.get("orderId")
        if not key or not order_id:
            return self._fail(
                attempt,
                OrderCreationError("Payment gateway not configured. Please contact support."),
                PaymentState.IDLE,
            )

        currency = order.get("currency") or view.currency
        amount_minor = order.get("amountMinor")
        if amount_minor is None:
            amount_minor = to_minor_units(order.get("amount") or 0, currency)

        loop = asyncio.get_running_loop()
        outcome: asyncio.Future = loop.create_future()

        def on_success(result: GatewayResult) -> None:
            if not outcome.done():
                outcome.set_result(result)

        def on_dismiss() -> None:
            if not outcome.done():
                outcome.set_result(None)

        options = CheckoutOptions(
            key=key,
            amount=int(amount_minor),
            currency=currency,
            order_id=order_id,
            name=order.get("name") or self._merchant_name,
            description=order.get("description")
            or ("Lab Test Payment" if view.kind == "lab" else "Medicine Order Payment"),
            on_success=on_success,
            on_dismiss=on_dismiss,
            prefill=dict(self._prefill),
        )

        try:
            self._gateway.open(options)
        except ClientError as exc:
            return self._fail(attempt, exc, PaymentState.IDLE)
        attempt.state = PaymentState.GATEWAY_OPEN

        result = await outcome
        if result is None:
            logger.info("Checkout dismissed for request %s", request_id)
            attempt.state = PaymentState.IDLE
            return attempt

        attempt.state = PaymentState.VERIFYING
        try:
            attempt.confirmation = await self._confirm(request_id, result)
        except ClientError as exc:
            return self._fail(attempt, exc, PaymentState.FAILED)

        attempt.state = PaymentState.CONFIRMED
        if view.kind == "lab":
            self._notifier.success("Payment successful! Your lab test order has been confirmed.")
        else:
            self._notifier.success("Payment successful! Your medicine order has been confirmed.")

        try:
            await self._board.refresh()
        except ClientError as exc:
            logger.warning("Request list refresh after payment failed: %s", exc.message)
        return attempt

    async def _confirm(self, request_id: str, result: GatewayResult) -> dict:
        retries = self._verify_retries
        while True:
            try:
                return await self._api.confirm_payment(
                    request_id,
                    payment_id=result.payment_id,
                    order_id=result.order_id,
                    signature=result.signature,
                )
            except NetworkError:
                if retries <= 0:
                    raise
                retries -= 1
                logger.info("Retrying payment confirmation for request %s", request_id)
