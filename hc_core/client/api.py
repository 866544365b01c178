# hc_core/client/api.py
from __future__ import annotations

import logging
from typing import Any

import httpx

from hc_core.client.errors import (
    CancellationRejectedError,
    ClientError,
    NetworkError,
    OrderCreationError,
    PaymentVerificationError,
    ValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0


class PatientApi:
    """
    Patient-scoped calls against the /api/v1 JSON API.

    Every response is the {success, data, message} envelope; `data` is
    returned, and `success: false` raises the operation's error class with the
    server message. Transport failures raise NetworkError.
    """

    def __init__(
        self,
        *,
        base_url: str,
        tenant_id: str,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"X-Tenant-Id": str(tenant_id), "Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=httpx.Timeout(timeout, connect=8.0),
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "PatientApi":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _call(
        self,
        method: str,
        path: str,
        *,
        error_cls: type[ClientError] = ClientError,
        json: dict | None = None,
        params: dict | None = None,
        headers: dict | None = None,
    ) -> Any:
        try:
            response = await self._client.request(method, path, json=json, params=params, headers=headers)
        except httpx.TransportError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise NetworkError() from exc

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not isinstance(payload, dict):
            raise error_cls(status_code=response.status_code)

        if response.status_code >= 400 or payload.get("success") is False:
            error = payload.get("error") if isinstance(payload.get("error"), dict) else {}
            raise error_cls(
                payload.get("message") or None,
                status_code=response.status_code,
                code=error.get("code"),
                details=error.get("details"),
            )
        return payload.get("data")

    async def list_requests(self, **filters) -> list[dict]:
        data = await self._call("GET", "/requests/", params={"page_size": 200, **filters})
        return data if isinstance(data, list) else []

    async def list_orders(self, **filters) -> list[dict]:
        data = await self._call("GET", "/orders/", params={"page_size": 200, **filters})
        return data if isinstance(data, list) else []

    async def create_payment_order(self, request_id: str, *, idempotency_key: str | None = None) -> dict:
        headers = {"Idempotency-Key": idempotency_key} if idempotency_key else None
        data = await self._call(
            "POST",
            f"/requests/{request_id}/payment-order/",
            error_cls=OrderCreationError,
            json={},
            headers=headers,
        )
        return data or {}

    async def confirm_payment(
        self,
        request_id: str,
        *,
        payment_id: str,
        order_id: str,
        signature: str,
        payment_method: str = "razorpay",
    ) -> dict:
        data = await self._call(
            "POST",
            f"/requests/{request_id}/payment-confirm/",
            error_cls=PaymentVerificationError,
            json={
                "paymentId": payment_id,
                "orderId": order_id,
                "signature": signature,
                "paymentMethod": payment_method,
            },
        )
        return data or {}

    async def cancel_request(self, request_id: str, *, reason: str = "") -> dict:
        try:
            data = await self._call(
                "POST",
                f"/requests/{request_id}/cancel/",
                error_cls=CancellationRejectedError,
                json={"reason": reason},
            )
        except CancellationRejectedError as exc:
            if exc.code == "validation_error":
                raise ValidationError(exc.message, status_code=exc.status_code, code=exc.code, details=exc.details) from exc
            raise
        return data or {}
