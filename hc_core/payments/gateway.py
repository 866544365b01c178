# hc_core/payments/gateway.py
"""
Payment gateway adapters.

The active backend is chosen by PAYMENT_GATEWAY_BACKEND (dotted path) so
tests and other deployments can swap it without touching services.
"""
from __future__ import annotations

import hashlib
import hmac
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx
from django.conf import settings
from django.utils.module_loading import import_string

from hc_core.common.api.exceptions import GatewayUnavailable

logger = logging.getLogger(__name__)

SUCCESSFUL_PAYMENT_STATUSES = frozenset({"captured", "authorized"})


class GatewayError(Exception):
    """The gateway answered, but not with what we asked for."""


@dataclass(frozen=True)
class GatewayOrder:
    order_id: str
    amount_minor: int
    currency: str


@dataclass(frozen=True)
class GatewayPayment:
    payment_id: str
    order_id: str
    status: str
    amount_minor: int
    currency: str
    method: str = ""
    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def is_successful(self) -> bool:
        return self.status in SUCCESSFUL_PAYMENT_STATUSES


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        err = payload.get("error")
        if isinstance(err, dict):
            msg = err.get("description") or err.get("message")
            if isinstance(msg, str) and msg.strip():
                return msg.strip()
    return response.text.strip() or f"HTTP {response.status_code}"


class RazorpayGateway:
    """
    Razorpay REST API (orders + payments) over httpx with basic auth.
    Signature: hex HMAC-SHA256 of "{order_id}|{payment_id}" keyed by the secret.
    """

    def __init__(
        self,
        *,
        key_id: str | None = None,
        key_secret: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.key_id = key_id if key_id is not None else getattr(settings, "RAZORPAY_KEY_ID", "")
        self.key_secret = key_secret if key_secret is not None else getattr(settings, "RAZORPAY_KEY_SECRET", "")
        self.base_url = (base_url or getattr(settings, "RAZORPAY_API_BASE", "https://api.razorpay.com/v1")).rstrip("/")
        self.timeout = timeout if timeout is not None else getattr(settings, "RAZORPAY_TIMEOUT_SECONDS", 15.0)
        self._transport = transport

    @property
    def public_key(self) -> str:
        return self.key_id

    def _require_credentials(self) -> None:
        if not self.key_id or not self.key_secret:
            raise GatewayUnavailable("Payment gateway is not configured.")

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self.base_url,
            auth=(self.key_id, self.key_secret),
            timeout=httpx.Timeout(self.timeout, connect=8.0),
            transport=self._transport,
        )

    def _call(self, method: str, path: str, **kwargs) -> dict[str, Any]:
        self._require_credentials()
        try:
            with self._client() as client:
                response = client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("Razorpay %s %s failed: %s", method, path, exc)
            raise GatewayUnavailable() from exc
        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning("Razorpay %s %s returned %s: %s", method, path, response.status_code, message)
            raise GatewayError(message)
        return response.json()

    def create_order(self, *, amount_minor: int, currency: str, receipt: str, notes: dict[str, str]) -> GatewayOrder:
        data = self._call(
            "POST",
            "/orders",
            json={"amount": int(amount_minor), "currency": currency, "receipt": receipt[:40], "notes": notes},
        )
        return GatewayOrder(
            order_id=str(data["id"]),
            amount_minor=int(data.get("amount", amount_minor)),
            currency=str(data.get("currency", currency)),
        )

    def fetch_payment(self, payment_id: str) -> GatewayPayment:
        data = self._call("GET", f"/payments/{payment_id}")
        return GatewayPayment(
            payment_id=str(data.get("id", payment_id)),
            order_id=str(data.get("order_id") or ""),
            status=str(data.get("status") or ""),
            amount_minor=int(data.get("amount") or 0),
            currency=str(data.get("currency") or ""),
            method=str(data.get("method") or ""),
            raw=data,
        )

    def verify_signature(self, *, order_id: str, payment_id: str, signature: str) -> bool:
        self._require_credentials()
        expected = hmac.new(
            self.key_secret.encode("utf-8"),
            f"{order_id}|{payment_id}".encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()
        return hmac.compare_digest(expected, signature or "")


def get_gateway():
    backend = getattr(settings, "PAYMENT_GATEWAY_BACKEND", "hc_core.payments.gateway.RazorpayGateway")
    return import_string(backend)()
