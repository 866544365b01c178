# hc_core/client/tests/conftest.py
from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from hc_core.client.api import PatientApi
from hc_core.client.board import RequestBoard

BASE_URL = "http://testserver/api/v1"
TENANT_ID = "11111111-1111-1111-1111-111111111111"


def ok(data=None, message="", status=200) -> httpx.Response:
    payload = {"success": True, "data": data}
    if message:
        payload["message"] = message
    return httpx.Response(status, json=payload)


def fail(message, *, code="error", status=400, details=None) -> httpx.Response:
    return httpx.Response(
        status,
        json={"success": False, "message": message, "error": {"code": code, "details": details, "request_id": "rid"}},
    )


def raw_request(
    request_id,
    *,
    status="accepted",
    type="order_medicine",
    created_at="2026-01-10T10:00:00Z",
    medicines=(),
    tests=(),
    total=None,
    orders=(),
    payment_confirmed=False,
    visit_type="",
):
    priced = bool(medicines or tests)
    return {
        "id": request_id,
        "type": type,
        "status": status,
        "createdAt": created_at,
        "currency": "INR",
        "totalAmount": total,
        "paymentConfirmed": payment_confirmed,
        "visitType": visit_type,
        "adminResponse": (
            {"medicines": list(medicines), "tests": list(tests), "totalAmount": total, "message": ""} if priced else None
        ),
        "orders": list(orders),
    }


class StubServer:
    """In-memory stand-in for the /api/v1 endpoints the patient client calls."""

    def __init__(self):
        self.requests: list[dict] = []
        self.orders: list[dict] = []
        self.routes: dict[tuple[str, str], object] = {}
        self.calls: list[tuple[str, str, dict | None]] = []
        self.headers: list[httpx.Headers] = []

    def on(self, method: str, path: str, handler) -> None:
        self.routes[(method, f"/api/v1{path}")] = handler

    def count(self, method: str, path: str) -> int:
        return sum(1 for m, p, _ in self.calls if m == method and p == f"/api/v1{path}")

    def handle(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.calls.append((request.method, request.url.path, body))
        self.headers.append(request.headers)

        handler = self.routes.get((request.method, request.url.path))
        if handler is not None:
            return handler(request) if callable(handler) else handler
        if request.method == "GET" and request.url.path == "/api/v1/requests/":
            return ok(self.requests)
        if request.method == "GET" and request.url.path == "/api/v1/orders/":
            return ok(self.orders)
        return fail("Not found.", code="not_found", status=404)

    def api(self, **kwargs) -> PatientApi:
        return PatientApi(
            base_url=BASE_URL,
            tenant_id=TENANT_ID,
            token="access-token",
            transport=httpx.MockTransport(self.handle),
            **kwargs,
        )


class RecordingNotifier:
    def __init__(self):
        self.successes: list[str] = []
        self.errors: list[str] = []

    def success(self, message: str) -> None:
        self.successes.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)


class FakeTimer:
    def __init__(self, when, callback, args):
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Manual clock with the call_later signature of an asyncio loop."""

    def __init__(self):
        self.now = 0.0
        self.timers: list[FakeTimer] = []

    def call_later(self, delay, callback, *args) -> FakeTimer:
        timer = FakeTimer(self.now + delay, callback, args)
        self.timers.append(timer)
        return timer

    def pending(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled and t.when > self.now]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [t for t in self.timers if not t.cancelled and t.when <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.when)
            self.timers.remove(timer)
            self.now = timer.when
            timer.callback(*timer.args)
        self.now = target


async def settle(rounds: int = 50) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def server():
    return StubServer()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def make_board(server):
    def _make():
        return RequestBoard(server.api())

    return _make
