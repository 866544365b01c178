# hc_core/client/tests/test_board.py
import asyncio

import httpx
import pytest

from hc_core.client.board import RequestBoard
from hc_core.client.errors import NetworkError
from hc_core.client.tests.conftest import raw_request, settle


class GatedApi:
    """Each list_requests call waits until the test releases it."""

    def __init__(self):
        self.gates: list[asyncio.Future] = []

    async def list_requests(self):
        gate = asyncio.get_running_loop().create_future()
        self.gates.append(gate)
        return await gate

    async def list_orders(self):
        return []


def test_refresh_replaces_list_and_clears_loading(server, make_board):
    server.requests = [raw_request("r1", created_at="2026-01-01T00:00:00Z"), raw_request("r2", created_at="2026-01-02T00:00:00Z")]
    board = make_board()

    asyncio.run(board.refresh())

    assert [v.id for v in board.requests] == ["r2", "r1"]
    assert board.loading is False
    assert board.error is None


def test_failed_refresh_keeps_previous_list(server, make_board):
    server.requests = [raw_request("r1")]
    board = make_board()

    async def scenario():
        await board.refresh()

        def down(request):
            raise httpx.ConnectError("down", request=request)

        server.on("GET", "/requests/", down)
        with pytest.raises(NetworkError):
            await board.refresh()

    asyncio.run(scenario())

    assert [v.id for v in board.requests] == ["r1"]
    assert isinstance(board.error, NetworkError)
    assert board.loading is False


def test_older_fetch_landing_late_is_dropped():
    api = GatedApi()
    board = RequestBoard(api)

    async def scenario():
        first = asyncio.ensure_future(board.refresh())
        second = asyncio.ensure_future(board.refresh())
        await settle()
        assert board.loading is True

        api.gates[1].set_result([raw_request("fresh")])
        await second
        api.gates[0].set_result([raw_request("stale")])
        await first

    asyncio.run(scenario())

    assert [v.id for v in board.requests] == ["fresh"]
    assert board.loading is False


def test_cancellation_patch_then_refetch_wins(server, make_board):
    server.requests = [raw_request("r1", status="pending"), raw_request("r2", status="pending")]
    board = make_board()

    async def scenario():
        await board.refresh()
        board.apply_cancellation("r1")
        assert [v.id for v in board.active()] == ["r2"]
        assert [v.id for v in board.cancelled()] == ["r1"]

        # server still reports it pending; the fetched list is authoritative
        await board.refresh()

    asyncio.run(scenario())

    assert board.get("r1").status == "pending"
    assert board.cancelled() == []


def test_apply_cancellation_for_unknown_request_is_noop(make_board):
    board = make_board()
    assert board.apply_cancellation("missing") is None
    assert board.requests == []
