# hc_core/client/board.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

from hc_core.client.aggregator import RequestView, aggregate_requests, build_request_view
from hc_core.client.errors import ClientError
from hc_core.client.normalizer import status_label

logger = logging.getLogger(__name__)


class RequestBoard:
    """
    The patient's request list as shown on screen.

    refresh() replaces the whole list with the server's view. Fetches are
    numbered; a response older than one already applied is dropped, so the
    last fetch issued is the one that sticks.
    """

    def __init__(self, api):
        self._api = api
        self.requests: list[RequestView] = []
        self.loading = False
        self.error: ClientError | None = None
        self._issued = 0
        self._applied = 0

    def get(self, request_id: str) -> RequestView | None:
        request_id = str(request_id)
        for view in self.requests:
            if view.id == request_id:
                return view
        return None

    def active(self) -> list[RequestView]:
        return [v for v in self.requests if not v.is_cancelled]

    def cancelled(self) -> list[RequestView]:
        return [v for v in self.requests if v.is_cancelled]

    async def refresh(self) -> list[RequestView]:
        self._issued += 1
        seq = self._issued
        self.loading = True
        try:
            raw_requests, raw_orders = await asyncio.gather(self._api.list_requests(), self._api.list_orders())
        except ClientError as exc:
            if seq == self._issued:
                self.error = exc
            raise
        finally:
            if seq == self._issued:
                self.loading = False

        if seq < self._applied:
            logger.debug("Dropping stale request list (fetch %s, applied %s)", seq, self._applied)
            return self.requests

        self._applied = seq
        self.requests = aggregate_requests(raw_requests, raw_orders)
        self.error = None
        return self.requests

    def apply_cancellation(self, request_id: str, updated: dict | None = None) -> RequestView | None:
        """
        Patch one request to cancelled without waiting for the next fetch.
        `updated` is the server's copy of the request when the cancel call
        returned one.
        """
        request_id = str(request_id)
        for index, view in enumerate(self.requests):
            if view.id != request_id:
                continue
            if isinstance(updated, dict) and updated.get("id"):
                patched = build_request_view(updated)
            else:
                patched = replace(
                    view,
                    status="cancelled",
                    request_status="cancelled",
                    status_label=status_label("cancelled"),
                )
            self.requests[index] = patched
            return patched
        return None
