# hc_core/client/cancellation.py
from __future__ import annotations

import inspect
import logging
from typing import Awaitable, Callable, Union

from hc_core.client.aggregator import LAB, NOT_STARTED_ORDER_STATUSES, PHARMACY, RequestView
from hc_core.client.board import RequestBoard
from hc_core.client.errors import CancellationRejectedError, ClientError, ValidationError
from hc_core.client.notify import LoggingNotifier, Notifier

logger = logging.getLogger(__name__)

MAX_REASON_LENGTH = 500

# mirrors the server rule; the server still has the final say
CLOSED_REQUEST_STATUSES = frozenset({"completed", "cancelled"})

ConfirmCallback = Callable[[RequestView], Union[bool, Awaitable[bool]]]


def notice_recipient(view: RequestView) -> str:
    """Who the cancellation notice names; only providers already disclosed to the patient."""
    contact = view.provider_contact
    if contact is not None:
        return contact.name
    return {LAB: "the laboratory", PHARMACY: "the pharmacy"}.get(view.kind, "")


def is_cancellable(view: RequestView) -> bool:
    if view.request_status in CLOSED_REQUEST_STATUSES:
        return False
    return all(str(o.get("status") or "pending") in NOT_STARTED_ORDER_STATUSES for o in view.orders)


class CancellationCoordinator:
    """
    Patient-initiated cancellation.

    Checks the request is still cancellable before touching the network,
    asks the user to confirm, then patches the board on success. Failures
    are shown to the user and raised; the board is left as it was.
    """

    def __init__(
        self,
        api,
        board: RequestBoard,
        *,
        confirm: ConfirmCallback,
        notifier: Notifier | None = None,
        require_reason: bool = False,
    ):
        self._api = api
        self._board = board
        self._confirm = confirm
        self._notifier = notifier or LoggingNotifier()
        self.require_reason = require_reason

    def _reject(self, exc: ClientError) -> ClientError:
        self._notifier.error(exc.message)
        return exc

    async def cancel(self, request_id: str, reason: str = "") -> RequestView | None:
        """Returns the patched view, or None when the user backs out."""
        view = self._board.get(request_id)
        if view is None:
            raise self._reject(ValidationError("Request not found."))

        if not is_cancellable(view):
            raise self._reject(
                CancellationRejectedError(f"This request cannot be cancelled (status '{view.status}').")
            )

        reason = (reason or "").strip()
        if self.require_reason and not reason:
            raise self._reject(ValidationError("Please provide a reason for cancellation."))
        if len(reason) > MAX_REASON_LENGTH:
            raise self._reject(ValidationError(f"Reason must be at most {MAX_REASON_LENGTH} characters."))

        confirmed = self._confirm(view)
        if inspect.isawaitable(confirmed):
            confirmed = await confirmed
        if not confirmed:
            logger.debug("Cancellation of request %s declined", view.id)
            return None

        try:
            updated = await self._api.cancel_request(view.id, reason=reason)
        except ClientError as exc:
            raise self._reject(exc) from exc

        patched = self._board.apply_cancellation(view.id, updated)
        recipient = notice_recipient(view)
        if recipient:
            self._notifier.success(f"Request cancelled successfully. Cancellation notification sent to {recipient}.")
        else:
            self._notifier.success("Request cancelled successfully.")
        return patched
