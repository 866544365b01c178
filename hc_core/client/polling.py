# hc_core/client/polling.py
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Protocol

from hc_core.client.board import RequestBoard
from hc_core.client.errors import ClientError, NetworkError
from hc_core.client.notify import LoggingNotifier, Notifier

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 30.0


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """The slice of asyncio.AbstractEventLoop the poller needs."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...


class PollingSynchronizer:
    """
    Re-fetches the board on a fixed interval while started.

    Use start()/stop(), or `async with`. After stop() no new fetch is
    issued and in-flight fetches are cancelled. Connectivity errors are
    logged only; other failures are shown to the user.
    """

    def __init__(
        self,
        board: RequestBoard,
        *,
        interval: float = DEFAULT_INTERVAL,
        scheduler: Scheduler | None = None,
        notifier: Notifier | None = None,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._board = board
        self.interval = interval
        self._scheduler = scheduler
        self._notifier = notifier or LoggingNotifier()
        self._handle: TimerHandle | None = None
        self._tasks: set[asyncio.Task] = set()
        self.running = False
        self.ticks = 0

    def start(self, *, immediate: bool = False) -> None:
        if self.running:
            return
        if self._scheduler is None:
            self._scheduler = asyncio.get_running_loop()
        self.running = True
        if immediate:
            self._spawn()
        self._schedule()

    def stop(self) -> None:
        self.running = False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        for task in list(self._tasks):
            task.cancel()

    async def __aenter__(self) -> "PollingSynchronizer":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.stop()

    def _schedule(self) -> None:
        self._handle = self._scheduler.call_later(self.interval, self._tick)

    def _tick(self) -> None:
        if not self.running:
            return
        self.ticks += 1
        self._spawn()
        self._schedule()

    def _spawn(self) -> None:
        task = asyncio.get_running_loop().create_task(self._poll())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _poll(self) -> None:
        try:
            await self._board.refresh()
        except NetworkError as exc:
            logger.warning("Background refresh failed: %s", exc.message)
        except ClientError as exc:
            logger.error("Background refresh rejected: %s", exc.message)
            self._notifier.error(exc.message)
