# hc_core/client/notify.py
from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Transient user-facing notice (toast)."""

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LoggingNotifier:
    def success(self, message: str) -> None:
        logger.info("notice: %s", message)

    def error(self, message: str) -> None:
        logger.warning("notice: %s", message)
