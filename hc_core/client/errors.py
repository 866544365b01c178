# hc_core/client/errors.py
"""
Errors the patient client surfaces to the user.

Each carries the server's message verbatim when there is one, so the UI can
show exactly what the backend said.
"""
from __future__ import annotations

from typing import Any


class ClientError(Exception):
    default_message = "Something went wrong. Please try again."

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        code: str | None = None,
        details: Any = None,
    ):
        self.message = message or self.default_message
        self.status_code = status_code
        self.code = code
        self.details = details
        super().__init__(self.message)


class NetworkError(ClientError):
    """Connectivity failure; no application answer was received."""
    default_message = "Unable to reach the server. Please check your connection."


class ValidationError(ClientError):
    default_message = "Please check the details and try again."


class OrderCreationError(ClientError):
    default_message = "Failed to create payment order. Please try again."


class PaymentVerificationError(ClientError):
    default_message = "Payment verification failed."


class CancellationRejectedError(ClientError):
    default_message = "Failed to cancel request. Please try again."
