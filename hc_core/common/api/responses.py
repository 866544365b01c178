# hc_core/common/api/responses.py
from __future__ import annotations

from typing import Any

from rest_framework import status as http_status
from rest_framework.response import Response


def ok(data: Any = None, *, message: str | None = None, status: int = http_status.HTTP_200_OK) -> Response:
    """Success envelope: {success: true, data, message?}."""
    body: dict[str, Any] = {"success": True, "data": data}
    if message:
        body["message"] = message
    return Response(body, status=status)
