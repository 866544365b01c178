# hc_core/common/idempotency.py
from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from typing import Any

from django.conf import settings
from django.db import IntegrityError, transaction
from rest_framework.utils.encoders import JSONEncoder

from hc_core.common.models import IdempotencyRecord

logger = logging.getLogger(__name__)

_LOCK = threading.Lock()
_STORE: dict[tuple, "StoredResponse"] = {}


@dataclass(frozen=True)
class StoredResponse:
    status_code: int
    data: Any


def _use_db() -> bool:
    """
    Enable the durable store with:
        COMMON_IDEMPOTENCY_USE_DB = True
    """
    return bool(getattr(settings, "COMMON_IDEMPOTENCY_USE_DB", False))


def get_key(request) -> str | None:
    # DRF test client: "HTTP_IDEMPOTENCY_KEY" becomes request.META["HTTP_IDEMPOTENCY_KEY"]
    return request.META.get("HTTP_IDEMPOTENCY_KEY")


def _norm(tenant_id, user_id, method, path, key):
    return (str(tenant_id), str(user_id), method.upper(), path, str(key))


def load_response(tenant_id, user_id, method, path, key) -> StoredResponse | None:
    if not key:
        return None

    if not _use_db():
        with _LOCK:
            return _STORE.get(_norm(tenant_id, user_id, method, path, key))

    rec = (
        IdempotencyRecord.objects.filter(
            tenant_id=tenant_id,
            user_id=int(user_id),
            method=method.upper(),
            path=path,
            idempotency_key=str(key),
        )
        .order_by("-created_at")
        .first()
    )
    if rec is None:
        return None
    return StoredResponse(status_code=rec.status_code, data=rec.response_data)


def _wire_form(data: Any) -> Any:
    # store exactly what the client received (Decimal -> number, UUID/datetime -> str)
    return json.loads(json.dumps(data, cls=JSONEncoder))


def save_response(tenant_id, user_id, method, path, key, response_data, status_code: int = 200) -> None:
    if not key:
        return

    response_data = _wire_form(response_data)

    if not _use_db():
        with _LOCK:
            _STORE[_norm(tenant_id, user_id, method, path, key)] = StoredResponse(status_code, response_data)
        return

    try:
        with transaction.atomic():
            IdempotencyRecord.objects.create(
                tenant_id=tenant_id,
                user_id=int(user_id),
                method=method.upper(),
                path=path,
                idempotency_key=str(key),
                status_code=int(status_code),
                response_data=response_data,
            )
    except IntegrityError:
        # already saved by a concurrent request
        logger.info("Idempotent response already stored for %s %s key=%s", method, path, key)
