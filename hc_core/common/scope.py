# hc_core/common/scope.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from rest_framework.exceptions import PermissionDenied, ValidationError


@dataclass(frozen=True)
class Scope:
    tenant_id: UUID


# Preferred header name (what we standardize on)
HDR_TENANT = "X-Tenant-Id"
TENANT_META_KEYS = ("HTTP_X_TENANT_ID",)

MISSING_SCOPE_MSG = "Missing scope header. Provide X-Tenant-Id."
INVALID_SCOPE_MSG = "Invalid scope header. Provide a valid UUID for X-Tenant-Id."
NOT_A_MEMBER_MSG = "You do not have access to the selected tenant."


def parse_uuid(value) -> Optional[UUID]:
    try:
        return UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


def tenant_header(request) -> Optional[str]:
    """
    request.headers is case-insensitive; fallback to META for RequestFactory.
    """
    headers = getattr(request, "headers", None)
    if headers is not None:
        v = headers.get(HDR_TENANT)
        if v:
            return v
    for key in TENANT_META_KEYS:
        v = request.META.get(key)
        if v:
            return v
    return None


def require_scope(request) -> Scope:
    """
    Resolve the tenant scope for an API call.

    - middleware already attached it -> reuse
    - header missing -> 400 MISSING_SCOPE_MSG
    - header not a UUID -> 400 INVALID_SCOPE_MSG
    - caller has no active membership -> 403

    DRF's force_authenticate only authenticates at the view layer, so the
    membership check is repeated here rather than trusted to middleware.
    """
    scope = getattr(request, "scope", None)
    if isinstance(scope, Scope) and getattr(request, "membership", None) is not None:
        return scope

    raw = tenant_header(request)
    if not raw:
        raise ValidationError({"detail": MISSING_SCOPE_MSG})

    tenant_id = parse_uuid(raw)
    if tenant_id is None:
        raise ValidationError({"detail": INVALID_SCOPE_MSG})

    from hc_core.iam.services.membership import get_active_membership

    user = getattr(request, "user", None)
    membership = None
    if user is not None and getattr(user, "is_authenticated", False):
        membership = get_active_membership(user_id=user.id, tenant_id=tenant_id)
    if membership is None:
        raise PermissionDenied(NOT_A_MEMBER_MSG)

    scope = Scope(tenant_id=tenant_id)
    request.scope = scope
    request.tenant_id = tenant_id
    request.membership = membership
    return scope
