# hc_core/common/middleware.py
from __future__ import annotations

from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin

from hc_core.common.api.exceptions import build_error_envelope
from hc_core.common.scope import (
    INVALID_SCOPE_MSG,
    MISSING_SCOPE_MSG,
    NOT_A_MEMBER_MSG,
    Scope,
    parse_uuid,
    tenant_header,
)


class TenantScopeMiddleware(MiddlewareMixin):
    """
    Enforces tenant scope for API requests.

    Behavior:
      - Enforced for both /api/v1/* and /api/* (alias).
      - X-Tenant-Id is required (400 if missing).
      - Auth token endpoints never require scope.
      - Docs/schema/admin endpoints: public.
      - Invalid UUID -> 400
      - User not a member -> 403
      - On success -> attaches request.scope, request.tenant_id, request.membership
    """

    ENFORCED_PREFIXES = ("/api/v1/", "/api/")

    PUBLIC_PATH_PREFIXES = (
        "/admin/",
        "/api/docs/",
        "/api/schema/",
    )

    AUTH_PATH_SUFFIXES = (
        "/auth/token/",
        "/auth/token/refresh/",
    )

    ALLOW_NO_SCOPE_EXACT_PATHS = (
        "/api/v1/",
        "/api/",
    )

    def _starts_with_any(self, path: str, prefixes: tuple[str, ...]) -> bool:
        return any(path.startswith(p) for p in prefixes)

    def _endswith_any(self, path: str, suffixes: tuple[str, ...]) -> bool:
        return any(path.endswith(s) for s in suffixes)

    def _json_error(self, request, *, status_code: int, code: str, message: str) -> JsonResponse:
        return JsonResponse(
            build_error_envelope(request=request, code=code, message=message, details=None),
            status=status_code,
        )

    def process_request(self, request):
        request.scope = None
        request.tenant_id = None
        request.membership = None

        path = getattr(request, "path", "") or ""

        if self._starts_with_any(path, self.PUBLIC_PATH_PREFIXES):
            return None

        if not self._starts_with_any(path, self.ENFORCED_PREFIXES):
            return None

        if path in self.ALLOW_NO_SCOPE_EXACT_PATHS:
            return None

        if self._endswith_any(path, self.AUTH_PATH_SUFFIXES):
            return None

        # Token-authenticated users are only known inside DRF; views call require_scope.
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return None

        tenant_raw = tenant_header(request)
        if not tenant_raw:
            return self._json_error(request, status_code=400, code="validation_error", message=MISSING_SCOPE_MSG)

        tenant_id = parse_uuid(tenant_raw)
        if tenant_id is None:
            return self._json_error(request, status_code=400, code="validation_error", message=INVALID_SCOPE_MSG)

        from hc_core.iam.services.membership import get_active_membership

        membership = get_active_membership(user_id=user.id, tenant_id=tenant_id)
        if membership is None:
            return self._json_error(request, status_code=403, code="permission_denied", message=NOT_A_MEMBER_MSG)

        request.scope = Scope(tenant_id=tenant_id)
        request.tenant_id = tenant_id
        request.membership = membership
        return None
