# hc_core/common/openapi.py
from __future__ import annotations

from drf_spectacular.openapi import AutoSchema
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter


class ScopedAutoSchema(AutoSchema):
    """
    Schema defaults for the healthcare API:

    - Adds the X-Tenant-Id scope header to every scoped endpoint
    - Adds the optional Idempotency-Key header to write endpoints
    - Skips the scope header for token and schema/docs endpoints
    """

    SCOPE_HEADER = OpenApiParameter(
        name="X-Tenant-Id",
        type=OpenApiTypes.UUID,
        location=OpenApiParameter.HEADER,
        required=True,
        description="Tenant scope UUID (required for scoped endpoints).",
    )

    IDEMPOTENCY_HEADER = OpenApiParameter(
        name="Idempotency-Key",
        type=OpenApiTypes.STR,
        location=OpenApiParameter.HEADER,
        required=False,
        description="Optional key for safely retrying POST requests.",
    )

    def _is_unscoped_endpoint(self) -> bool:
        view = getattr(self, "view", None)
        if view is None:
            return False

        if view.__class__.__name__ in {"SpectacularAPIView", "SpectacularSwaggerView"}:
            return True

        module = view.__class__.__module__ or ""
        return module.startswith("rest_framework_simplejwt.")

    def get_override_parameters(self):
        params = list(super().get_override_parameters() or [])
        existing = {p.name.lower() for p in params}

        if self.method == "POST" and "idempotency-key" not in existing:
            params.append(self.IDEMPOTENCY_HEADER)

        if not self._is_unscoped_endpoint() and "x-tenant-id" not in existing:
            params.append(self.SCOPE_HEADER)

        return params
