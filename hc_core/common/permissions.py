# hc_core/common/permissions.py

from __future__ import annotations

from typing import Set

from rest_framework.permissions import BasePermission

# Membership role codes
ROLE_ADMIN = "ADMIN"
ROLE_PATIENT = "PATIENT"
ROLE_PHARMACY = "PHARMACY"
ROLE_LABORATORY = "LABORATORY"

PROVIDER_ROLES = {ROLE_PHARMACY, ROLE_LABORATORY}


def request_roles(request) -> Set[str]:
    """
    Resolve roles from:
    1) superuser flag (treated as ADMIN)
    2) the tenant membership attached by require_scope / middleware
    """
    roles: Set[str] = set()

    user = getattr(request, "user", None)
    if not user or not getattr(user, "is_authenticated", False):
        return roles

    if getattr(user, "is_superuser", False):
        roles.add(ROLE_ADMIN)

    membership = getattr(request, "membership", None)
    if membership is not None and membership.role:
        roles.add(str(membership.role))

    return roles


class BaseRolePermission(BasePermission):
    """
    Base permission class for role-based access control.

    - Requires authentication (global IsAuthenticated already does this).
    - Scope is resolved first so the membership role is known.
    - Uses allowed_roles_per_action for strict RBAC.
    - Unknown actions are denied.
    """
    message = "You do not have permission to perform this action."

    allowed_roles_per_action: dict[str, Set[str]] = {}

    def has_permission(self, request, view) -> bool:
        from hc_core.common.scope import require_scope

        user = request.user
        if not user or not getattr(user, "is_authenticated", False):
            return False

        # Raises 400/403 in the error envelope when scope is missing or foreign.
        require_scope(request)

        # ViewSets expose `action`; plain APIViews declare `rbac_action`.
        action = getattr(view, "action", None) or getattr(view, "rbac_action", None)
        allowed = self.allowed_roles_per_action.get(action or "", set())
        return bool(request_roles(request) & allowed)


class ServiceRequestPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": {ROLE_PATIENT, ROLE_ADMIN},
        "retrieve": {ROLE_PATIENT, ROLE_ADMIN},
        "create": {ROLE_PATIENT},
        "cancel": {ROLE_PATIENT, ROLE_ADMIN},
        "respond": {ROLE_ADMIN},
    }


class PaymentPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "payment_order": {ROLE_PATIENT},
        "payment_confirm": {ROLE_PATIENT},
    }


class PatientOrderPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": {ROLE_PATIENT, ROLE_ADMIN},
        "retrieve": {ROLE_PATIENT, ROLE_ADMIN},
    }


class ProviderOrderPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": PROVIDER_ROLES,
        "accept": PROVIDER_ROLES,
        "update_status": PROVIDER_ROLES,
    }


class TransactionPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": {ROLE_PATIENT, ROLE_ADMIN},
    }


class NotificationPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": PROVIDER_ROLES,
        "mark_read": PROVIDER_ROLES,
    }
