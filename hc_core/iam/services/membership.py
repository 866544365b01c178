# hc_core/iam/services/membership.py
from __future__ import annotations

from uuid import UUID

from django.db import transaction
from rest_framework.exceptions import ValidationError

from hc_core.common.permissions import PROVIDER_ROLES, ROLE_LABORATORY, ROLE_PHARMACY
from hc_core.iam.models import Membership, MembershipRole
from hc_core.tenants.models import Provider, ProviderType

_PROVIDER_TYPE_FOR_ROLE = {
    ROLE_PHARMACY: ProviderType.PHARMACY,
    ROLE_LABORATORY: ProviderType.LABORATORY,
}


def get_active_membership(*, user_id: int, tenant_id: UUID) -> Membership | None:
    """
    Single source of truth used by scope enforcement.
    """
    return (
        Membership.objects.select_related("provider")
        .filter(is_active=True, tenant_id=tenant_id, user_id=user_id)
        .first()
    )


def is_user_member_of_tenant(*, user_id: int, tenant_id: UUID) -> bool:
    return Membership.objects.filter(is_active=True, tenant_id=tenant_id, user_id=user_id).exists()


@transaction.atomic
def grant_membership(
    *,
    tenant_id: UUID,
    user_id: int,
    role: str,
    provider_id: UUID | None = None,
) -> Membership:
    """
    Idempotent per (tenant, user): re-granting updates role/provider and reactivates.
    Provider staff must be linked to a provider of the matching type.
    """
    if role not in MembershipRole.values:
        raise ValidationError({"role": f"Invalid role. Allowed: {list(MembershipRole.values)}"})

    provider = None
    if role in PROVIDER_ROLES:
        if not provider_id:
            raise ValidationError({"provider": "Provider staff must be linked to a provider."})
        provider = Provider.objects.filter(id=provider_id, tenant_id=tenant_id).first()
        if provider is None:
            raise ValidationError({"provider": "Provider not found in this tenant."})
        if provider.provider_type != _PROVIDER_TYPE_FOR_ROLE[role]:
            raise ValidationError({"provider": "Provider type does not match the role."})

    membership, _ = Membership.objects.update_or_create(
        tenant_id=tenant_id,
        user_id=user_id,
        defaults={"role": role, "provider": provider, "is_active": True},
    )
    return membership
