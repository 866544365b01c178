# hc_core/iam/models.py
import uuid
from django.db import models

from hc_core.common.permissions import ROLE_ADMIN, ROLE_LABORATORY, ROLE_PATIENT, ROLE_PHARMACY
from hc_core.tenants.models import Provider, Tenant


class MembershipRole(models.TextChoices):
    PATIENT = ROLE_PATIENT, "Patient"
    ADMIN = ROLE_ADMIN, "Admin"
    PHARMACY = ROLE_PHARMACY, "Pharmacy staff"
    LABORATORY = ROLE_LABORATORY, "Laboratory staff"


class Membership(models.Model):
    """
    Assigns an auth user to a tenant with a role.
    This is the RBAC enforcement point. Provider staff also carry the
    provider they act for.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    tenant = models.ForeignKey(Tenant, on_delete=models.PROTECT, related_name="memberships")
    # auth_user id; kept as a plain column so the table has no cross-app FK
    user_id = models.BigIntegerField(db_index=True)
    role = models.CharField(max_length=16, choices=MembershipRole.choices)
    provider = models.ForeignKey(
        Provider,
        on_delete=models.PROTECT,
        related_name="staff_memberships",
        null=True,
        blank=True,
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "iam_membership"
        constraints = [
            models.UniqueConstraint(fields=["tenant", "user_id"], name="uq_membership_tenant_user"),
        ]
        indexes = [
            models.Index(fields=["tenant", "is_active"]),
        ]

    def __str__(self) -> str:
        return f"user={self.user_id} {self.role} @ {self.tenant_id}"
