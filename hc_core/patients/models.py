# hc_core/patients/models.py
from django.db import models
from hc_core.common.models import ScopedModel


class Patient(ScopedModel):
    """
    Patient profile within a tenant, linked to the auth user that logs in.
    """
    user_id = models.BigIntegerField(db_index=True)

    first_name = models.CharField(max_length=128, blank=True)
    last_name = models.CharField(max_length=128, blank=True)
    phone = models.CharField(max_length=32, blank=True)
    email = models.EmailField(blank=True)
    address = models.TextField(blank=True)
    profile_image = models.URLField(blank=True)

    class Meta:
        db_table = "patients_patient"
        constraints = [
            models.UniqueConstraint(
                fields=["tenant_id", "user_id"],
                name="uq_patient_tenant_user",
            ),
        ]
        indexes = [
            models.Index(fields=["tenant_id", "phone"]),
        ]

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p).strip()

    def __str__(self) -> str:
        return self.full_name or f"patient {self.id}"
