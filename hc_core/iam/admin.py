# hc_core/iam/admin.py
from django.contrib import admin

from hc_core.iam.models import Membership


@admin.register(Membership)
class MembershipAdmin(admin.ModelAdmin):
    list_display = ("user_id", "tenant", "role", "provider", "is_active", "created_at")
    list_filter = ("role", "is_active")
    search_fields = ("user_id",)
    ordering = ("-created_at",)
    list_select_related = ("tenant", "provider")
