# hc_core/tenants/admin.py
from django.contrib import admin

from hc_core.tenants.models import Provider, Tenant


@admin.register(Tenant)
class TenantAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "status", "created_at", "updated_at")
    list_filter = ("status", "created_at")
    search_fields = ("name", "code")
    ordering = ("-created_at",)
    readonly_fields = ("id", "created_at", "updated_at")


@admin.register(Provider)
class ProviderAdmin(admin.ModelAdmin):
    list_display = ("name", "provider_type", "tenant_id", "is_active", "created_at")
    list_filter = ("provider_type", "is_active")
    search_fields = ("name", "phone", "email")
    ordering = ("name",)
    readonly_fields = ("id", "created_at", "updated_at")
