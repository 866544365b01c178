from django.contrib import admin

from hc_core.notifications.models import ProviderNotification


@admin.register(ProviderNotification)
class ProviderNotificationAdmin(admin.ModelAdmin):
    list_display = ("title", "provider", "kind", "request_id", "is_read", "created_at")
    list_filter = ("kind", "is_read")
    search_fields = ("title", "request_id")
    ordering = ("-created_at",)
