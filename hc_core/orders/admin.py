from django.contrib import admin

from hc_core.orders.models import FulfillmentOrder, OrderLine


class OrderLineInline(admin.TabularInline):
    model = OrderLine
    extra = 0


@admin.register(FulfillmentOrder)
class FulfillmentOrderAdmin(admin.ModelAdmin):
    list_display = ("id", "request", "provider", "provider_type", "status", "payment_status", "created_at")
    list_filter = ("provider_type", "status", "payment_status")
    search_fields = ("id", "request__id", "provider__name")
    ordering = ("-created_at",)
    inlines = [OrderLineInline]
