from django.contrib import admin

from hc_core.service_requests.models import QuoteLine, ServiceRequest


class QuoteLineInline(admin.TabularInline):
    model = QuoteLine
    extra = 0
    readonly_fields = ("id", "created_at")


@admin.register(ServiceRequest)
class ServiceRequestAdmin(admin.ModelAdmin):
    list_display = ("id", "request_type", "status", "payment_status", "total_amount", "tenant_id", "created_at")
    list_filter = ("request_type", "status", "payment_status", "visit_type")
    search_fields = ("id", "patient_name", "patient_phone", "payment_id", "gateway_order_id")
    ordering = ("-created_at",)
    readonly_fields = ("id", "created_at", "updated_at", "payment_id", "gateway_order_id", "paid_at")
    inlines = [QuoteLineInline]
