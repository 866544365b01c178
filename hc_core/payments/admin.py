from django.contrib import admin

from hc_core.payments.models import PaymentIntent, Transaction


@admin.register(PaymentIntent)
class PaymentIntentAdmin(admin.ModelAdmin):
    list_display = ("gateway_order_id", "request", "amount", "currency", "status", "created_at")
    list_filter = ("status", "currency")
    search_fields = ("gateway_order_id", "gateway_payment_id", "request__id")
    ordering = ("-created_at",)


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ("id", "request", "category", "amount", "currency", "gateway_payment_id", "created_at")
    list_filter = ("category", "status", "payment_method")
    search_fields = ("gateway_payment_id", "gateway_order_id", "request__id")
    ordering = ("-created_at",)

    # ledger rows are write-once
    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
