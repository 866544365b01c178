# hc_core/api/urls.py
from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from hc_core.notifications.api.views import ProviderNotificationViewSet
from hc_core.orders.api.views import PatientOrderViewSet, ProviderOrderViewSet, ProviderRequestViewSet
from hc_core.payments.api.views import PaymentConfirmView, PaymentOrderView, TransactionViewSet
from hc_core.service_requests.api.views import ServiceRequestViewSet

router = DefaultRouter()

# Patient / admin
router.register(r"requests", ServiceRequestViewSet, basename="requests")
router.register(r"orders", PatientOrderViewSet, basename="orders")
router.register(r"transactions", TransactionViewSet, basename="transactions")

# Provider (laboratory / pharmacy)
router.register(r"provider/requests", ProviderRequestViewSet, basename="provider-requests")
router.register(r"provider/orders", ProviderOrderViewSet, basename="provider-orders")
router.register(r"provider/notifications", ProviderNotificationViewSet, basename="provider-notifications")

urlpatterns = [
    path("auth/token/", TokenObtainPairView.as_view(), name="token-obtain"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),

    # Payment endpoints hang off the request but are plain APIViews
    path(
        "requests/<uuid:request_id>/payment-order/",
        PaymentOrderView.as_view(),
        name="request-payment-order",
    ),
    path(
        "requests/<uuid:request_id>/payment-confirm/",
        PaymentConfirmView.as_view(),
        name="request-payment-confirm",
    ),

    # Router URLs last (so explicit paths win if ever overlapping)
    *router.urls,
]
