# hc_core/payments/api/views.py
from __future__ import annotations

from uuid import UUID

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.response import Response
from rest_framework.views import APIView

from hc_core.common.api.pagination import paginate
from hc_core.common.api.responses import ok
from hc_core.common.idempotency import get_key, load_response, save_response
from hc_core.common.permissions import PaymentPermission, TransactionPermission
from hc_core.common.scope import require_scope
from hc_core.patients.selectors import patient_for_user
from hc_core.payments.api.serializers import (
    PaymentConfirmationSerializer,
    PaymentConfirmSerializer,
    PaymentOrderSerializer,
    TransactionSerializer,
)
from hc_core.payments.models import Transaction
from hc_core.payments.selectors import transactions_for_tenant
from hc_core.payments.services import PaymentService
from hc_core.service_requests.api.views import caller_patient


class PaymentOrderView(APIView):
    """
    Open a gateway order for an accepted request.
    Honors Idempotency-Key so a retried tap doesn't open a second order.
    """
    permission_classes = [PaymentPermission]
    rbac_action = "payment_order"

    @extend_schema(tags=["Payments"], request=None, responses={201: PaymentOrderSerializer})
    def post(self, request, request_id: UUID):
        scope = require_scope(request)
        patient = patient_for_user(tenant_id=scope.tenant_id, user_id=request.user.id)

        idem = get_key(request)
        if idem:
            cached = load_response(scope.tenant_id, request.user.id, request.method, request.path, idem)
            if cached is not None:
                return Response(cached.data, status=cached.status_code)

        data = PaymentService.create_payment_order(
            tenant_id=scope.tenant_id,
            request_id=request_id,
            patient=patient,
        )
        resp = ok(
            PaymentOrderSerializer(data).data,
            message="Payment order created",
            status=status.HTTP_201_CREATED,
        )

        if idem:
            save_response(
                scope.tenant_id,
                request.user.id,
                request.method,
                request.path,
                idem,
                resp.data,
                status_code=resp.status_code,
            )
        return resp


class PaymentConfirmView(APIView):
    """
    Verify the gateway callback and book the payment. Replays of an already
    booked (request, order) pair return the original outcome.
    """
    permission_classes = [PaymentPermission]
    rbac_action = "payment_confirm"

    @extend_schema(tags=["Payments"], request=PaymentConfirmSerializer, responses={200: PaymentConfirmationSerializer})
    def post(self, request, request_id: UUID):
        scope = require_scope(request)
        patient = patient_for_user(tenant_id=scope.tenant_id, user_id=request.user.id)

        ser = PaymentConfirmSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        result = PaymentService.confirm_payment(
            tenant_id=scope.tenant_id,
            request_id=request_id,
            patient=patient,
            payment_id=data["paymentId"],
            order_id=data["orderId"],
            signature=data["signature"],
            payment_method=data["paymentMethod"],
        )

        req = result.request
        out = PaymentConfirmationSerializer(
            {
                "requestId": req.id,
                "status": req.status,
                "paymentStatus": req.payment_status,
                "paymentConfirmed": req.payment_confirmed,
                "transactionId": result.transaction.id,
                "paymentId": result.transaction.gateway_payment_id,
                "orderId": result.transaction.gateway_order_id,
                "replayed": result.replayed,
            }
        ).data
        message = "Payment already verified" if result.replayed else "Payment verified successfully"
        return ok(out, message=message)


class TransactionViewSet(viewsets.GenericViewSet):
    """
    Payment ledger (read-only). Patients see their own entries.
    """
    permission_classes = [TransactionPermission]
    serializer_class = TransactionSerializer
    queryset = Transaction.objects.none()

    @extend_schema(tags=["Payments"], responses={200: TransactionSerializer(many=True)})
    def list(self, request):
        scope = require_scope(request)
        patient = caller_patient(request, scope.tenant_id)
        qs = transactions_for_tenant(tenant_id=scope.tenant_id, patient_id=patient.id if patient else None)
        return paginate(request, qs, TransactionSerializer)
