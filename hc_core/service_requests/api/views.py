# hc_core/service_requests/api/views.py
from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action

from hc_core.common.api.pagination import paginate
from hc_core.common.api.responses import ok
from hc_core.common.permissions import ROLE_ADMIN, ServiceRequestPermission, request_roles
from hc_core.common.scope import require_scope
from hc_core.patients.models import Patient
from hc_core.patients.selectors import patient_for_user
from hc_core.service_requests.api.filters import ServiceRequestFilter
from hc_core.service_requests.api.serializers import (
    ServiceRequestCancelSerializer,
    ServiceRequestCreateSerializer,
    ServiceRequestRespondSerializer,
    ServiceRequestSerializer,
)
from hc_core.service_requests.models import ServiceRequest
from hc_core.service_requests.selectors import get_request, requests_for_tenant
from hc_core.service_requests.services import ServiceRequestService

UUID_PATTERN = r"[0-9a-fA-F-]{36}"


def caller_patient(request, tenant_id) -> Patient | None:
    """
    Admins see the whole tenant; everyone else is confined to their own patient profile.
    """
    if ROLE_ADMIN in request_roles(request):
        return None
    return patient_for_user(tenant_id=tenant_id, user_id=request.user.id)


class ServiceRequestViewSet(viewsets.GenericViewSet):
    """
    Patient service requests:
    - list/retrieve (patients: own only)
    - create (patient)
    - respond (admin quote)
    - cancel
    """
    permission_classes = [ServiceRequestPermission]
    serializer_class = ServiceRequestSerializer
    queryset = ServiceRequest.objects.none()
    filterset_class = ServiceRequestFilter
    ordering_fields = ["created_at", "updated_at"]
    lookup_value_regex = UUID_PATTERN

    def _get(self, request, pk) -> ServiceRequest:
        scope = require_scope(request)
        patient = caller_patient(request, scope.tenant_id)
        return get_request(
            tenant_id=scope.tenant_id,
            request_id=pk,
            patient_id=patient.id if patient else None,
        )

    @extend_schema(tags=["Requests"], responses={200: ServiceRequestSerializer(many=True)})
    def list(self, request):
        scope = require_scope(request)
        patient = caller_patient(request, scope.tenant_id)
        qs = requests_for_tenant(tenant_id=scope.tenant_id, patient_id=patient.id if patient else None)
        return paginate(request, self.filter_queryset(qs), ServiceRequestSerializer)

    @extend_schema(tags=["Requests"], responses={200: ServiceRequestSerializer})
    def retrieve(self, request, pk=None):
        return ok(ServiceRequestSerializer(self._get(request, pk)).data)

    @extend_schema(tags=["Requests"], request=ServiceRequestCreateSerializer, responses={201: ServiceRequestSerializer})
    def create(self, request):
        scope = require_scope(request)
        patient = patient_for_user(tenant_id=scope.tenant_id, user_id=request.user.id)

        ser = ServiceRequestCreateSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        req = ServiceRequestService.create(
            tenant_id=scope.tenant_id,
            patient=patient,
            request_type=data["type"],
            visit_type=data.get("visitType", ""),
            prescription_id=data.get("prescriptionId", ""),
            patient_address=data.get("patientAddress", ""),
        )
        req = get_request(tenant_id=scope.tenant_id, request_id=req.id)
        return ok(
            ServiceRequestSerializer(req).data,
            message="Request submitted",
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(tags=["Requests"], request=ServiceRequestRespondSerializer, responses={200: ServiceRequestSerializer})
    @action(detail=True, methods=["post"], url_path="respond")
    def respond(self, request, pk=None):
        scope = require_scope(request)

        ser = ServiceRequestRespondSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        ServiceRequestService.respond(
            tenant_id=scope.tenant_id,
            request_id=pk,
            actor_user_id=request.user.id,
            **ser.to_service_kwargs(),
        )
        req = get_request(tenant_id=scope.tenant_id, request_id=pk)
        return ok(ServiceRequestSerializer(req).data, message="Quote sent to patient")

    @extend_schema(tags=["Requests"], request=ServiceRequestCancelSerializer, responses={200: ServiceRequestSerializer})
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        scope = require_scope(request)
        # ownership check first: a patient can't see other patients' requests
        target = self._get(request, pk)

        ser = ServiceRequestCancelSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        ServiceRequestService.cancel(
            tenant_id=scope.tenant_id,
            request_id=target.id,
            reason=ser.validated_data["reason"],
            actor_user_id=request.user.id,
        )
        req = get_request(tenant_id=scope.tenant_id, request_id=target.id)
        return ok(ServiceRequestSerializer(req).data, message="Request cancelled")
