# labs/views.py
import logging

from django.db.models import Count
from django.utils import timezone
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from reservations import reports
from users.permissions import (
    EQUIPMENT_MANAGE,
    EQUIPMENT_SET_STATUS,
    LAB_MANAGE,
    CapabilityPermission,
)
from .models import Equipment, Lab
from .serializers import EquipmentSerializer, EquipmentStatusSerializer, LabSerializer
from .services import EquipmentService, LabService, effective_statuses

logger = logging.getLogger(__name__)


# ----------------------------
# Labs
# ----------------------------
class LabViewSet(viewsets.ModelViewSet):
    queryset = Lab.objects.annotate(equipment_total=Count("equipment")).order_by("building", "room_number")
    serializer_class = LabSerializer
    permission_classes = [CapabilityPermission]
    capabilities = {
        "create": LAB_MANAGE,
        "update": LAB_MANAGE,
        "partial_update": LAB_MANAGE,
        "destroy": LAB_MANAGE,
    }

    def perform_create(self, serializer):
        lab = serializer.save()
        logger.info("Lab %s created by %s", lab, self.request.user)

    def perform_destroy(self, instance):
        LabService.delete_lab(instance, self.request.user)

    @action(detail=True, methods=["get"])
    def utilization(self, request, pk=None):
        return Response(reports.lab_utilization(pk, days=request.query_params.get("days")))

    @action(detail=True, methods=["get"])
    def stats(self, request, pk=None):
        return Response(reports.lab_stats(pk))


# ----------------------------
# Equipment
# ----------------------------
class EquipmentViewSet(viewsets.ModelViewSet):
    serializer_class = EquipmentSerializer
    permission_classes = [CapabilityPermission]
    capabilities = {
        "create": EQUIPMENT_MANAGE,
        "update": EQUIPMENT_MANAGE,
        "partial_update": EQUIPMENT_MANAGE,
        "destroy": EQUIPMENT_MANAGE,
        "set_status": EQUIPMENT_SET_STATUS,
    }

    def get_queryset(self):
        qs = Equipment.objects.select_related("lab").order_by("name")
        lab_id = self.request.query_params.get("lab")
        if lab_id:
            qs = qs.filter(lab_id=lab_id)
        equipment_type = self.request.query_params.get("type")
        if equipment_type:
            qs = qs.filter(type__iexact=equipment_type)
        return qs

    def list(self, request, *args, **kwargs):
        now = timezone.now()
        queryset = self.filter_queryset(self.get_queryset())
        statuses = None
        wanted = request.query_params.get("status")
        if wanted:
            # Filter the whole queryset on computed status, then paginate.
            rows = list(queryset)
            statuses = effective_statuses(rows, now)
            queryset = [eq for eq in rows if statuses[eq.pk] == wanted]

        page = self.paginate_queryset(queryset)
        rows = page if page is not None else list(queryset)
        if statuses is None:
            statuses = effective_statuses(rows, now)

        context = {**self.get_serializer_context(), "now": now, "effective_statuses": statuses}
        serializer = self.get_serializer(rows, many=True, context=context)
        if page is not None:
            return self.get_paginated_response(serializer.data)
        return Response(serializer.data)

    def perform_create(self, serializer):
        equipment = serializer.save()
        logger.info("Equipment %s created in %s by %s", equipment, equipment.lab, self.request.user)

    def perform_destroy(self, instance):
        EquipmentService.delete_equipment(instance, self.request.user)

    @action(detail=True, methods=["put"], url_path="status")
    def set_status(self, request, pk=None):
        payload = EquipmentStatusSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        equipment = EquipmentService.set_operational_status(pk, payload.validated_data["status"], request.user)
        return Response(self.get_serializer(equipment).data)

    @action(detail=True, methods=["get"])
    def utilization(self, request, pk=None):
        return Response(reports.equipment_utilization(pk, days=request.query_params.get("days")))
