# reservations/views.py
from django.http import HttpResponse
from django.utils import timezone
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from users.permissions import REPORT_VIEW, RESERVATION_CREATE, CapabilityPermission
from . import reports
from .models import Reservation
from .serializers import ReservationCreateSerializer, ReservationSerializer
from .services import ReservationService
from .utils.ical import build_ics_for_reservation
from .validators import validate_equipment_ids


# ----------------------------
# Reservations
# ----------------------------
class ReservationViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """
    Create, list, inspect, confirm and cancel reservations.

    Every write goes through ReservationService; domain errors are DRF
    exceptions and are rendered by DRF's exception handler.
    """
    serializer_class = ReservationSerializer
    permission_classes = [CapabilityPermission]
    capabilities = {"create": RESERVATION_CREATE}

    def get_queryset(self):
        params = self.request.query_params
        return ReservationService.list_reservations(
            self.request.user,
            status=params.get("status"),
            lab=params.get("lab"),
            equipment=params.get("equipment"),
            user=params.get("user"),
        )

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context["now"] = timezone.now()
        return context

    def create(self, request, *args, **kwargs):
        payload = ReservationCreateSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        data = payload.validated_data
        reservation = ReservationService.create_reservation(
            user=request.user,
            equipment_ids=data["equipment_ids"],
            start=data["start"],
            end=data["end"],
            purpose=data["purpose"],
            notes=data.get("notes"),
        )
        reservation = ReservationService.get_reservation(reservation.pk, request.user)
        return Response(self.get_serializer(reservation).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        reservation = ReservationService.get_reservation(pk, request.user)
        return Response(self.get_serializer(reservation).data)

    @action(detail=True, methods=["put"])
    def confirm(self, request, pk=None):
        reservation = ReservationService.confirm_reservation(pk, request.user)
        return self._detail_response(reservation)

    @action(detail=True, methods=["put"])
    def cancel(self, request, pk=None):
        reservation = ReservationService.cancel_reservation(pk, request.user)
        return self._detail_response(reservation)

    def _detail_response(self, reservation):
        reservation = Reservation.objects.with_details().get(pk=reservation.pk)
        return Response(self.get_serializer(reservation).data)

    @action(detail=True, methods=["get"])
    def ics(self, request, pk=None):
        reservation = ReservationService.get_reservation(pk, request.user)
        response = HttpResponse(build_ics_for_reservation(reservation), content_type="text/calendar")
        response["Content-Disposition"] = f'attachment; filename="reservation-{reservation.pk}.ics"'
        return response


# ----------------------------
# Reports
# ----------------------------
def _optional_int(value, field):
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError({field: ["A valid integer is required."]})


class ReportViewSet(viewsets.ViewSet):
    permission_classes = [CapabilityPermission]
    capabilities = {
        "equipment_utilization": REPORT_VIEW,
        "lab_statistics": REPORT_VIEW,
        "student_statistics": REPORT_VIEW,
    }

    def _window(self, request, now):
        params = request.query_params
        return reports.resolve_window(
            now,
            start_date=params.get("start_date"),
            end_date=params.get("end_date"),
            days=params.get("days"),
        )

    @action(detail=False, methods=["get"], url_path="equipment-utilization")
    def equipment_utilization(self, request):
        now = timezone.now()
        window_start, window_end = self._window(request, now)
        raw_ids = request.query_params.get("equipment_ids")
        equipment_ids = validate_equipment_ids(raw_ids.split(",")) if raw_ids else None
        lab_id = _optional_int(request.query_params.get("lab_id"), "lab_id")
        return Response(reports.equipment_usage_report(
            window_start, window_end, now=now, equipment_ids=equipment_ids, lab_id=lab_id,
        ))

    @action(detail=False, methods=["get"], url_path="lab-statistics")
    def lab_statistics(self, request):
        now = timezone.now()
        window_start, window_end = self._window(request, now)
        return Response(reports.lab_statistics_report(window_start, window_end, now=now))

    @action(detail=False, methods=["get"], url_path="student-statistics")
    def student_statistics(self, request):
        now = timezone.now()
        window_start, window_end = self._window(request, now)
        return Response(reports.user_statistics_report(window_start, window_end, now=now))

    @action(detail=False, methods=["get"], url_path="my-utilization")
    def my_utilization(self, request):
        now = timezone.now()
        window_start, window_end = self._window(request, now)
        return Response(reports.user_utilization(request.user, window_start, window_end, now=now))
