# reservations/serializers.py
from django.utils import timezone
from rest_framework import serializers

from users.serializers import UserSummarySerializer
from .models import Reservation
from .status import reservation_effective_status


class ReservationSerializer(serializers.ModelSerializer):
    """
    Read view of a reservation. ``status`` is resolved against ``now`` from
    the serializer context (defaults to the current time); ``db_status`` is
    the stored value.
    """
    user = UserSummarySerializer(read_only=True)
    status = serializers.SerializerMethodField()
    db_status = serializers.CharField(source="status", read_only=True)
    equipment = serializers.SerializerMethodField()
    lab = serializers.SerializerMethodField()
    duration_minutes = serializers.IntegerField(read_only=True)

    class Meta:
        model = Reservation
        fields = [
            "id", "user", "start", "end", "duration_minutes", "purpose", "notes",
            "status", "db_status", "equipment", "lab",
            "confirmed_by", "cancelled_by", "created_at", "updated_at",
        ]
        read_only_fields = fields

    def _now(self):
        return self.context.get("now") or timezone.now()

    def get_status(self, obj):
        return reservation_effective_status(obj, self._now())

    def get_equipment(self, obj):
        return [
            {
                "id": link.equipment.pk,
                "name": link.equipment.name,
                "type": link.equipment.type,
                "serial_number": link.equipment.serial_number,
            }
            for link in obj.equipment_links.all()
        ]

    def get_lab(self, obj):
        links = list(obj.equipment_links.all())
        if not links:
            return None
        lab = links[0].equipment.lab
        return {"id": lab.pk, "name": lab.name, "building": lab.building, "room_number": lab.room_number}


class ReservationCreateSerializer(serializers.Serializer):
    """
    Request shape only. Grid, duration, equipment and conflict rules live in
    ReservationService so that every caller gets the same checks.
    """
    equipment_ids = serializers.ListField(child=serializers.JSONField(), allow_empty=True)
    start = serializers.DateTimeField()
    end = serializers.DateTimeField()
    purpose = serializers.CharField(max_length=255)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
