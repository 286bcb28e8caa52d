# labs/serializers.py
from django.utils import timezone
from rest_framework import serializers

from reservations.status import equipment_effective_status
from .models import Equipment, Lab


class EquipmentSerializer(serializers.ModelSerializer):
    """
    ``status`` is the effective status; ``db_status`` is what an operator stored.
    Views may pass ``effective_statuses`` ({id: status}) in the context to
    avoid one reservation query per row.
    """
    status = serializers.SerializerMethodField()
    db_status = serializers.CharField(source="status", read_only=True)
    lab_name = serializers.CharField(source="lab.name", read_only=True)

    class Meta:
        model = Equipment
        fields = [
            "id", "name", "type", "serial_number", "status", "db_status",
            "description", "lab", "lab_name", "created_at", "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def get_status(self, obj):
        resolved = self.context.get("effective_statuses") or {}
        if obj.pk in resolved:
            return resolved[obj.pk]
        return equipment_effective_status(obj, self.context.get("now") or timezone.now())


class EquipmentStatusSerializer(serializers.Serializer):
    # Validated against the stored set by EquipmentService, which knows the error wording.
    status = serializers.CharField()


class LabSerializer(serializers.ModelSerializer):
    name = serializers.CharField(read_only=True)
    capacity = serializers.IntegerField(min_value=1, required=False)
    equipment_count = serializers.SerializerMethodField()

    class Meta:
        model = Lab
        fields = ["id", "name", "building", "room_number", "capacity", "description",
                  "equipment_count", "created_at", "updated_at"]
        read_only_fields = ["created_at", "updated_at"]

    def get_equipment_count(self, obj):
        annotated = getattr(obj, "equipment_total", None)
        return annotated if annotated is not None else obj.equipment.count()
