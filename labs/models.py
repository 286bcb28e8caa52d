# labs/models.py
from django.db import models

OPERATIONAL = "operational"
MAINTENANCE = "maintenance"
OUT_OF_ORDER = "out_of_order"

EQUIPMENT_STATUS = [
    (OPERATIONAL, "Operational"),
    (MAINTENANCE, "Maintenance"),
    (OUT_OF_ORDER, "Out of order"),
]


class Lab(models.Model):
    building = models.CharField(max_length=120)
    room_number = models.CharField(max_length=32)
    capacity = models.PositiveIntegerField(default=20)
    description = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["building", "room_number"]
        constraints = [
            models.UniqueConstraint(fields=["building", "room_number"], name="uniq_lab_building_room"),
            models.CheckConstraint(condition=models.Q(capacity__gt=0), name="lab_capacity_positive"),
        ]

    def __str__(self):
        return self.name

    @property
    def name(self):
        return f"{self.building} {self.room_number}"


class Equipment(models.Model):
    name = models.CharField(max_length=200)
    type = models.CharField(max_length=120)
    serial_number = models.CharField(max_length=120, unique=True)
    status = models.CharField(max_length=20, choices=EQUIPMENT_STATUS, default=OPERATIONAL)
    description = models.TextField(blank=True, null=True)
    lab = models.ForeignKey(Lab, on_delete=models.PROTECT, related_name="equipment")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "equipment"

    def __str__(self):
        return f"{self.name} ({self.serial_number})"
