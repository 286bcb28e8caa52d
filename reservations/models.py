# reservations/models.py
from django.conf import settings
from django.db import models

from labs.models import Equipment

User = settings.AUTH_USER_MODEL

# --------------------------------------------------------------------
# CHOICES
# --------------------------------------------------------------------
PENDING = "pending"
CONFIRMED = "confirmed"
CANCELLED = "cancelled"

RESERVATION_STATUS = [
    (PENDING, "Pending"),
    (CONFIRMED, "Confirmed"),
    (CANCELLED, "Cancelled"),
]


# --------------------------------------------------------------------
# QUERYSET
# --------------------------------------------------------------------
class ReservationQuerySet(models.QuerySet):
    """Query-shaped reads used by the conflict detector and the reports."""

    def blocking(self):
        """Reservations that still hold their time slot."""
        return self.filter(status__in=[PENDING, CONFIRMED])

    def overlapping(self, start, end):
        """Half-open overlap: touching endpoints do not overlap."""
        return self.filter(start__lt=end, end__gt=start)

    def intersecting(self, start, end):
        """Inclusive intersection with a reporting window."""
        return self.filter(start__lte=end, end__gte=start)

    def with_effective_status(self, status, now):
        """Filter by the status a reservation resolves to at ``now``."""
        if status == "in_progress":
            return self.filter(status=CONFIRMED, start__lte=now, end__gt=now)
        if status == "completed":
            return self.filter(status=CONFIRMED, end__lte=now)
        if status == CONFIRMED:
            return self.filter(status=CONFIRMED, start__gt=now)
        return self.filter(status=status)

    def for_lab(self, lab_id):
        return self.filter(equipment_links__equipment__lab_id=lab_id).distinct()

    def for_equipment(self, equipment_ids):
        return self.filter(equipment_links__equipment_id__in=list(equipment_ids)).distinct()

    def with_details(self):
        return self.select_related("user").prefetch_related("equipment_links__equipment__lab")


# --------------------------------------------------------------------
# RESERVATION MODEL
# --------------------------------------------------------------------
class Reservation(models.Model):
    user = models.ForeignKey(User, on_delete=models.PROTECT, related_name="reservations")
    start = models.DateTimeField()
    end = models.DateTimeField()
    purpose = models.CharField(max_length=255)
    notes = models.TextField(blank=True, null=True)
    status = models.CharField(max_length=20, choices=RESERVATION_STATUS, default=PENDING)
    equipment = models.ManyToManyField(Equipment, through="ReservationEquipment", related_name="reservations")

    confirmed_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name="confirmed_reservations"
    )
    cancelled_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name="cancelled_reservations"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ReservationQuerySet.as_manager()

    class Meta:
        ordering = ["-start"]
        indexes = [
            models.Index(fields=["start", "end"], name="reservation_window_idx"),
            models.Index(fields=["status"], name="reservation_status_idx"),
            models.Index(fields=["user", "start"], name="reservation_user_start_idx"),
        ]
        constraints = [
            models.CheckConstraint(condition=models.Q(end__gt=models.F("start")), name="reservation_end_after_start"),
        ]

    def __str__(self):
        return f"Reservation #{self.pk} — {self.start:%Y-%m-%d %H:%M} to {self.end:%H:%M} ({self.status})"

    @property
    def duration_minutes(self):
        delta = self.end - self.start
        return int(delta.total_seconds() // 60)

    @property
    def lab(self):
        """All linked equipment share one lab; None before links exist."""
        link = self.equipment_links.select_related("equipment__lab").first()
        return link.equipment.lab if link else None

    def has_elapsed(self, now):
        return now > self.end


class ReservationEquipment(models.Model):
    reservation = models.ForeignKey(Reservation, on_delete=models.CASCADE, related_name="equipment_links")
    equipment = models.ForeignKey(Equipment, on_delete=models.PROTECT, related_name="reservation_links")

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["reservation", "equipment"], name="uniq_reservation_equipment"),
        ]

    def __str__(self):
        return f"Reservation #{self.reservation_id} → {self.equipment_id}"


# --------------------------------------------------------------------
# AUDIT LOG MODEL
# --------------------------------------------------------------------
class AuditLog(models.Model):
    """Track reservation and equipment status actions"""
    actor = models.ForeignKey(User, on_delete=models.SET_NULL, null=True)
    action = models.CharField(max_length=200)
    timestamp = models.DateTimeField(auto_now_add=True)
    entity = models.CharField(max_length=100, blank=True)
    before = models.JSONField(null=True, blank=True)
    after = models.JSONField(null=True, blank=True)
    details = models.TextField(blank=True, null=True)

    class Meta:
        ordering = ["-timestamp"]

    def __str__(self):
        return f"{self.timestamp:%Y-%m-%d %H:%M} — {self.actor} — {self.action}"
