# notifications/models.py
from django.conf import settings
from django.db import models
from django.utils import timezone

RESERVATION_CREATED = "reservation_created"
RESERVATION_CONFIRMED = "reservation_confirmed"
RESERVATION_CANCELLED = "reservation_cancelled"

NOTIFICATION_TYPES = [
    (RESERVATION_CREATED, "Reservation created"),
    (RESERVATION_CONFIRMED, "Reservation confirmed"),
    (RESERVATION_CANCELLED, "Reservation cancelled"),
]


class Notification(models.Model):
    """
    In-app record of a reservation event for one user. The matching e-mail
    goes out through a Celery task.
    """

    # ---------------------------------------------------------------
    # Core Relationships
    # ---------------------------------------------------------------
    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
        help_text="The user who receives this notification."
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sent_notifications",
        help_text="The user whose action triggered the notification."
    )

    # ---------------------------------------------------------------
    # Notification Content
    # ---------------------------------------------------------------
    title = models.CharField(max_length=255)
    message = models.TextField()
    notification_type = models.CharField(max_length=50, choices=NOTIFICATION_TYPES)

    # Relative API path, e.g. /api/reservations/5/
    action_url = models.CharField(max_length=255, blank=True, null=True)

    # ---------------------------------------------------------------
    # Read Status
    # ---------------------------------------------------------------
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Notification"
        verbose_name_plural = "Notifications"

    def __str__(self):
        return f"[{self.title}] → {self.recipient.email}"
