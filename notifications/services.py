# notifications/services.py
import logging

from django.contrib.auth import get_user_model
from django.db.models import Q

from users.models import ADMIN, INSTRUCTOR
from users.permissions import RESERVATION_CONFIRM, can
from .models import RESERVATION_CANCELLED, RESERVATION_CONFIRMED, RESERVATION_CREATED, Notification
from .tasks import send_notification_email

logger = logging.getLogger(__name__)

User = get_user_model()


def _describe(reservation):
    lab = reservation.lab
    where = lab.name if lab else "lab"
    return f"{where} on {reservation.start:%Y-%m-%d %H:%M}–{reservation.end:%H:%M} UTC"


class NotificationService:
    """
    - create_notification: saves the DB row and queues the e-mail
    - notify_reservation_* helpers for reservation lifecycle events

    Called after the reservation transaction commits; a failure here is logged
    and never reaches the caller that wrote the reservation.
    """

    @staticmethod
    def create_notification(recipient, title, message, notification_type, sender=None, link=None, send_email=True):
        notification = Notification.objects.create(
            recipient=recipient,
            sender=sender,
            title=title,
            message=message,
            action_url=link,
            notification_type=notification_type,
        )
        if send_email and recipient.email:
            try:
                send_notification_email.delay(recipient.email, title, message)
            except Exception:
                logger.exception("Could not queue notification e-mail for %s", recipient.email)
        return notification

    @staticmethod
    def confirmers_for(reservation):
        """Active users allowed to confirm ``reservation``."""
        candidates = User.objects.filter(is_active=True).filter(
            Q(role__in=[ADMIN, INSTRUCTOR]) | Q(is_superuser=True)
        )
        return [user for user in candidates if can(user, RESERVATION_CONFIRM, reservation)]

    # Reservation-specific helpers
    @staticmethod
    def notify_reservation_created(reservation):
        link = f"/api/reservations/{reservation.pk}/"
        description = _describe(reservation)
        owner = reservation.user
        sent = []
        for confirmer in NotificationService.confirmers_for(reservation):
            if confirmer.pk == owner.pk:
                continue
            sent.append(NotificationService.create_notification(
                recipient=confirmer,
                title=f"New reservation request #{reservation.pk}",
                message=f"{owner.display_name} requested {description}. Purpose: {reservation.purpose}",
                notification_type=RESERVATION_CREATED,
                sender=owner,
                link=link,
            ))
        logger.info("Reservation #%s: notified %d confirmer(s)", reservation.pk, len(sent))
        return sent

    @staticmethod
    def notify_reservation_confirmed(reservation, actor=None):
        actor = actor or reservation.confirmed_by
        return NotificationService.create_notification(
            recipient=reservation.user,
            title=f"Reservation confirmed #{reservation.pk}",
            message=f"Your reservation for {_describe(reservation)} was confirmed"
                    + (f" by {actor.display_name}." if actor else "."),
            notification_type=RESERVATION_CONFIRMED,
            sender=actor,
            link=f"/api/reservations/{reservation.pk}/",
        )

    @staticmethod
    def notify_reservation_cancelled(reservation, actor=None):
        actor = actor or reservation.cancelled_by
        if actor is not None and actor.pk == reservation.user_id:
            # Owner cancelled their own reservation; nothing to tell them.
            logger.info("Reservation #%s cancelled by its owner", reservation.pk)
            return None
        return NotificationService.create_notification(
            recipient=reservation.user,
            title=f"Reservation cancelled #{reservation.pk}",
            message=f"Your reservation for {_describe(reservation)} was cancelled"
                    + (f" by {actor.display_name}." if actor else "."),
            notification_type=RESERVATION_CANCELLED,
            sender=actor,
            link=f"/api/reservations/{reservation.pk}/",
        )
