# reservations/signals.py
import logging

from django.db import transaction
from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver

from notifications.services import NotificationService
from .models import CANCELLED, CONFIRMED, Reservation

logger = logging.getLogger(__name__)


def _dispatch(handler, reservation_id):
    """Run ``handler`` on a fresh copy of the reservation once the write has committed."""
    def _run():
        try:
            reservation = Reservation.objects.select_related("user", "confirmed_by", "cancelled_by").get(pk=reservation_id)
            handler(reservation)
        except Exception:
            logger.exception("Notification for reservation #%s failed", reservation_id)
    transaction.on_commit(_run)


@receiver(pre_save, sender=Reservation)
def remember_previous_status(sender, instance, **kwargs):
    if not instance.pk:
        instance._previous_status = None
        return
    instance._previous_status = (
        Reservation.objects.filter(pk=instance.pk).values_list("status", flat=True).first()
    )


@receiver(post_save, sender=Reservation)
def reservation_saved(sender, instance, created, **kwargs):
    if created:
        logger.debug("Reservation #%s created, queueing notifications", instance.pk)
        _dispatch(NotificationService.notify_reservation_created, instance.pk)
        return

    previous = getattr(instance, "_previous_status", None)
    if previous == instance.status:
        return

    logger.debug("Reservation #%s status changed from %s to %s", instance.pk, previous, instance.status)
    if instance.status == CONFIRMED:
        _dispatch(NotificationService.notify_reservation_confirmed, instance.pk)
    elif instance.status == CANCELLED:
        _dispatch(NotificationService.notify_reservation_cancelled, instance.pk)
