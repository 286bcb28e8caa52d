# notifications/tasks.py
import logging

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)


@shared_task
def send_notification_email(email, subject, message):
    sender = settings.DEFAULT_FROM_EMAIL
    send_mail(f"[Lab Reservations] {subject}", message, sender, [email])
    logger.info("Notification e-mail '%s' sent to %s", subject, email)
    return f"Notification sent to {email}"
