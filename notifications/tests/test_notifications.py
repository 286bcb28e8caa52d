from unittest import mock

from django.conf import settings
from django.core import mail
from django.test import TestCase

from notifications.models import RESERVATION_CANCELLED, RESERVATION_CONFIRMED, RESERVATION_CREATED, Notification
from notifications.tasks import send_notification_email
from reservations.models import PENDING
from reservations.services import ReservationService
from reservations.tests.helpers import NOW, at, make_equipment, make_lab, make_people, reserve


class ReservationNotificationTests(TestCase):
    def setUp(self):
        self.people = make_people()
        self.scope = make_equipment(make_lab(), "Scope")

    def test_created_notifies_confirmers(self):
        with self.captureOnCommitCallbacks(execute=True):
            reservation = ReservationService.create_reservation(
                self.people["student"], [self.scope.pk], at(10), at(11), "Imaging", now=NOW,
            )

        notes = Notification.objects.filter(notification_type=RESERVATION_CREATED)
        self.assertEqual(
            {note.recipient for note in notes}, {self.people["instructor"], self.people["admin"]}
        )
        self.assertTrue(all(note.action_url == f"/api/reservations/{reservation.pk}/" for note in notes))
        self.assertEqual(len(mail.outbox), 2)
        self.assertIn("New reservation request", mail.outbox[0].subject)

    def test_instructor_request_skips_its_owner(self):
        with self.captureOnCommitCallbacks(execute=True):
            ReservationService.create_reservation(
                self.people["instructor"], [self.scope.pk], at(10), at(11), "Demo", now=NOW,
            )
        recipients = set(Notification.objects.values_list("recipient__email", flat=True))
        self.assertEqual(recipients, {"admin@example.com"})

    def test_confirmed_and_cancelled_notify_owner(self):
        reservation = reserve(self.people["student"], [self.scope], at(10), at(11), status=PENDING)

        with self.captureOnCommitCallbacks(execute=True):
            ReservationService.confirm_reservation(reservation.pk, self.people["instructor"], now=NOW)
        with self.captureOnCommitCallbacks(execute=True):
            ReservationService.cancel_reservation(reservation.pk, self.people["admin"], now=NOW)

        types = list(
            Notification.objects.filter(recipient=self.people["student"])
            .order_by("created_at", "pk").values_list("notification_type", flat=True)
        )
        self.assertEqual(types, [RESERVATION_CONFIRMED, RESERVATION_CANCELLED])

    def test_owner_cancelling_is_silent(self):
        reservation = reserve(self.people["student"], [self.scope], at(10), at(11))
        with self.captureOnCommitCallbacks(execute=True):
            ReservationService.cancel_reservation(reservation.pk, self.people["student"], now=NOW)
        self.assertFalse(Notification.objects.exists())

    def test_delivery_failure_does_not_undo_the_write(self):
        with mock.patch("notifications.services.send_notification_email.delay", side_effect=OSError("broker down")):
            with self.captureOnCommitCallbacks(execute=True):
                reservation = ReservationService.create_reservation(
                    self.people["student"], [self.scope.pk], at(10), at(11), "Imaging", now=NOW,
                )
        reservation.refresh_from_db()
        self.assertEqual(reservation.status, PENDING)
        self.assertEqual(Notification.objects.count(), 2)
        self.assertEqual(len(mail.outbox), 0)


class NotificationEmailTaskTests(TestCase):
    def test_eager_mode_delivers_through_in_process_broker(self):
        self.assertTrue(settings.CELERY_TASK_ALWAYS_EAGER)
        self.assertEqual(settings.CELERY_BROKER_URL, "memory://")

        send_notification_email.delay("student@example.com", "Reminder", "Your slot starts soon")

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, "[Lab Reservations] Reminder")
        self.assertEqual(mail.outbox[0].to, ["student@example.com"])
