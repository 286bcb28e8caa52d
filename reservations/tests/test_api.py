from datetime import timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from reservations.models import CANCELLED, CONFIRMED, PENDING, Reservation
from reservations.tests.helpers import make_equipment, make_lab, make_people, reserve


def future(hours, minutes=0):
    base = (timezone.now() + timedelta(days=2)).replace(hour=0, minute=0, second=0, microsecond=0)
    return base + timedelta(hours=hours, minutes=minutes)


class ReservationApiTests(TestCase):
    def setUp(self):
        self.people = make_people()
        self.lab = make_lab()
        self.scope = make_equipment(self.lab, "Scope")
        self.client = APIClient()

    def login(self, role):
        self.client.force_authenticate(self.people[role])

    def post_reservation(self, start, end, equipment=None):
        return self.client.post("/api/reservations/", {
            "equipment_ids": equipment or [self.scope.pk],
            "start": start.isoformat(),
            "end": end.isoformat(),
            "purpose": "Cell imaging",
        }, format="json")

    def test_anonymous_is_rejected(self):
        resp = self.client.get("/api/reservations/")
        self.assertIn(resp.status_code, (401, 403))

    def test_create_returns_pending_view(self):
        self.login("student")
        resp = self.post_reservation(future(10), future(12))

        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data["status"], PENDING)
        self.assertEqual(resp.data["user"]["email"], "student@example.com")
        self.assertEqual(resp.data["equipment"][0]["id"], self.scope.pk)
        self.assertEqual(resp.data["lab"]["id"], self.lab.pk)
        self.assertEqual(resp.data["duration_minutes"], 120)

    def test_create_errors_map_to_status_codes(self):
        self.login("student")
        self.assertEqual(self.post_reservation(future(10, 5), future(12)).status_code, 400)
        self.assertEqual(self.post_reservation(future(10), future(12), equipment=[9999]).status_code, 400)

        self.assertEqual(self.post_reservation(future(10), future(12)).status_code, 201)
        resp = self.post_reservation(future(11), future(13))
        self.assertEqual(resp.status_code, 409)

    def test_list_is_paginated_and_scoped(self):
        for hour in (8, 10, 12):
            reserve(self.people["student"], [self.scope], future(hour), future(hour + 1))
        reserve(self.people["other_student"], [self.scope], future(15), future(16))

        self.login("student")
        resp = self.client.get("/api/reservations/", {"results_per_page": 2})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["count"], 3)
        self.assertEqual(len(resp.data["results"]), 2)

        self.login("admin")
        resp = self.client.get("/api/reservations/")
        self.assertEqual(resp.data["count"], 4)

    def test_detail_visibility(self):
        reservation = reserve(self.people["student"], [self.scope], future(10), future(11))

        self.login("other_student")
        self.assertEqual(self.client.get(f"/api/reservations/{reservation.pk}/").status_code, 403)
        self.login("student")
        self.assertEqual(self.client.get(f"/api/reservations/{reservation.pk}/").status_code, 200)
        self.assertEqual(self.client.get(f"/api/reservations/{reservation.pk + 100}/").status_code, 404)

    def test_confirm_and_cancel(self):
        reservation = reserve(self.people["student"], [self.scope], future(10), future(11), status=PENDING)

        self.login("student")
        self.assertEqual(self.client.put(f"/api/reservations/{reservation.pk}/confirm/").status_code, 403)

        self.login("instructor")
        resp = self.client.put(f"/api/reservations/{reservation.pk}/confirm/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["status"], CONFIRMED)

        self.login("student")
        resp = self.client.put(f"/api/reservations/{reservation.pk}/cancel/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["status"], CANCELLED)
        self.assertEqual(self.client.put(f"/api/reservations/{reservation.pk}/cancel/").status_code, 400)

    def test_elapsed_reservation_is_immutable(self):
        now = timezone.now()
        reservation = reserve(self.people["student"], [self.scope], now - timedelta(hours=3), now - timedelta(hours=1))

        self.login("admin")
        resp = self.client.put(f"/api/reservations/{reservation.pk}/cancel/")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["detail"], "Reservation is immutable")
        self.assertEqual(Reservation.objects.get(pk=reservation.pk).status, CONFIRMED)

    def test_effective_status_in_views(self):
        now = timezone.now()
        reservation = reserve(self.people["student"], [self.scope], now - timedelta(hours=1), now + timedelta(hours=1))

        self.login("student")
        resp = self.client.get(f"/api/reservations/{reservation.pk}/")
        self.assertEqual(resp.data["status"], "in_progress")
        self.assertEqual(resp.data["db_status"], CONFIRMED)

        resp = self.client.get(f"/api/equipment/{self.scope.pk}/")
        self.assertEqual(resp.data["status"], "in_use")
        self.assertEqual(resp.data["db_status"], "operational")

    def test_ics_export(self):
        reservation = reserve(self.people["student"], [self.scope], future(10), future(11))
        self.login("student")
        resp = self.client.get(f"/api/reservations/{reservation.pk}/ics/")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp["Content-Type"], "text/calendar")
        self.assertIn(b"BEGIN:VCALENDAR", resp.content)
        self.assertIn(b"Scope", resp.content)


class ReportApiTests(TestCase):
    def setUp(self):
        self.people = make_people()
        self.scope = make_equipment(make_lab(), "Scope")
        self.client = APIClient()

    def test_reports_need_elevated_role(self):
        self.client.force_authenticate(self.people["student"])
        for path in ("equipment-utilization", "lab-statistics", "student-statistics"):
            self.assertEqual(self.client.get(f"/api/reports/{path}/").status_code, 403)

        self.client.force_authenticate(self.people["instructor"])
        for path in ("equipment-utilization", "lab-statistics", "student-statistics"):
            self.assertEqual(self.client.get(f"/api/reports/{path}/").status_code, 200)

    def test_my_utilization_for_everyone(self):
        self.client.force_authenticate(self.people["student"])
        resp = self.client.get("/api/reports/my-utilization/", {"days": 7})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["user_email"], "student@example.com")

    def test_bad_window(self):
        self.client.force_authenticate(self.people["admin"])
        self.assertEqual(self.client.get("/api/reports/lab-statistics/", {"days": 400}).status_code, 400)
        resp = self.client.get("/api/reports/lab-statistics/", {
            "start_date": "2030-01-02T00:00:00Z", "end_date": "2030-01-01T00:00:00Z",
        })
        self.assertEqual(resp.status_code, 400)

    def test_equipment_utilization_endpoint(self):
        self.client.force_authenticate(self.people["student"])
        resp = self.client.get(f"/api/equipment/{self.scope.pk}/utilization/", {"days": 3})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["days"], 3)
        self.assertEqual(self.client.get(f"/api/equipment/{self.scope.pk}/utilization/", {"days": 91}).status_code, 400)
