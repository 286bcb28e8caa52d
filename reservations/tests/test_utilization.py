from collections import namedtuple

from django.test import SimpleTestCase

from reservations import utilization as agg
from reservations.models import CANCELLED, CONFIRMED, PENDING
from reservations.status import COMPLETED, IN_PROGRESS
from reservations.tests.helpers import at

FakeEquipment = namedtuple("FakeEquipment", ["pk", "name"])
SCOPE = FakeEquipment(1, "Microscope")


def entry(pk, start, end, status=CONFIRMED, user_id=1, purpose="Imaging"):
    return agg.TimelineEntry(
        reservation_id=pk, start=start, end=end, status=status, purpose=purpose,
        user_id=user_id, user_email=f"user{user_id}@example.com", user_name=None, equipment=(SCOPE,),
    )


class ReportWindowTests(SimpleTestCase):
    def test_window_starts_at_midnight_utc(self):
        start, end = agg.report_window(1, at(0, day=8))
        self.assertEqual(start, at(0, day=7))
        self.assertEqual(end, at(0, day=8))
        self.assertEqual(agg.window_minutes(start, end), 1440)

    def test_partial_first_day(self):
        start, end = agg.report_window(7, at(15, 30, day=8))
        self.assertEqual(start, at(0, day=1))
        self.assertEqual(end, at(15, 30, day=8))


class TimelineTests(SimpleTestCase):
    def setUp(self):
        self.window = (at(0, day=7), at(0, day=8))
        self.now = at(0, day=8)

    def test_two_hours_in_a_day(self):
        timeline = agg.build_timeline([entry(1, at(10), at(12))], *self.window, self.now)
        summary = agg.summarize(timeline, *self.window)

        self.assertEqual(summary["total_minutes"], 1440)
        self.assertEqual(summary["reserved_minutes"], 120)
        self.assertEqual(summary["utilization_percentage"], 8.33)
        self.assertEqual(timeline[0]["status"], COMPLETED)

    def test_clamps_to_window_and_drops_edge_touches(self):
        entries = [
            entry(1, at(23, day=6), at(1, day=7)),
            entry(2, at(22, day=6), at(0, day=7)),
            entry(3, at(23, day=7), at(2, day=8)),
        ]
        timeline = agg.build_timeline(entries, *self.window, self.now)

        self.assertEqual([item["reservation_id"] for item in timeline], [1, 3])
        self.assertEqual(timeline[0]["start"], at(0, day=7))
        self.assertEqual(timeline[0]["duration_minutes"], 60)
        self.assertEqual(timeline[1]["end"], at(0, day=8))
        self.assertEqual(timeline[1]["status"], IN_PROGRESS)

    def test_pending_and_cancelled_listed_but_not_counted(self):
        entries = [
            entry(1, at(9), at(10), status=PENDING),
            entry(2, at(10), at(11), status=CANCELLED, user_id=2),
            entry(3, at(11), at(12), user_id=3),
        ]
        timeline = agg.build_timeline(entries, *self.window, self.now)
        summary = agg.summarize(timeline, *self.window)

        self.assertEqual(len(timeline), 3)
        self.assertEqual(summary["reserved_minutes"], 60)
        self.assertEqual(summary["reservation_count"], 1)
        self.assertEqual(summary["unique_users"], 1)
        counts = agg.count_by_status(timeline)
        self.assertEqual((counts[PENDING], counts[CANCELLED], counts[COMPLETED]), (1, 1, 1))

    def test_ordered_by_start(self):
        entries = [entry(2, at(14), at(15)), entry(1, at(9), at(10))]
        timeline = agg.build_timeline(entries, *self.window, self.now)
        self.assertEqual([item["reservation_id"] for item in timeline], [1, 2])

    def test_labels(self):
        item = entry(1, at(9), at(10))
        self.assertEqual(agg.default_label(item), "Imaging - user1@example.com")
        self.assertEqual(agg.equipment_label(item), "Imaging - Microscope")


class PercentageTests(SimpleTestCase):
    def test_empty_window_is_zero(self):
        self.assertEqual(agg.utilization_percentage(30, 0), 0.0)
        self.assertEqual(agg.percentage_of_total(5, 0), 0.0)

    def test_rounding(self):
        self.assertEqual(agg.percentage_of_total(1, 3), 33.33)
        self.assertEqual(agg.average(100, 3), 33)
