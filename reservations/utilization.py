# reservations/utilization.py
"""
Utilization aggregation over already-fetched reservation rows.

Nothing here touches the database or the clock: callers pass the report
window and ``now``. Reservation windows are clamped to the report window;
a clamp that leaves zero width (a reservation that only touches the window
edge) is dropped from timelines and totals alike.
"""
from collections import namedtuple
from datetime import datetime, time, timedelta, timezone as dt_timezone

from .models import CANCELLED, CONFIRMED, PENDING
from .status import COMPLETED, IN_PROGRESS, UTILIZED_STATUSES, resolve_reservation_status

TimelineEntry = namedtuple(
    "TimelineEntry",
    ["reservation_id", "start", "end", "status", "purpose", "user_id", "user_email", "user_name", "equipment"],
    defaults=((),),
)


def entry_from_reservation(reservation, equipment=None):
    """Build a TimelineEntry from a Reservation with its user loaded."""
    user = reservation.user
    if equipment is None:
        equipment = tuple(link.equipment for link in reservation.equipment_links.all())
    return TimelineEntry(
        reservation_id=reservation.pk,
        start=reservation.start,
        end=reservation.end,
        status=reservation.status,
        purpose=reservation.purpose,
        user_id=user.pk,
        user_email=user.email,
        user_name=user.get_full_name() or None,
        equipment=tuple(equipment),
    )


def report_window(days, now):
    """``days`` back from ``now``, starting at midnight UTC of the first day."""
    first_day = (now - timedelta(days=days)).astimezone(dt_timezone.utc).date()
    return datetime.combine(first_day, time.min, tzinfo=dt_timezone.utc), now


def window_minutes(window_start, window_end):
    return max(0, int((window_end - window_start).total_seconds() // 60))


def clamp(start, end, window_start, window_end):
    """Clamp [start, end] to the window; None when nothing of width remains."""
    clamped_start = max(start, window_start)
    clamped_end = min(end, window_end)
    if clamped_end <= clamped_start:
        return None
    return clamped_start, clamped_end


def minutes_between(start, end):
    return int((end - start).total_seconds() // 60)


def default_label(entry):
    return f"{entry.purpose or 'Reservation'} - {entry.user_name or entry.user_email}"


def equipment_label(entry):
    names = ", ".join(eq.name for eq in entry.equipment)
    return f"{entry.purpose or 'Reservation'} - {names}"


def build_timeline(entries, window_start, window_end, now, label=default_label):
    """Ordered-by-start timeline items with effective statuses."""
    timeline = []
    for entry in entries:
        clamped = clamp(entry.start, entry.end, window_start, window_end)
        if clamped is None:
            continue
        start, end = clamped
        timeline.append({
            "reservation_id": entry.reservation_id,
            "start": start,
            "end": end,
            "status": resolve_reservation_status(entry.status, entry.start, entry.end, now),
            "purpose": entry.purpose,
            "label": label(entry),
            "duration_minutes": minutes_between(start, end),
            "user": {
                "id": entry.user_id,
                "email": entry.user_email,
                "name": entry.user_name or "N/A",
            },
            "equipment": [{"id": eq.pk, "name": eq.name} for eq in entry.equipment],
        })
    timeline.sort(key=lambda item: (item["start"], item["reservation_id"]))
    return timeline


def utilized(timeline):
    return [item for item in timeline if item["status"] in UTILIZED_STATUSES]


def reserved_minutes(timeline):
    return sum(item["duration_minutes"] for item in utilized(timeline))


def utilization_percentage(minutes, total_minutes):
    if total_minutes <= 0:
        return 0.0
    return round(minutes / total_minutes * 100, 2)


def percentage_of_total(part, whole):
    if whole <= 0:
        return 0.0
    return round(part / whole * 100, 2)


def average(total, count):
    return round(total / count) if count else 0


def summarize(timeline, window_start, window_end):
    """Totals for one scope (an equipment item, a lab, a user)."""
    used = utilized(timeline)
    minutes = sum(item["duration_minutes"] for item in used)
    total = window_minutes(window_start, window_end)
    return {
        "total_minutes": total,
        "reserved_minutes": minutes,
        "utilization_percentage": utilization_percentage(minutes, total),
        "reservation_count": len(used),
        "unique_users": len({item["user"]["id"] for item in used}),
        "average_duration_minutes": average(minutes, len(used)),
    }


def count_by_status(timeline):
    counts = {status: 0 for status in (PENDING, CONFIRMED, IN_PROGRESS, COMPLETED, CANCELLED)}
    for item in timeline:
        counts[item["status"]] = counts.get(item["status"], 0) + 1
    return counts
