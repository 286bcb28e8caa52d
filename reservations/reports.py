# reservations/reports.py
"""
Utilization reports: fetch the reservations intersecting a window, then hand
them to the pure aggregator in ``utilization``.
"""
import logging
from collections import Counter, defaultdict
from datetime import datetime, timedelta, timezone as dt_timezone

from django.conf import settings
from django.db.models import Count
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from rest_framework.exceptions import NotFound, ValidationError

from labs.models import Equipment, Lab
from labs.services import active_windows_by_equipment
from users.models import STUDENT, User
from . import utilization as agg
from .models import CONFIRMED, Reservation
from .status import AVAILABLE, IN_USE, resolve_equipment_status

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------
# WINDOW PARSING
# ----------------------------------------------------------------
def parse_days(value, default, maximum):
    if value in (None, ""):
        return default
    try:
        days = int(value)
    except (TypeError, ValueError):
        days = 0
    if days < 1 or days > maximum:
        raise ValidationError({"days": [f"Days parameter must be between 1 and {maximum}"]})
    return days


def _parse_instant(value, field):
    parsed = parse_datetime(value) if isinstance(value, str) else value
    if not isinstance(parsed, datetime):
        raise ValidationError({field: ["Invalid date format"]})
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, dt_timezone.utc)
    return parsed


def resolve_window(now, start_date=None, end_date=None, days=None, default_days=None, max_days=None):
    """Explicit start/end when both are given, otherwise ``days`` back from now."""
    default_days = default_days or getattr(settings, "REPORT_DEFAULT_DAYS", 30)
    max_days = max_days or getattr(settings, "REPORT_MAX_DAYS", 365)

    if start_date and end_date:
        start = _parse_instant(start_date, "start_date")
        end = _parse_instant(end_date, "end_date")
        if start >= end:
            raise ValidationError({"start_date": ["Start date must be before end date"]})
        logger.debug("Report window %s to %s", start, end)
        return start, end

    return agg.report_window(parse_days(days, default_days, max_days), now)


def _entries(reservations, equipment=None):
    return [agg.entry_from_reservation(r, equipment=equipment) for r in reservations]


def _window_payload(window_start, window_end):
    return {"start_date": window_start, "end_date": window_end}


# ----------------------------------------------------------------
# PER-ENTITY UTILIZATION
# ----------------------------------------------------------------
def equipment_utilization(equipment_id, days=None, now=None):
    now = now or timezone.now()
    days = parse_days(days, getattr(settings, "UTILIZATION_DEFAULT_DAYS", 7), getattr(settings, "UTILIZATION_MAX_DAYS", 90))
    try:
        equipment = Equipment.objects.select_related("lab").get(pk=equipment_id)
    except (Equipment.DoesNotExist, ValueError, TypeError):
        raise NotFound("Equipment not found")

    window_start, window_end = agg.report_window(days, now)
    reservations = (
        Reservation.objects.for_equipment([equipment.pk])
        .intersecting(window_start, window_end)
        .select_related("user")
        .order_by("start")
    )
    timeline = agg.build_timeline(_entries(reservations, equipment=(equipment,)), window_start, window_end, now)

    return {
        "equipment_id": equipment.pk,
        "equipment_name": equipment.name,
        **_window_payload(window_start, window_end),
        "days": days,
        "timeline": timeline,
        "utilization": agg.summarize(timeline, window_start, window_end),
    }


def lab_utilization(lab_id, days=None, now=None):
    """Per-equipment timelines for a lab plus the lab's own occupancy."""
    now = now or timezone.now()
    days = parse_days(days, getattr(settings, "UTILIZATION_DEFAULT_DAYS", 7), getattr(settings, "UTILIZATION_MAX_DAYS", 90))
    try:
        lab = Lab.objects.get(pk=lab_id)
    except (Lab.DoesNotExist, ValueError, TypeError):
        raise NotFound("Lab not found")

    window_start, window_end = agg.report_window(days, now)
    reservations = list(
        Reservation.objects.for_lab(lab.pk)
        .intersecting(window_start, window_end)
        .select_related("user")
        .prefetch_related("equipment_links__equipment")
        .order_by("start")
    )
    entries = _entries(reservations)

    equipment_rows = []
    for equipment in lab.equipment.order_by("name"):
        own = [entry for entry in entries if any(eq.pk == equipment.pk for eq in entry.equipment)]
        timeline = agg.build_timeline(own, window_start, window_end, now)
        equipment_rows.append({
            "equipment_id": equipment.pk,
            "equipment_name": equipment.name,
            "timeline": timeline,
            "utilization": agg.summarize(timeline, window_start, window_end),
        })

    lab_timeline = agg.build_timeline(entries, window_start, window_end, now)
    return {
        "lab_id": lab.pk,
        "lab_name": lab.name,
        **_window_payload(window_start, window_end),
        "days": days,
        "equipment": equipment_rows,
        "utilization": agg.summarize(lab_timeline, window_start, window_end),
    }


def lab_stats(lab_id, now=None):
    """Snapshot of a lab: equipment by status and current reservation load."""
    now = now or timezone.now()
    try:
        lab = Lab.objects.get(pk=lab_id)
    except (Lab.DoesNotExist, ValueError, TypeError):
        raise NotFound("Lab not found")

    equipment = list(lab.equipment.all())
    windows = active_windows_by_equipment([eq.pk for eq in equipment], now)
    effective = Counter(
        resolve_equipment_status(eq.status, windows.get(eq.pk, []), now) for eq in equipment
    )
    stored = dict(
        lab.equipment.order_by().values("status").annotate(total=Count("id")).values_list("status", "total")
    )

    lab_reservations = Reservation.objects.for_lab(lab.pk)
    recent = lab_reservations.filter(created_at__gte=now - timedelta(days=30)).count()
    active = lab_reservations.filter(status=CONFIRMED, end__gte=now).count()
    bookable = sum(count for status, count in effective.items() if status in (AVAILABLE, IN_USE))

    return {
        "lab": {"id": lab.pk, "name": lab.name, "capacity": lab.capacity},
        "statistics": {
            "equipment_by_status": stored,
            "equipment_by_effective_status": dict(effective),
            "total_equipment": len(equipment),
            "recent_reservations": recent,
            "active_reservations": active,
            "utilization_rate": agg.percentage_of_total(active, bookable),
        },
    }


# ----------------------------------------------------------------
# CROSS-ENTITY REPORTS
# ----------------------------------------------------------------
def _equipment_timelines(equipment, window_start, window_end, now):
    """Map equipment id -> timeline, with one reservation query for all of them."""
    ids = [eq.pk for eq in equipment]
    reservations = (
        Reservation.objects.for_equipment(ids)
        .intersecting(window_start, window_end)
        .select_related("user")
        .prefetch_related("equipment_links__equipment")
        .order_by("start")
    )
    by_equipment = defaultdict(list)
    for entry in _entries(reservations):
        for eq in entry.equipment:
            by_equipment[eq.pk].append(entry)
    return {
        eq.pk: agg.build_timeline(by_equipment.get(eq.pk, []), window_start, window_end, now)
        for eq in equipment
    }


def equipment_usage_report(window_start, window_end, now=None, equipment_ids=None, lab_id=None):
    now = now or timezone.now()
    qs = Equipment.objects.select_related("lab").order_by("name")
    if equipment_ids:
        qs = qs.filter(pk__in=equipment_ids)
    if lab_id is not None:
        qs = qs.filter(lab_id=lab_id)
    equipment = list(qs)

    timelines = _equipment_timelines(equipment, window_start, window_end, now)
    rows = []
    all_users = set()
    for eq in equipment:
        timeline = timelines[eq.pk]
        summary = agg.summarize(timeline, window_start, window_end)
        all_users.update(item["user"]["id"] for item in agg.utilized(timeline))
        rows.append({
            "equipment_id": eq.pk,
            "equipment_name": eq.name,
            "serial_number": eq.serial_number,
            "lab_id": eq.lab_id,
            "lab_name": eq.lab.name,
            "utilization_percent": summary["utilization_percentage"],
            "total_reservations": summary["reservation_count"],
            "total_duration_minutes": summary["reserved_minutes"],
            "average_duration_minutes": summary["average_duration_minutes"],
            "unique_users": summary["unique_users"],
            "timeline": timeline,
        })

    average_utilization = (
        round(sum(row["utilization_percent"] for row in rows) / len(rows), 2) if rows else 0.0
    )
    return {
        **_window_payload(window_start, window_end),
        "equipment_usage": rows,
        "total_reservations": sum(row["total_reservations"] for row in rows),
        "total_duration_minutes": sum(row["total_duration_minutes"] for row in rows),
        "average_utilization_percent": average_utilization,
        "unique_users": len(all_users),
        "total_equipment": len(rows),
    }


def lab_statistics_report(window_start, window_end, now=None):
    now = now or timezone.now()
    labs = list(Lab.objects.prefetch_related("equipment").order_by("building", "room_number"))
    equipment = [eq for lab in labs for eq in lab.equipment.all()]
    timelines = _equipment_timelines(equipment, window_start, window_end, now)

    rows = []
    for lab in labs:
        breakdown = []
        users = set()
        reservations = 0
        minutes = 0
        for eq in lab.equipment.all():
            timeline = timelines[eq.pk]
            summary = agg.summarize(timeline, window_start, window_end)
            users.update(item["user"]["id"] for item in agg.utilized(timeline))
            reservations += summary["reservation_count"]
            minutes += summary["reserved_minutes"]
            breakdown.append({
                "equipment_id": eq.pk,
                "equipment_name": eq.name,
                "reservation_count": summary["reservation_count"],
                "utilization_percent": summary["utilization_percentage"],
            })

        average_utilization = (
            round(sum(item["utilization_percent"] for item in breakdown) / len(breakdown), 2)
            if breakdown else 0.0
        )
        rows.append({
            "lab_id": lab.pk,
            "lab_name": lab.name,
            "total_equipment": len(breakdown),
            "total_reservations": reservations,
            "utilization_percent": average_utilization,
            "total_duration_minutes": minutes,
            "average_reservation_duration": agg.average(minutes, reservations),
            "unique_users": len(users),
            "percentage_of_total": 0.0,
            "equipment_breakdown": breakdown,
        })

    grand_total = sum(row["total_duration_minutes"] for row in rows)
    for row in rows:
        row["percentage_of_total"] = agg.percentage_of_total(row["total_duration_minutes"], grand_total)

    return {
        **_window_payload(window_start, window_end),
        "labs": rows,
        "total_labs": len(rows),
        "total_equipment": sum(row["total_equipment"] for row in rows),
        "total_reservations": sum(row["total_reservations"] for row in rows),
        "total_duration_minutes": grand_total,
        "average_lab_utilization": (
            round(sum(row["utilization_percent"] for row in rows) / len(rows), 2) if rows else 0.0
        ),
    }


def user_utilization(user, window_start, window_end, now=None):
    """One user's reservations in the window, for their own GANTT view."""
    now = now or timezone.now()
    reservations = (
        Reservation.objects.filter(user=user)
        .intersecting(window_start, window_end)
        .select_related("user")
        .prefetch_related("equipment_links__equipment__lab")
        .order_by("start")
    )
    entries = _entries(reservations)
    labs_by_equipment = {eq.pk: eq.lab.name for entry in entries for eq in entry.equipment}
    timeline = agg.build_timeline(entries, window_start, window_end, now, label=agg.equipment_label)
    summary = agg.summarize(timeline, window_start, window_end)

    equipment_usage = Counter()
    lab_usage = Counter()
    for item in agg.utilized(timeline):
        for eq in item["equipment"]:
            equipment_usage[eq["name"]] += 1
        for lab_name in {labs_by_equipment[eq["id"]] for eq in item["equipment"]}:
            lab_usage[lab_name] += 1

    return {
        "user_id": user.pk,
        "user_name": user.get_full_name() or "N/A",
        "user_email": user.email,
        **_window_payload(window_start, window_end),
        "total_reservations": len(timeline),
        "total_duration_minutes": summary["reserved_minutes"],
        "average_duration_minutes": summary["average_duration_minutes"],
        "utilization_percentage": summary["utilization_percentage"],
        "by_status": agg.count_by_status(timeline),
        "timeline": timeline,
        "equipment_usage": dict(equipment_usage),
        "lab_usage": dict(lab_usage),
    }


def user_statistics_report(window_start, window_end, now=None, role=STUDENT):
    """Per-user rows for every user of ``role`` with reservations in the window."""
    now = now or timezone.now()
    users = {user.pk: user for user in User.objects.filter(role=role).order_by("email")}
    reservations = (
        Reservation.objects.filter(user_id__in=list(users))
        .intersecting(window_start, window_end)
        .select_related("user")
        .order_by("start")
    )
    by_user = defaultdict(list)
    for entry in _entries(reservations, equipment=()):
        by_user[entry.user_id].append(entry)

    rows = []
    for user_id, user in users.items():
        timeline = agg.build_timeline(by_user.get(user_id, []), window_start, window_end, now)
        if not timeline:
            continue
        counts = agg.count_by_status(timeline)
        minutes = agg.reserved_minutes(timeline)
        rows.append({
            "user_id": user.pk,
            "user_name": user.get_full_name() or "N/A",
            "user_email": user.email,
            "total_reservations": len(timeline),
            "confirmed_reservations": counts["confirmed"] + counts["in_progress"],
            "cancelled_reservations": counts["cancelled"],
            "completed_reservations": counts["completed"],
            "total_duration_minutes": minutes,
            "average_duration_minutes": agg.average(minutes, len(timeline)),
            "percentage_of_total": 0.0,
        })

    grand_total = sum(row["total_duration_minutes"] for row in rows)
    total_reservations = sum(row["total_reservations"] for row in rows)
    for row in rows:
        row["percentage_of_total"] = agg.percentage_of_total(row["total_duration_minutes"], grand_total)

    return {
        **_window_payload(window_start, window_end),
        "students": rows,
        "total_students": len(rows),
        "total_reservations": total_reservations,
        "total_duration_minutes": grand_total,
        "average_reservations_per_student": round(total_reservations / len(rows), 2) if rows else 0.0,
        "average_time_per_student": agg.average(grand_total, len(rows)),
    }
