# reservations/validators.py
from datetime import timedelta, timezone as dt_timezone

from django.conf import settings
from django.utils import timezone

from .exceptions import InvalidEquipment, TimeGridError


def slot_minutes():
    return getattr(settings, "RESERVATION_SLOT_MINUTES", 15)


def max_duration():
    return timedelta(hours=getattr(settings, "RESERVATION_MAX_HOURS", 8))


def is_valid_block(value):
    """True if ``value`` sits exactly on the reservation grid (UTC)."""
    if timezone.is_aware(value):
        value = value.astimezone(dt_timezone.utc)
    return value.minute % slot_minutes() == 0 and value.second == 0 and value.microsecond == 0


def validate_time_range(start, end, now=None):
    """
    Check a proposed reservation window.

    Rules run in order and the first failure is raised as a TimeGridError
    whose ``rule`` names it:

    1. ``grid_alignment``: both ends on the slot grid
    2. ``end_before_start``: end strictly after start
    3. ``max_duration``: no longer than the configured maximum
    4. ``start_in_past``: start strictly after ``now``
    """
    now = now or timezone.now()

    if not is_valid_block(start) or not is_valid_block(end):
        raise TimeGridError(f"Times must be on {slot_minutes()} minute blocks", code="grid_alignment")

    if end <= start:
        raise TimeGridError("End time must be after start time", code="end_before_start")

    if end - start > max_duration():
        hours = getattr(settings, "RESERVATION_MAX_HOURS", 8)
        raise TimeGridError(f"Reservation cannot exceed {hours} hours", code="max_duration")

    if start <= now:
        raise TimeGridError("Reservation must be in the future", code="start_in_past")


def validate_equipment_ids(equipment_ids):
    """Return the ids as a de-duplicated list of ints, preserving order."""
    if not isinstance(equipment_ids, (list, tuple)) or not equipment_ids:
        raise InvalidEquipment("At least one equipment ID is required")

    cleaned = []
    for value in equipment_ids:
        if isinstance(value, bool):
            raise InvalidEquipment(f"Invalid equipment ID: {value!r}")
        try:
            cleaned.append(int(value))
        except (TypeError, ValueError):
            raise InvalidEquipment(f"Invalid equipment ID: {value!r}")
    return list(dict.fromkeys(cleaned))
