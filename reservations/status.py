# reservations/status.py
"""
Effective (computed, never stored) statuses for reservations and equipment.

Both resolvers are the same state machine: a stored status either passes
through unchanged or is replaced by the phase of a time window relative to
``now``. Each ``TemporalStatusTable`` spells out which stored statuses pass
through, what each phase maps to, and which boundary convention locates
``now`` in the window.

Boundary conventions are named separately:

* conflict detection treats windows as half-open ``[start, end)`` so two
  reservations may touch (``ReservationQuerySet.overlapping``)
* status resolution also puts ``now == start`` inside the window and
  ``now == end`` after it, so a reservation is never IN_PROGRESS while its
  equipment already reads AVAILABLE. Flip ``closed_end`` on a table to make
  the end instant count as "during" for that entity only.

Every function here is pure: ``now`` is always passed in.
"""
from collections import namedtuple

from labs.models import MAINTENANCE, OPERATIONAL, OUT_OF_ORDER
from .models import CANCELLED, CONFIRMED, PENDING

IN_PROGRESS = "in_progress"
COMPLETED = "completed"
AVAILABLE = "available"
IN_USE = "in_use"

BEFORE = "before"
DURING = "during"
AFTER = "after"

HALF_OPEN = "half_open"
CLOSED = "closed"

CONFLICT_BOUNDARY = HALF_OPEN
STATUS_BOUNDARY = HALF_OPEN

# Stored statuses that still hold a time slot.
BLOCKING_STATUSES = (PENDING, CONFIRMED)
# Effective statuses that count toward utilized time.
UTILIZED_STATUSES = (CONFIRMED, IN_PROGRESS, COMPLETED)

TemporalStatusTable = namedtuple("TemporalStatusTable", ["passthrough", "phases", "closed_end"])

RESERVATION_TABLE = TemporalStatusTable(
    passthrough=frozenset({PENDING, CANCELLED}),
    phases={BEFORE: CONFIRMED, DURING: IN_PROGRESS, AFTER: COMPLETED},
    closed_end=STATUS_BOUNDARY == CLOSED,
)

EQUIPMENT_TABLE = TemporalStatusTable(
    passthrough=frozenset({MAINTENANCE, OUT_OF_ORDER}),
    phases={BEFORE: AVAILABLE, DURING: IN_USE, AFTER: AVAILABLE},
    closed_end=STATUS_BOUNDARY == CLOSED,
)


def window_phase(start, end, now, closed_end=False):
    """Locate ``now`` relative to the window ``[start, end)`` (or ``[start, end]``)."""
    if now < start:
        return BEFORE
    if now < end or (closed_end and now == end):
        return DURING
    return AFTER


def resolve(table, stored_status, windows, now):
    """
    Resolve a stored status against zero or more windows.

    The first window containing ``now`` wins; with several windows and none
    active, the result is the BEFORE mapping when any window is still ahead,
    otherwise AFTER. With no windows at all the BEFORE mapping applies.
    """
    if stored_status in table.passthrough:
        return stored_status

    phases = [window_phase(start, end, now, table.closed_end) for start, end in windows]
    if DURING in phases:
        return table.phases[DURING]
    if phases and all(phase == AFTER for phase in phases):
        return table.phases[AFTER]
    return table.phases[BEFORE]


def resolve_reservation_status(stored_status, start, end, now):
    if stored_status != CONFIRMED and stored_status not in RESERVATION_TABLE.passthrough:
        return stored_status
    return resolve(RESERVATION_TABLE, stored_status, [(start, end)], now)


def resolve_equipment_status(stored_status, active_windows, now):
    """
    ``active_windows`` are the (start, end) pairs of CONFIRMED reservations
    linked to the equipment; pending or cancelled ones never make it IN_USE.
    """
    if stored_status != OPERATIONAL and stored_status not in EQUIPMENT_TABLE.passthrough:
        return stored_status
    return resolve(EQUIPMENT_TABLE, stored_status, active_windows, now)


def reservation_effective_status(reservation, now):
    return resolve_reservation_status(reservation.status, reservation.start, reservation.end, now)


def equipment_effective_status(equipment, now, windows=None):
    """
    Resolve a model instance. ``windows`` may be pre-fetched; otherwise the
    confirmed reservations still running at ``now`` are read from the store.
    """
    if windows is None:
        windows = list(
            equipment.reservations.filter(status=CONFIRMED, end__gte=now).values_list("start", "end")
        )
    return resolve_equipment_status(equipment.status, windows, now)


def is_storable_reservation_status(value):
    return value in (PENDING, CONFIRMED, CANCELLED)


def is_computed_reservation_status(value):
    return value in (IN_PROGRESS, COMPLETED)


def is_storable_equipment_status(value):
    return value in (OPERATIONAL, MAINTENANCE, OUT_OF_ORDER)


def is_computed_equipment_status(value):
    return value in (AVAILABLE, IN_USE)
