# reservations/conflicts.py
import logging

from django.conf import settings

from labs.models import Equipment
from .exceptions import CrossLabReservation, InvalidEquipment, ReservationConflict
from .models import Reservation

logger = logging.getLogger(__name__)


class ConflictDetector:
    """
    Decide whether a set of equipment is free for a time range.

    Two checks run against every reservation that still holds its slot
    (pending or confirmed; cancelled ones never block):

    * lab level: any overlapping reservation on any equipment of the lab.
      Only applied while the lab-wide exclusivity policy is on.
    * equipment level: any overlapping reservation on the requested items.

    Overlap is half-open, so a reservation ending at 12:00 leaves 12:00 free.
    """

    def __init__(self, lab_exclusive=None):
        if lab_exclusive is None:
            lab_exclusive = getattr(settings, "RESERVATION_LAB_EXCLUSIVE", True)
        self.lab_exclusive = lab_exclusive

    @staticmethod
    def resolve_equipment(equipment_ids):
        """Fetch the requested equipment and make sure it lives in one lab."""
        equipment = list(Equipment.objects.select_related("lab").filter(pk__in=equipment_ids))
        if len(equipment) != len(set(equipment_ids)):
            missing = sorted(set(equipment_ids) - {eq.pk for eq in equipment})
            logger.warning("Reservation request references unknown equipment %s", missing)
            raise InvalidEquipment()

        lab_ids = {eq.lab_id for eq in equipment}
        if len(lab_ids) != 1:
            raise CrossLabReservation()
        return equipment

    def _candidates(self, start, end, exclude_reservation):
        qs = Reservation.objects.blocking().overlapping(start, end)
        if exclude_reservation is not None:
            qs = qs.exclude(pk=getattr(exclude_reservation, "pk", exclude_reservation))
        return qs

    def find_lab_conflict(self, lab_id, start, end, exclude_reservation=None):
        return self._candidates(start, end, exclude_reservation).for_lab(lab_id).first()

    def find_equipment_conflict(self, equipment_ids, start, end, exclude_reservation=None):
        return self._candidates(start, end, exclude_reservation).for_equipment(equipment_ids).first()

    def check(self, equipment, start, end, exclude_reservation=None):
        """Raise ReservationConflict if ``equipment`` is not free over [start, end)."""
        lab = equipment[0].lab

        if self.lab_exclusive:
            conflict = self.find_lab_conflict(lab.pk, start, end, exclude_reservation)
            if conflict is not None:
                logger.info("Lab %s busy: reservation #%s overlaps %s–%s", lab, conflict.pk, start, end)
                raise ReservationConflict(
                    f"There is a conflicting reservation in {lab.name} for the selected time"
                )

        conflict = self.find_equipment_conflict([eq.pk for eq in equipment], start, end, exclude_reservation)
        if conflict is not None:
            logger.info("Equipment busy: reservation #%s overlaps %s–%s", conflict.pk, start, end)
            raise ReservationConflict(
                "One or more equipment items are already reserved for the selected time"
            )
