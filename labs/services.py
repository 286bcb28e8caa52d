# labs/services.py
import logging
from collections import defaultdict

from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from reservations.models import CONFIRMED, PENDING, ReservationEquipment
from reservations.services import create_audit_log, translate_store_errors
from reservations.status import (
    is_computed_equipment_status,
    is_storable_equipment_status,
    resolve_equipment_status,
)
from users.permissions import EQUIPMENT_MANAGE, EQUIPMENT_SET_STATUS, LAB_MANAGE, can
from .models import Equipment, Lab

logger = logging.getLogger(__name__)


def active_windows_by_equipment(equipment_ids, now):
    """Map equipment id -> [(start, end)] of its confirmed, unfinished reservations."""
    windows = defaultdict(list)
    links = ReservationEquipment.objects.filter(
        equipment_id__in=equipment_ids,
        reservation__status=CONFIRMED,
        reservation__end__gte=now,
    ).values_list("equipment_id", "reservation__start", "reservation__end")
    for equipment_id, start, end in links:
        windows[equipment_id].append((start, end))
    return windows


def effective_statuses(equipment, now=None):
    """Resolve the effective status of many equipment rows with one query."""
    now = now or timezone.now()
    equipment = list(equipment)
    windows = active_windows_by_equipment([eq.pk for eq in equipment], now)
    return {
        eq.pk: resolve_equipment_status(eq.status, windows.get(eq.pk, []), now)
        for eq in equipment
    }


class EquipmentService:

    @staticmethod
    @translate_store_errors
    def set_operational_status(equipment_id, status, acting_user):
        """
        Store an operator-set status. Only ``operational``, ``maintenance`` and
        ``out_of_order`` are accepted; ``available`` and ``in_use`` are derived
        from reservations and can never be written.
        """
        if is_computed_equipment_status(status):
            raise ValidationError({"status": [f"'{status}' is computed from reservations and cannot be set"]})
        if not is_storable_equipment_status(status):
            raise ValidationError({"status": [f"'{status}' is not a valid equipment status"]})

        with transaction.atomic():
            try:
                equipment = Equipment.objects.select_for_update().get(pk=equipment_id)
            except (Equipment.DoesNotExist, ValueError, TypeError):
                raise NotFound("Equipment not found")
            if not can(acting_user, EQUIPMENT_SET_STATUS, equipment):
                logger.warning("User %s denied setting status of equipment #%s", acting_user, equipment.pk)
                raise PermissionDenied("You are not allowed to change equipment status")

            before = {"status": equipment.status}
            equipment.status = status
            equipment.save(update_fields=["status", "updated_at"])
            create_audit_log(
                acting_user, "equipment_status_changed", f"equipment:{equipment.pk}",
                before=before, after={"status": status},
            )

        logger.info(f"Equipment #{equipment.pk} status set to {status} by {acting_user}")
        return equipment

    @staticmethod
    @translate_store_errors
    def delete_equipment(equipment, acting_user, now=None):
        """
        Delete equipment that no pending or unfinished confirmed reservation
        holds. Links to cancelled and completed reservations go with it.
        """
        if not can(acting_user, EQUIPMENT_MANAGE, equipment):
            raise PermissionDenied("You are not allowed to delete equipment")
        now = now or timezone.now()
        with transaction.atomic():
            links = ReservationEquipment.objects.filter(equipment=equipment)
            active = links.filter(
                Q(reservation__status=PENDING) | Q(reservation__status=CONFIRMED, reservation__end__gt=now)
            )
            if active.exists():
                raise ValidationError({"detail": "Cannot delete equipment with active reservations"})
            create_audit_log(acting_user, "equipment_deleted", f"equipment:{equipment.pk}",
                             before={"name": equipment.name, "serial_number": equipment.serial_number})
            links.delete()
            equipment.delete()
        logger.info("Equipment %s deleted by %s", equipment, acting_user)


class LabService:

    @staticmethod
    @translate_store_errors
    def delete_lab(lab, acting_user):
        if not can(acting_user, LAB_MANAGE, lab):
            raise PermissionDenied("You are not allowed to delete labs")
        with transaction.atomic():
            if lab.equipment.exists():
                raise ValidationError({"detail": "Cannot delete lab with existing equipment"})
            create_audit_log(acting_user, "lab_deleted", f"lab:{lab.pk}", before={"name": lab.name})
            lab.delete()
        logger.info("Lab %s deleted by %s", lab, acting_user)
