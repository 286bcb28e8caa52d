# reservations/services.py
import functools
import logging

from django.db import DatabaseError, transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from labs.models import Lab
from users.permissions import (
    RESERVATION_CANCEL,
    RESERVATION_CONFIRM,
    RESERVATION_CREATE,
    RESERVATION_VIEW,
    can,
)
from .conflicts import ConflictDetector
from .exceptions import ImmutableReservation, InvalidTransition, StoreUnavailable
from .models import (
    CANCELLED,
    CONFIRMED,
    PENDING,
    AuditLog,
    Reservation,
    ReservationEquipment,
)
from .validators import validate_equipment_ids, validate_time_range

logger = logging.getLogger(__name__)


def create_audit_log(actor, action, entity, before=None, after=None, details=""):
    """Write one AuditLog row; callers run this inside their own transaction."""
    return AuditLog.objects.create(
        actor=actor if getattr(actor, "pk", None) else None,
        action=action,
        entity=entity,
        before=before,
        after=after,
        details=details,
    )


def reservation_snapshot(reservation):
    return {
        "status": reservation.status,
        "start": reservation.start.isoformat(),
        "end": reservation.end.isoformat(),
    }


def translate_store_errors(func):
    """Surface store failures as StoreUnavailable after logging them."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DatabaseError as exc:
            logger.exception("Store failure in %s: %s", func.__name__, exc)
            raise StoreUnavailable() from exc
    return wrapper


class ReservationService:
    """Create reservations and move them through their stored statuses"""

    @staticmethod
    @translate_store_errors
    def create_reservation(user, equipment_ids, start, end, purpose, notes=None, now=None, detector=None):
        """
        Validate and persist a new reservation.

        Args:
            user: the requesting user, who owns the reservation
            equipment_ids: ids of the equipment to reserve, all in one lab
            start, end: aware datetimes on the reservation grid
            purpose: free text, required
            notes: optional free text
            now: the instant used for the "in the future" rule
            detector: a ConflictDetector, defaults to the configured policy

        Returns:
            The new Reservation, always PENDING.

        The conflict check and the insert run in one transaction holding a
        lock on the lab row, so two requests for the same lab cannot both
        pass the check before either one writes.
        """
        if not can(user, RESERVATION_CREATE):
            raise PermissionDenied("You are not allowed to create reservations")
        if not purpose or not str(purpose).strip():
            raise ValidationError({"purpose": ["This field is required."]})

        ids = validate_equipment_ids(equipment_ids)
        validate_time_range(start, end, now=now)
        detector = detector or ConflictDetector()

        with transaction.atomic():
            equipment = detector.resolve_equipment(ids)
            Lab.objects.select_for_update().get(pk=equipment[0].lab_id)
            detector.check(equipment, start, end)

            reservation = Reservation.objects.create(
                user=user,
                start=start,
                end=end,
                purpose=str(purpose).strip(),
                notes=notes or None,
                status=PENDING,
            )
            ReservationEquipment.objects.bulk_create(
                [ReservationEquipment(reservation=reservation, equipment=eq) for eq in equipment]
            )
            create_audit_log(
                user, "reservation_created", f"reservation:{reservation.pk}",
                after=reservation_snapshot(reservation),
                details=f"equipment={ids}",
            )

        logger.info(f"Created reservation #{reservation.pk} for {user} ({start:%Y-%m-%d %H:%M}–{end:%H:%M})")
        return reservation

    @staticmethod
    def _locked(reservation_id):
        try:
            return Reservation.objects.select_for_update().get(pk=reservation_id)
        except (Reservation.DoesNotExist, ValueError, TypeError):
            raise NotFound("Reservation not found")

    @staticmethod
    @translate_store_errors
    def confirm_reservation(reservation_id, acting_user, now=None):
        """Approve a pending reservation whose window has not elapsed."""
        now = now or timezone.now()
        with transaction.atomic():
            reservation = ReservationService._locked(reservation_id)
            if reservation.has_elapsed(now):
                raise ImmutableReservation()
            if not can(acting_user, RESERVATION_CONFIRM, reservation):
                logger.warning("User %s denied confirming reservation #%s", acting_user, reservation.pk)
                raise PermissionDenied("You are not allowed to confirm this reservation")
            if reservation.status != PENDING:
                raise InvalidTransition(f"Only pending reservations can be confirmed (status: {reservation.status})")

            before = reservation_snapshot(reservation)
            reservation.status = CONFIRMED
            reservation.confirmed_by = acting_user
            reservation.save(update_fields=["status", "confirmed_by", "updated_at"])
            create_audit_log(
                acting_user, "reservation_confirmed", f"reservation:{reservation.pk}",
                before=before, after=reservation_snapshot(reservation),
            )

        logger.info(f"Reservation #{reservation.pk} confirmed by {acting_user}")
        return reservation

    @staticmethod
    @translate_store_errors
    def cancel_reservation(reservation_id, acting_user, now=None):
        """Cancel a pending or confirmed reservation, releasing its slot."""
        now = now or timezone.now()
        with transaction.atomic():
            reservation = ReservationService._locked(reservation_id)
            if reservation.has_elapsed(now):
                raise ImmutableReservation()
            if not can(acting_user, RESERVATION_CANCEL, reservation):
                logger.warning("User %s denied cancelling reservation #%s", acting_user, reservation.pk)
                raise PermissionDenied("You are not allowed to cancel this reservation")
            if reservation.status == CANCELLED:
                raise InvalidTransition("Reservation is already cancelled")

            before = reservation_snapshot(reservation)
            reservation.status = CANCELLED
            reservation.cancelled_by = acting_user
            reservation.save(update_fields=["status", "cancelled_by", "updated_at"])
            create_audit_log(
                acting_user, "reservation_cancelled", f"reservation:{reservation.pk}",
                before=before, after=reservation_snapshot(reservation),
            )

        logger.info(f"Reservation #{reservation.pk} cancelled by {acting_user}")
        return reservation

    @staticmethod
    @translate_store_errors
    def get_reservation(reservation_id, acting_user):
        try:
            reservation = Reservation.objects.with_details().get(pk=reservation_id)
        except (Reservation.DoesNotExist, ValueError, TypeError):
            raise NotFound("Reservation not found")
        if not can(acting_user, RESERVATION_VIEW, reservation):
            raise PermissionDenied("You are not allowed to view this reservation")
        return reservation

    @staticmethod
    def list_reservations(acting_user, status=None, lab=None, equipment=None, user=None, now=None):
        """
        Reservations visible to ``acting_user``, newest start first.
        Non-admins only ever see their own; the ``user`` filter is admin-only.
        ``status`` filters on the effective status at ``now``.
        """
        qs = Reservation.objects.with_details().order_by("-start", "-pk")
        if not acting_user.is_admin:
            qs = qs.filter(user=acting_user)
        elif user:
            qs = qs.filter(user_id=user)

        if status:
            qs = qs.with_effective_status(status, now or timezone.now())
        if lab:
            qs = qs.for_lab(lab)
        if equipment:
            qs = qs.for_equipment([equipment])
        return qs
