# users/permissions.py
"""
Single capability check for every role/ownership decision.

Services call ``can(user, action, resource)`` before mutating anything and the
API reuses the same function through ``CapabilityPermission``, so the
admin / instructor / owner rules are written exactly once.
"""
import logging

from rest_framework import permissions

logger = logging.getLogger(__name__)

# Administrators may confirm reservations they created themselves; instructors
# may not.
ADMIN_MAY_CONFIRM_OWN = True

RESERVATION_CREATE = "reservation.create"
RESERVATION_VIEW = "reservation.view"
RESERVATION_CONFIRM = "reservation.confirm"
RESERVATION_CANCEL = "reservation.cancel"
EQUIPMENT_SET_STATUS = "equipment.set_status"
EQUIPMENT_MANAGE = "equipment.manage"
LAB_MANAGE = "lab.manage"
REPORT_VIEW = "report.view"


def _is_owner(user, resource):
    owner_id = getattr(resource, "user_id", None)
    return owner_id is not None and owner_id == user.pk


def _can_create(user, resource):
    return user.is_admin or user.is_student or user.is_instructor


def _can_view(user, resource):
    return user.is_admin or _is_owner(user, resource)


def _can_confirm(user, resource):
    if user.is_admin:
        return ADMIN_MAY_CONFIRM_OWN or not _is_owner(user, resource)
    return user.is_instructor and not _is_owner(user, resource)


def _can_cancel(user, resource):
    if user.is_admin or _is_owner(user, resource):
        return True
    return user.is_instructor


def _is_staff_role(user, resource):
    return user.is_admin or user.is_instructor


def _is_admin(user, resource):
    return user.is_admin


RULES = {
    RESERVATION_CREATE: _can_create,
    RESERVATION_VIEW: _can_view,
    RESERVATION_CONFIRM: _can_confirm,
    RESERVATION_CANCEL: _can_cancel,
    EQUIPMENT_SET_STATUS: _is_staff_role,
    EQUIPMENT_MANAGE: _is_staff_role,
    LAB_MANAGE: _is_admin,
    REPORT_VIEW: _is_staff_role,
}


def can(user, action, resource=None):
    """Return True if ``user`` may perform ``action`` on ``resource``."""
    if user is None or not getattr(user, "is_authenticated", False):
        return False
    rule = RULES.get(action)
    if rule is None:
        logger.warning("Unknown capability %r requested by %s", action, user)
        return False
    return rule(user, resource)


class CapabilityPermission(permissions.BasePermission):
    """
    DRF permission driven by ``can``.

    Views declare ``capabilities = {"create": LAB_MANAGE, ...}`` keyed by the
    viewset action; actions without an entry only require authentication.
    Object-level checks pass the object as the resource.
    """

    def _capability(self, view):
        return getattr(view, "capabilities", {}).get(getattr(view, "action", None))

    def has_permission(self, request, view):
        if not (request.user and request.user.is_authenticated):
            return False
        capability = self._capability(view)
        if capability is None or capability in OBJECT_CAPABILITIES:
            return True
        return can(request.user, capability)

    def has_object_permission(self, request, view, obj):
        capability = self._capability(view)
        if capability is None:
            return True
        return can(request.user, capability, obj)


# Decided per object, so the view-level check only requires authentication.
OBJECT_CAPABILITIES = {RESERVATION_VIEW, RESERVATION_CONFIRM, RESERVATION_CANCEL}
