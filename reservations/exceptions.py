# reservations/exceptions.py
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError


class TimeGridError(ValidationError):
    """A proposed time range breaks one of the grid/duration/future rules."""

    def __init__(self, detail, code):
        super().__init__({"time_range": [detail]}, code=code)
        self.rule = code


class InvalidEquipment(ValidationError):
    def __init__(self, detail="One or more equipment IDs are invalid"):
        super().__init__({"equipment_ids": [detail]}, code="invalid_reference")


class CrossLabReservation(ValidationError):
    def __init__(self, detail="All equipment must be in the same lab"):
        super().__init__({"equipment_ids": [detail]}, code="cross_lab")


class ImmutableReservation(ValidationError):
    def __init__(self, detail="Reservation is immutable"):
        super().__init__({"detail": detail}, code="immutable")


class InvalidTransition(ValidationError):
    def __init__(self, detail):
        super().__init__({"detail": detail}, code="invalid_transition")


class ReservationConflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The requested time overlaps an existing reservation."
    default_code = "conflict"


class StoreUnavailable(APIException):
    """The store failed; the only error a caller may retry transparently."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "The reservation store is unavailable, try again."
    default_code = "store_unavailable"
