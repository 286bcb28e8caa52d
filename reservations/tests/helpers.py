# reservations/tests/helpers.py
from datetime import datetime, timezone as dt_timezone

from labs.models import Equipment, Lab
from reservations.models import CONFIRMED, Reservation, ReservationEquipment
from users.models import ADMIN, INSTRUCTOR, STUDENT, User

# Fixed clock for service-level tests; reservations below are all after it.
NOW = datetime(2030, 1, 7, 8, 0, tzinfo=dt_timezone.utc)


def at(hour, minute=0, day=7, second=0, microsecond=0):
    return datetime(2030, 1, day, hour, minute, second, microsecond, tzinfo=dt_timezone.utc)


def make_user(name, role=STUDENT, **extra):
    return User.objects.create_user(
        email=f"{name}@example.com", username=name, password="pass", role=role, **extra
    )


def make_people():
    return {
        "student": make_user("student"),
        "other_student": make_user("other"),
        "instructor": make_user("instructor", role=INSTRUCTOR),
        "admin": make_user("admin", role=ADMIN),
    }


def make_lab(building="Science", room="101"):
    return Lab.objects.create(building=building, room_number=room, capacity=20)


def make_equipment(lab, name, serial=None, **extra):
    return Equipment.objects.create(
        name=name, type="microscope", serial_number=serial or f"SN-{name}", lab=lab, **extra
    )


def reserve(user, equipment, start, end, status=CONFIRMED, purpose="Experiment"):
    """Store a reservation directly, bypassing validation."""
    reservation = Reservation.objects.create(user=user, start=start, end=end, status=status, purpose=purpose)
    for eq in equipment:
        ReservationEquipment.objects.create(reservation=reservation, equipment=eq)
    return reservation
