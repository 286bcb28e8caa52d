# reservations/utils/ical.py
from django.utils import timezone
from icalendar import Calendar, Event, vCalAddress, vText

from ..models import CANCELLED, CONFIRMED, PENDING

ICS_STATUS = {PENDING: 'TENTATIVE', CONFIRMED: 'CONFIRMED', CANCELLED: 'CANCELLED'}


def build_ics_for_reservation(reservation, now=None):
    cal = Calendar()
    cal.add('prodid', '-//Lab Equipment Reservations//example.org//')
    cal.add('version', '2.0')

    lab = reservation.lab
    lab_name = lab.name if lab else 'Lab'
    equipment = ', '.join(link.equipment.name for link in reservation.equipment_links.all())

    ev = Event()
    ev.add('uid', f"reservation-{reservation.pk}@lab-reservations")
    ev.add('summary', f"{reservation.purpose} ({lab_name})")
    ev.add('dtstart', reservation.start)
    ev.add('dtend', reservation.end)
    ev.add('dtstamp', now or timezone.now())
    ev.add('location', lab_name)
    ev.add('description', f"Equipment: {equipment}\n{reservation.notes or ''}".strip())
    ev.add('status', ICS_STATUS[reservation.status])

    organizer = vCalAddress(f'MAILTO:{reservation.user.email}')
    organizer.params['cn'] = vText(reservation.user.get_full_name() or reservation.user.email)
    ev['organizer'] = organizer

    cal.add_component(ev)
    return cal.to_ical()
