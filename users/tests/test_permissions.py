from types import SimpleNamespace

from django.contrib.auth.models import AnonymousUser
from django.test import TestCase

from users import permissions as perms
from users.models import User


class CapabilityTests(TestCase):
    def setUp(self):
        # one user per role, plus a superuser whose stored role is student
        self.student = User.objects.create_user(email='s@example.com', username='stud', password='pass', role='student')
        self.instructor = User.objects.create_user(email='i@example.com', username='inst', password='pass', role='instructor')
        self.admin = User.objects.create_user(email='a@example.com', username='admin', password='pass', role='admin')
        self.root = User.objects.create_superuser(email='r@example.com', username='root', password='pass')

    def owned_by(self, user):
        return SimpleNamespace(user_id=user.pk)

    def test_anonymous_and_unknown_actions_are_denied(self):
        self.assertFalse(perms.can(AnonymousUser(), perms.RESERVATION_CREATE))
        self.assertFalse(perms.can(None, perms.RESERVATION_CREATE))
        self.assertFalse(perms.can(self.admin, "reservation.delete"))

    def test_every_role_may_create(self):
        for user in (self.student, self.instructor, self.admin):
            self.assertTrue(perms.can(user, perms.RESERVATION_CREATE))

    def test_view_is_owner_or_admin(self):
        mine = self.owned_by(self.student)
        self.assertTrue(perms.can(self.student, perms.RESERVATION_VIEW, mine))
        self.assertTrue(perms.can(self.admin, perms.RESERVATION_VIEW, mine))
        self.assertFalse(perms.can(self.instructor, perms.RESERVATION_VIEW, mine))

    def test_confirm_rules(self):
        students = self.owned_by(self.student)
        self.assertTrue(perms.can(self.instructor, perms.RESERVATION_CONFIRM, students))
        self.assertTrue(perms.can(self.admin, perms.RESERVATION_CONFIRM, students))
        self.assertFalse(perms.can(self.student, perms.RESERVATION_CONFIRM, students))

        self.assertFalse(perms.can(self.instructor, perms.RESERVATION_CONFIRM, self.owned_by(self.instructor)))
        self.assertTrue(perms.can(self.admin, perms.RESERVATION_CONFIRM, self.owned_by(self.admin)))

    def test_admin_self_confirm_is_a_switch(self):
        original = perms.ADMIN_MAY_CONFIRM_OWN
        perms.ADMIN_MAY_CONFIRM_OWN = False
        try:
            self.assertFalse(perms.can(self.admin, perms.RESERVATION_CONFIRM, self.owned_by(self.admin)))
            self.assertTrue(perms.can(self.admin, perms.RESERVATION_CONFIRM, self.owned_by(self.student)))
        finally:
            perms.ADMIN_MAY_CONFIRM_OWN = original

    def test_cancel_rules(self):
        students = self.owned_by(self.student)
        self.assertTrue(perms.can(self.student, perms.RESERVATION_CANCEL, students))
        self.assertTrue(perms.can(self.instructor, perms.RESERVATION_CANCEL, students))
        self.assertTrue(perms.can(self.admin, perms.RESERVATION_CANCEL, students))
        other = User.objects.create_user(email='o@example.com', username='other', password='pass')
        self.assertFalse(perms.can(other, perms.RESERVATION_CANCEL, students))

    def test_staff_capabilities(self):
        for action in (perms.EQUIPMENT_SET_STATUS, perms.EQUIPMENT_MANAGE, perms.REPORT_VIEW):
            self.assertTrue(perms.can(self.instructor, action))
            self.assertTrue(perms.can(self.admin, action))
            self.assertFalse(perms.can(self.student, action))

        self.assertTrue(perms.can(self.admin, perms.LAB_MANAGE))
        self.assertFalse(perms.can(self.instructor, perms.LAB_MANAGE))

    def test_superuser_counts_as_admin(self):
        self.assertTrue(self.root.is_admin)
        self.assertTrue(perms.can(self.root, perms.LAB_MANAGE))
