# users/models.py
from django.contrib.auth.models import AbstractUser
from django.db import models

STUDENT = "student"
INSTRUCTOR = "instructor"
ADMIN = "admin"

ROLE_CHOICES = [
    (STUDENT, "Student"),
    (INSTRUCTOR, "Instructor"),
    (ADMIN, "Administrator"),
]


class User(AbstractUser):
    email = models.EmailField(unique=True)
    username = models.CharField(max_length=150, unique=True)
    role = models.CharField(max_length=32, choices=ROLE_CHOICES, default=STUDENT)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["username"]

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"

    # ========== ROLE HELPERS ==========

    @property
    def is_student(self):
        return self.role == STUDENT

    @property
    def is_instructor(self):
        return self.role == INSTRUCTOR

    @property
    def is_admin(self):
        """Superusers count as administrators regardless of their stored role."""
        return self.is_superuser or self.role == ADMIN

    @property
    def display_name(self):
        return self.get_full_name() or self.email
