"""Identity models: User plus the Student, Teacher and AdminProfile role profiles."""

import uuid

from django.contrib.auth.models import AbstractUser
from django.db import models

from SaberProApp.core.choices import UserRole


class User(AbstractUser):
    """Login identity. ``email`` is the username; ``role`` is fixed at creation."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True)
    name = models.CharField(max_length=150, blank=True)
    role = models.CharField(max_length=16, choices=UserRole.choices, default=UserRole.STUDENT)
    image = models.URLField(blank=True, null=True)
    is_onboarded = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["username"]

    def __str__(self) -> str:
        return f"{self.name or self.email} ({self.role})"


class Student(models.Model):
    """Student profile owned by a user.

    Fields:
        user: Owning account (role STUDENT).
        student_code: Six digit school code, unique.
        is_activated: Whether the student finished account activation.
        joined_at: Timestamp.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="student")
    student_code = models.CharField(max_length=6, unique=True)
    is_activated = models.BooleanField(default=False)
    joined_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"Student {self.student_code}"


class Teacher(models.Model):
    """Teacher profile owned by a user; instructs subjects and issues grades."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="teacher")
    department = models.CharField(max_length=120, blank=True, null=True)
    bio = models.TextField(blank=True, null=True)

    def __str__(self) -> str:
        return f"Teacher {self.user.name or self.user.email}"


class AdminProfile(models.Model):
    """Administrator profile owned by an ADMIN or SUPERADMIN user."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="admin_profile")
    position = models.CharField(max_length=120, blank=True)

    def __str__(self) -> str:
        return f"Admin {self.user.email}"
