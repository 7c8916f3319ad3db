"""Typed enumerations (TextChoices) for user roles, enrollment, question, submission and homework states."""
from django.db import models

class UserRole(models.TextChoices):
    """System-level role assigned to a user account."""
    STUDENT = "STUDENT", "Student"
    TEACHER = "TEACHER", "Teacher"
    ADMIN = "ADMIN", "Admin"
    SUPERADMIN = "SUPERADMIN", "Super admin"


ADMIN_ROLES = frozenset({UserRole.ADMIN, UserRole.SUPERADMIN})
STAFF_ROLES = frozenset({UserRole.TEACHER, UserRole.ADMIN, UserRole.SUPERADMIN})


class EnrollmentStatus(models.TextChoices):
    """Approval state of a student's enrollment in a subject."""
    PENDING = "PENDING", "Pending"
    APPROVED = "APPROVED", "Approved"
    REJECTED = "REJECTED", "Rejected"

class QuestionType(models.TextChoices):
    """Kinds of homework questions."""
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE", "Multiple choice"
    TRUE_FALSE = "TRUE_FALSE", "True / false"
    OPEN_TEXT = "OPEN_TEXT", "Open text"

class SubmissionState(models.TextChoices):
    """Stored state of a submission row."""
    SUBMITTED = "SUBMITTED", "Submitted"

class HomeworkStatus(models.TextChoices):
    """Derived (not stored) state of a student's homework."""
    PENDING = "pending", "Pending"
    SUBMITTED = "submitted", "Submitted"
    GRADED = "graded", "Graded"
    OVERDUE = "overdue", "Overdue"
