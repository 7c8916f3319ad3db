"""Role, profile and object access helpers."""

from typing import Any, Iterable

from SaberProApp.core.choices import ADMIN_ROLES
from SaberProApp.core.exceptions import AuthenticationError, AuthorizationError, NotFoundError
from SaberProApp.courses.models import Subject, Enrollment
from SaberProApp.learning.models import Homework, Submission
from SaberProApp.users.models import Student, Teacher


def subject_from(obj: Any) -> Subject | None:
    if obj is None:
        return None
    if isinstance(obj, Subject):
        return obj
    if isinstance(obj, (Enrollment, Homework)):
        return obj.subject
    if isinstance(obj, Submission):
        return obj.homework.subject
    return getattr(obj, "subject", None)


def is_admin(user) -> bool:
    return bool(user and user.is_authenticated and user.role in ADMIN_ROLES)


def ensure_authenticated(user) -> None:
    """Raise AuthenticationError for anonymous callers."""
    if not user or not user.is_authenticated:
        raise AuthenticationError()


def ensure_role(user, roles: Iterable[str], message: str = "Forbidden") -> None:
    """Ensure user is authenticated and holds one of ``roles``."""
    ensure_authenticated(user)
    if user.role not in set(roles):
        raise AuthorizationError(message)


def student_profile(user) -> Student:
    """Return the caller's student profile or raise NotFoundError."""
    try:
        return Student.objects.get(user=user)
    except Student.DoesNotExist:
        raise NotFoundError("Student profile not found")


def teacher_profile(user) -> Teacher:
    """Return the caller's teacher profile or raise NotFoundError."""
    try:
        return Teacher.objects.get(user=user)
    except Teacher.DoesNotExist:
        raise NotFoundError("Teacher profile not found")


def is_subject_teacher(user, obj: Any) -> bool:
    """User instructs the subject the object belongs to."""
    subject = subject_from(obj)
    return bool(user and subject and subject.teacher.user_id == user.id)


def is_student_owner(user, student: Student | None) -> bool:
    return bool(user and student and student.user_id == user.id)
