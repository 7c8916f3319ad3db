"""Custom querysets encapsulating role-based visibility for subjects and learning objects.

Each ``visible_to`` composes the caller's visibility rule before the query is
run; callers add their own filters afterwards.
"""

from django.db.models import QuerySet
from typing import Self

from SaberProApp.core.choices import ADMIN_ROLES, EnrollmentStatus, UserRole


def _is_admin(user) -> bool:
    return bool(user and user.is_authenticated and user.role in ADMIN_ROLES)


class SubjectQuerySet(QuerySet):
    """QuerySet with helpers for subject visibility and ownership."""

    def approved_for(self, student) -> Self:
        """Subjects where the student profile holds an APPROVED enrollment."""
        return self.filter(
            enrollments__student=student,
            enrollments__status=EnrollmentStatus.APPROVED,
        ).distinct()

    def visible_to(self, user) -> Self:
        """Subjects visible to user:
        - Student: subjects with an approved enrollment
        - Teacher: subjects they instruct
        - Admin/Superadmin: all
        - Anonymous: none
        """
        if not user or not user.is_authenticated:
            return self.none()
        if _is_admin(user):
            return self.all()
        if user.role == UserRole.TEACHER:
            return self.filter(teacher__user=user)
        return self.filter(
            enrollments__student__user=user,
            enrollments__status=EnrollmentStatus.APPROVED,
        ).distinct()


class EnrollmentQuerySet(QuerySet):
    """QuerySet helpers for enrollment visibility."""

    def approved(self) -> Self:
        return self.filter(status=EnrollmentStatus.APPROVED)

    def visible_to(self, user) -> Self:
        """Students see their own enrollments, teachers those of their subjects, admins all."""
        if not user or not user.is_authenticated:
            return self.none()
        if _is_admin(user):
            return self.all()
        if user.role == UserRole.TEACHER:
            return self.filter(subject__teacher__user=user)
        return self.filter(student__user=user)


class HomeworkQuerySet(QuerySet):
    """QuerySet helpers for homework visibility."""

    def visible_to(self, user) -> Self:
        """Homework visible to user:
        - Student: homework of subjects with an approved enrollment
        - Teacher: homework they authored
        - Admin/Superadmin: all
        """
        if not user or not user.is_authenticated:
            return self.none()
        if _is_admin(user):
            return self.all()
        if user.role == UserRole.TEACHER:
            return self.filter(teacher__user=user)
        return self.filter(
            subject__enrollments__student__user=user,
            subject__enrollments__status=EnrollmentStatus.APPROVED,
        ).distinct()


class SubmissionQuerySet(QuerySet):
    """QuerySet helpers for filtering submissions by role."""

    def visible_to(self, user) -> Self:
        if not user or not user.is_authenticated:
            return self.none()
        if _is_admin(user):
            return self.all()
        if user.role == UserRole.TEACHER:
            return self.filter(homework__teacher__user=user)
        return self.filter(student__user=user)


class GradeQuerySet(QuerySet):
    """QuerySet helpers for filtering grades by role."""

    def visible_to(self, user) -> Self:
        """Students see their own grades, teachers the grades they issued, admins all."""
        if not user or not user.is_authenticated:
            return self.none()
        if _is_admin(user):
            return self.all()
        if user.role == UserRole.TEACHER:
            return self.filter(teacher__user=user)
        return self.filter(student__user=user)
