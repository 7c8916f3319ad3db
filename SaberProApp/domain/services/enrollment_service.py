"""Domain service functions for the enrollment lifecycle.

Students request enrollment (always PENDING); the subject's teacher or an
admin may enroll students directly and approve or reject requests. One
enrollment exists per (student, subject); the unique constraint backs the
existence check so concurrent requests surface as ConflictError.
"""

import logging
from typing import Any

from django.db import IntegrityError, transaction
from django.db.models import QuerySet

from SaberProApp.core.access import (
    ensure_authenticated,
    ensure_role,
    is_student_owner,
    is_subject_teacher,
    student_profile,
    teacher_profile,
)
from SaberProApp.core.choices import EnrollmentStatus, STAFF_ROLES, UserRole
from SaberProApp.core.exceptions import AuthorizationError, ConflictError, ValidationError
from SaberProApp.courses.models import Enrollment, Subject
from SaberProApp.domain.services import notification_service
from SaberProApp.domain.services.lookups import get_or_not_found
from SaberProApp.users.models import Student

logger = logging.getLogger(__name__)

ALREADY_ENROLLED = "The student is already enrolled or has a pending request for this subject"


@transaction.atomic
def request_or_create_enrollment(
    actor: Any,
    student_id: Any,
    subject_id: Any,
    status: str = EnrollmentStatus.PENDING,
) -> Enrollment:
    """Create an enrollment for a (student, subject) pair.

    Rules:
        - Student callers may only enroll themselves; status is forced to PENDING.
        - Teacher callers must instruct the subject; they may approve directly.
        - Admins are unrestricted.
    Side effects:
        - Student request notifies the subject's teacher.
        - Staff enrollment created as APPROVED notifies the student.

    Raises:
        NotFoundError: Student or subject missing.
        AuthorizationError: Ownership mismatch.
        ConflictError: An enrollment already exists for the pair.
    """
    ensure_authenticated(actor)
    if status not in EnrollmentStatus.values:
        raise ValidationError({"status": [f"Unknown status {status!r}."]})
    student = get_or_not_found(Student.objects.select_related("user"), student_id, "Student not found")
    subject = get_or_not_found(Subject.objects.select_related("teacher__user"), subject_id, "Subject not found")

    if actor.role == UserRole.STUDENT:
        if not is_student_owner(actor, student):
            raise AuthorizationError("You cannot enroll another student")
        status = EnrollmentStatus.PENDING
    elif actor.role == UserRole.TEACHER:
        if not is_subject_teacher(actor, subject):
            raise AuthorizationError("You are not allowed to enroll students in this subject")

    if Enrollment.objects.filter(student=student, subject=subject).exists():
        raise ConflictError(ALREADY_ENROLLED)

    try:
        with transaction.atomic():
            enrollment = Enrollment.objects.create(student=student, subject=subject, status=status)
    except IntegrityError:
        logger.warning("Concurrent enrollment for student=%s subject=%s", student.pk, subject.pk)
        raise ConflictError(ALREADY_ENROLLED)

    logger.info("Enrollment %s created for student=%s subject=%s status=%s",
                enrollment.pk, student.pk, subject.pk, status)

    if actor.role == UserRole.STUDENT:
        notification_service.notify(
            subject.teacher.user,
            "New enrollment request",
            f'Student {student.student_code} has requested to join your subject "{subject.name}".',
        )
    elif status == EnrollmentStatus.APPROVED:
        notification_service.notify(
            student.user,
            "Subject enrollment",
            f'You have been enrolled in the subject "{subject.name}".',
        )
    return enrollment


def list_enrollments(
    actor: Any,
    student_id: Any | None = None,
    subject_id: Any | None = None,
    status: str | None = None,
) -> QuerySet[Enrollment]:
    """List enrollments visible to the caller, newest first.

    Students are scoped to their own profile, teachers to their subjects.
    An unknown ``status`` value is ignored.
    """
    ensure_authenticated(actor)
    if actor.role == UserRole.STUDENT:
        student_profile(actor)
    elif actor.role == UserRole.TEACHER:
        teacher_profile(actor)

    qs = Enrollment.objects.visible_to(actor).select_related(
        "student__user", "subject__teacher__user"
    )
    if student_id:
        qs = qs.filter(student_id=student_id)
    if subject_id:
        qs = qs.filter(subject_id=subject_id)
    if status in EnrollmentStatus.values:
        qs = qs.filter(status=status)
    return qs.order_by("-enrolled_at")


@transaction.atomic
def set_enrollment_status(
    actor: Any,
    enrollment_id: Any,
    status: str,
    reason: str | None = None,
) -> Enrollment:
    """Approve or reject an enrollment (subject teacher or admin) and notify the student."""
    ensure_role(actor, STAFF_ROLES, "Access denied")
    if status not in (EnrollmentStatus.APPROVED, EnrollmentStatus.REJECTED):
        raise ValidationError({"status": ["Status must be APPROVED or REJECTED."]})

    enrollment = get_or_not_found(
        Enrollment.objects.select_for_update().select_related("subject__teacher", "student__user"),
        enrollment_id,
        "Enrollment not found",
    )
    if actor.role == UserRole.TEACHER and not is_subject_teacher(actor, enrollment):
        raise AuthorizationError("You are not allowed to modify this enrollment")

    enrollment.status = status
    enrollment.save(update_fields=["status", "updated_at"])
    logger.info("Enrollment %s set to %s by %s", enrollment.pk, status, actor.pk)

    subject_name = enrollment.subject.name
    if status == EnrollmentStatus.APPROVED:
        title = "Enrollment approved"
        message = f'Your enrollment request for the subject "{subject_name}" has been approved.'
    else:
        title = "Enrollment rejected"
        message = f'Your enrollment request for the subject "{subject_name}" has been rejected.'
        if reason:
            message = f"{message} Reason: {reason}"
    notification_service.notify(enrollment.student.user, title, message)
    return enrollment


@transaction.atomic
def delete_enrollment(actor: Any, enrollment_id: Any) -> None:
    """Delete an enrollment.

    Students may cancel only their own PENDING requests; teachers any
    enrollment of their subjects; admins any enrollment.
    """
    ensure_authenticated(actor)
    if not enrollment_id:
        raise ValidationError({"id": ["Enrollment id is required."]})
    enrollment = get_or_not_found(
        Enrollment.objects.select_related("subject__teacher", "student"),
        enrollment_id,
        "Enrollment not found",
    )

    if actor.role == UserRole.STUDENT:
        if not is_student_owner(actor, enrollment.student):
            raise AuthorizationError("You are not allowed to delete this enrollment")
        if enrollment.status != EnrollmentStatus.PENDING:
            raise ConflictError("Only pending requests can be cancelled")
    elif actor.role == UserRole.TEACHER:
        if not is_subject_teacher(actor, enrollment):
            raise AuthorizationError("You are not allowed to delete this enrollment")

    logger.info("Enrollment %s deleted by %s", enrollment.pk, actor.pk)
    enrollment.delete()
