"""Domain service functions for grading submissions and listing grades.

A submission has at most one grade. Grading again updates the existing row
in place; only the first grade notifies the student unless
``SABERPRO["NOTIFY_ON_REGRADE"]`` is enabled.
"""

import logging
from datetime import datetime
from typing import Any

from django.db.models import QuerySet
from django.db import transaction
from django.utils import timezone

from SaberProApp.core.access import ensure_authenticated, ensure_role, student_profile, teacher_profile
from SaberProApp.core.choices import STAFF_ROLES, UserRole
from SaberProApp.core.conf import app_setting
from SaberProApp.core.exceptions import AuthorizationError, ValidationError
from SaberProApp.domain.services import notification_service
from SaberProApp.domain.services.lookups import get_or_not_found, same_id
from SaberProApp.learning.models import Grade, Submission
from SaberProApp.users.models import Teacher

logger = logging.getLogger(__name__)


def _format_score(score: float) -> str:
    return f"{score:g}"


@transaction.atomic
def grade_submission(
    actor: Any,
    submission_id: Any,
    teacher_id: Any,
    student_id: Any,
    score: float,
    feedback: str | None = None,
    now: datetime | None = None,
) -> Grade:
    """Create or update the grade of a submission.

    Validates:
        teacher exists and is the caller (when the caller is a teacher),
        the submission's subject is taught by that teacher,
        ``student_id`` matches the submission, score within 0–100 inclusive.
    Locks the submission row while the grade is written.
    """
    ensure_role(actor, STAFF_ROLES, "Access denied")
    teacher = get_or_not_found(Teacher, teacher_id, "Teacher not found")
    if actor.role == UserRole.TEACHER and teacher.user_id != actor.id:
        raise AuthorizationError("You are not allowed to grade as this teacher")

    submission = get_or_not_found(
        Submission.objects.select_for_update().select_related("homework__subject", "student__user"),
        submission_id,
        "Submission not found",
    )
    if submission.homework.subject.teacher_id != teacher.id:
        raise AuthorizationError("You are not allowed to grade this submission")
    if not same_id(submission.student_id, student_id):
        raise ValidationError({"studentId": ["The student does not match the submission."]})
    if score is None or not (0 <= score <= 100):
        raise ValidationError({"score": ["Grade must be 0–100."]})

    now = now or timezone.now()
    grade, created = Grade.objects.get_or_create(
        submission=submission,
        defaults={
            "teacher": teacher,
            "student": submission.student,
            "score": score,
            "feedback": feedback,
            "graded_at": now,
        },
    )
    homework_title = submission.homework.title
    if created:
        logger.info("Grade %s created for submission=%s score=%s", grade.pk, submission.pk, score)
        notification_service.notify(
            submission.student.user,
            "Homework graded",
            f'Your homework "{homework_title}" has been graded. Score: {_format_score(score)}',
        )
        return grade

    grade.score = score
    grade.feedback = feedback
    grade.graded_at = now
    grade.save()
    logger.info("Grade %s updated for submission=%s score=%s", grade.pk, submission.pk, score)
    if app_setting("NOTIFY_ON_REGRADE"):
        notification_service.notify(
            submission.student.user,
            "Grade updated",
            f'The grade of your homework "{homework_title}" was updated. Score: {_format_score(score)}',
        )
    return grade


def list_grades(
    actor: Any,
    student_id: Any | None = None,
    submission_id: Any | None = None,
    homework_id: Any | None = None,
    subject_id: Any | None = None,
) -> QuerySet[Grade]:
    """List grades visible to the caller, newest first.

    ``submission_id`` wins over ``student_id`` and ``homework_id`` wins over
    ``subject_id`` when both of a pair are given.
    """
    ensure_authenticated(actor)
    if actor.role == UserRole.STUDENT:
        student_profile(actor)
    elif actor.role == UserRole.TEACHER:
        teacher_profile(actor)

    qs = Grade.objects.visible_to(actor).select_related(
        "submission__homework__subject", "student__user", "teacher__user"
    )
    if submission_id:
        qs = qs.filter(submission_id=submission_id)
    elif student_id:
        qs = qs.filter(student_id=student_id)
    if homework_id:
        qs = qs.filter(submission__homework_id=homework_id)
    elif subject_id:
        qs = qs.filter(submission__homework__subject_id=subject_id)
    return qs.order_by("-graded_at")
