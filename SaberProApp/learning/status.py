"""Canonical derivation of a student's homework status."""

from datetime import datetime

from django.utils import timezone

from SaberProApp.core.choices import HomeworkStatus


def derive_homework_status(
    has_submission: bool,
    has_grade: bool,
    due_date: datetime,
    now: datetime | None = None,
) -> HomeworkStatus:
    """Classify a (student, homework) pair.

    Precedence is graded > submitted > overdue > pending. A homework is only
    overdue once ``now`` is strictly past ``due_date``.
    """
    if has_grade:
        return HomeworkStatus.GRADED
    if has_submission:
        return HomeworkStatus.SUBMITTED
    now = now or timezone.now()
    if due_date < now:
        return HomeworkStatus.OVERDUE
    return HomeworkStatus.PENDING


def submission_status(submission, now: datetime | None = None) -> HomeworkStatus:
    """Derived status of an existing submission row."""
    return derive_homework_status(
        has_submission=True,
        has_grade=hasattr(submission, "grade"),
        due_date=submission.homework.due_date,
        now=now,
    )
