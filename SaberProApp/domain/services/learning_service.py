"""Domain service functions for homework, questions and submissions.

Enforces role/visibility rules:
- Only the authoring teacher (or an admin) creates homework for a subject.
- Students submit once per homework, before the deadline, answering only
  questions of that homework.
Student-facing status for a homework is derived, never stored:
    pending -> submitted (submit) -> graded (teacher grades)
    pending -> overdue (deadline passes without a submission)
"""

import logging
from datetime import datetime
from typing import Any

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import Count, QuerySet
from django.utils import timezone

from SaberProApp.core.access import (
    ensure_authenticated,
    ensure_role,
    is_student_owner,
    student_profile,
    teacher_profile,
)
from SaberProApp.core.choices import (
    ADMIN_ROLES,
    EnrollmentStatus,
    HomeworkStatus,
    QuestionType,
    STAFF_ROLES,
    SubmissionState,
    UserRole,
)
from SaberProApp.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from SaberProApp.core.validators import validate_file_url
from SaberProApp.courses.models import Enrollment, Subject
from SaberProApp.domain.services import notification_service
from SaberProApp.domain.services.lookups import get_or_not_found, same_id
from SaberProApp.learning.models import Answer, Homework, Question, Submission
from SaberProApp.learning.status import derive_homework_status
from SaberProApp.users.models import Student, Teacher

logger = logging.getLogger(__name__)

TRUE_FALSE_VALUES = ("true", "false")


def _normalize_options(options: list[dict] | None) -> list[dict]:
    """Give every option a string id, its 0-based position unless one is supplied."""
    normalized = []
    for position, option in enumerate(options or []):
        normalized.append({
            "id": str(option["id"] if option.get("id") is not None else position),
            "text": option["text"],
        })
    return normalized


def _clean_questions(questions: list[dict]) -> list[dict]:
    """Validate question payloads and return normalized copies.

    Raises:
        ValidationError: With per-question field errors.
    """
    if not questions:
        raise ValidationError({"questions": ["At least one question is required."]})

    cleaned: list[dict] = []
    errors: dict[str, dict] = {}
    seen_orders: set[int] = set()
    for index, question in enumerate(questions):
        q_errors: dict[str, list[str]] = {}
        order = question.get("order")
        points = question.get("points")
        q_type = question.get("type")
        text = (question.get("text") or "").strip()
        correct = question.get("correct_answer")
        options = None

        if not isinstance(order, int) or order < 1:
            q_errors["order"] = ["Order must be a positive integer."]
        elif order in seen_orders:
            q_errors["order"] = [f"Order {order} is repeated."]
        else:
            seen_orders.add(order)
        if not text:
            q_errors["text"] = ["Question text is required."]
        if not isinstance(points, int) or points < 1:
            q_errors["points"] = ["Points must be a positive integer."]
        if q_type not in QuestionType.values:
            q_errors["type"] = [f"Unknown question type {q_type!r}."]

        if q_type == QuestionType.MULTIPLE_CHOICE:
            options = _normalize_options(question.get("options"))
            if not options or any(not (opt["text"] or "").strip() for opt in options):
                q_errors["options"] = ["Multiple choice questions need a non-empty list of options."]
            elif correct:
                ids = {opt["id"] for opt in options}
                if correct not in ids:
                    # Fall back to matching the option text.
                    by_text = {opt["text"]: opt["id"] for opt in options}
                    correct = by_text.get(correct, correct)
                if correct not in ids:
                    q_errors["correct_answer"] = ["Correct answer must be one of the options."]
        elif q_type == QuestionType.TRUE_FALSE:
            if correct and correct not in TRUE_FALSE_VALUES:
                q_errors["correct_answer"] = ["Correct answer must be 'true' or 'false'."]

        if q_errors:
            errors[str(index)] = q_errors
            continue
        cleaned.append({
            "order": order,
            "text": text,
            "type": q_type,
            "points": points,
            "options": options,
            "correct_answer": correct or None,
        })

    if errors:
        raise ValidationError({"questions": errors})
    return cleaned


@transaction.atomic
def create_homework(
    actor: Any,
    *,
    title: str,
    subject_id: Any,
    teacher_id: Any,
    due_date: datetime,
    total_points: int,
    questions: list[dict],
    description: str | None = None,
    allow_file_upload: bool = False,
) -> Homework:
    """Create homework and its questions (authoring teacher or admin).

    Side effect: every APPROVED student of the subject is notified.

    Raises:
        AuthorizationError: Caller is not staff or not the given teacher.
        NotFoundError: Teacher or subject missing.
        ValidationError: Subject not taught by the teacher, or malformed questions.
    """
    ensure_role(actor, STAFF_ROLES, "Access denied")
    teacher = get_or_not_found(Teacher.objects.select_related("user"), teacher_id, "Teacher not found")
    if actor.role == UserRole.TEACHER and teacher.user_id != actor.id:
        raise AuthorizationError("You are not allowed to create homework as this teacher")

    subject = get_or_not_found(Subject, subject_id, "Subject not found")
    if subject.teacher_id != teacher.id:
        raise ValidationError({"subjectId": ["The subject does not belong to this teacher."]})
    if not title or not title.strip():
        raise ValidationError({"title": ["Title is required."]})
    if not isinstance(total_points, int) or total_points < 1:
        raise ValidationError({"totalPoints": ["Total points must be a positive integer."]})

    cleaned = _clean_questions(questions)

    homework = Homework.objects.create(
        title=title.strip(),
        description=description,
        subject=subject,
        teacher=teacher,
        due_date=due_date,
        allow_file_upload=allow_file_upload,
        total_points=total_points,
    )
    Question.objects.bulk_create([Question(homework=homework, **data) for data in cleaned])
    logger.info("Homework %s created in subject=%s with %d questions", homework.pk, subject.pk, len(cleaned))

    enrolled_users = [
        enrollment.student.user
        for enrollment in Enrollment.objects.approved().filter(subject=subject).select_related("student__user")
    ]
    notification_service.notify_many(
        enrolled_users,
        "New homework assigned",
        f'A new homework "{homework.title}" has been assigned in the subject "{subject.name}".',
    )
    return homework


def list_homeworks(
    actor: Any,
    subject_id: Any | None = None,
    homework_id: Any | None = None,
    now: datetime | None = None,
) -> list[Homework]:
    """List homework visible to the caller, latest due date first.

    For students every homework carries ``student_status``;
    ``answers_revealed`` is False while the homework is unsubmitted and its
    due date is still ahead, so correct answers can be withheld by the
    serializer.

    Raises:
        NotFoundError: Caller lacks the profile their role requires, or
            ``homework_id`` matches no homework visible to the caller.
        AuthorizationError: Student asks for a subject they are not approved in.
    """
    ensure_authenticated(actor)
    now = now or timezone.now()
    qs = Homework.objects.visible_to(actor).select_related("subject", "teacher__user").prefetch_related("questions")

    student = None
    if actor.role == UserRole.STUDENT:
        student = student_profile(actor)
        approved_ids = {
            str(pk) for pk in Subject.objects.approved_for(student).values_list("id", flat=True)
        }
        if subject_id and str(subject_id) not in approved_ids:
            raise AuthorizationError("You are not enrolled in this subject")
        if not approved_ids:
            if homework_id:
                raise NotFoundError("Homework not found")
            return []
    else:
        if actor.role == UserRole.TEACHER:
            teacher_profile(actor)
        qs = qs.annotate(submission_count=Count("submissions", distinct=True))

    if homework_id:
        qs = qs.filter(id=homework_id)
    if subject_id:
        qs = qs.filter(subject_id=subject_id)
    homeworks = list(qs.order_by("-due_date"))
    if homework_id and not homeworks:
        raise NotFoundError("Homework not found")

    if student is None:
        for homework in homeworks:
            homework.answers_revealed = True
        return homeworks

    submissions = {
        sub.homework_id: sub
        for sub in Submission.objects.filter(student=student, homework__in=[h.id for h in homeworks])
        .select_related("grade")
    }
    for homework in homeworks:
        submission = submissions.get(homework.id)
        homework.student_status = derive_homework_status(
            has_submission=submission is not None,
            has_grade=submission is not None and hasattr(submission, "grade"),
            due_date=homework.due_date,
            now=now,
        )
        homework.answers_revealed = submission is not None or not homework.due_date > now
    return homeworks


def _clean_answers(homework: Homework, answers: list[dict]) -> list[Answer]:
    """Check every answer targets a distinct question of ``homework`` with the right shape."""
    question_ids = [str(answer.get("question_id")) for answer in answers]
    questions = {
        str(q.id): q
        for q in Question.objects.filter(homework=homework, id__in=[a.get("question_id") for a in answers])
    }
    if len(questions) != len(question_ids) or len(set(question_ids)) != len(question_ids):
        raise ValidationError({"answers": ["Some questions do not belong to this assignment."]})

    errors: dict[str, dict] = {}
    rows: list[Answer] = []
    for index, answer in enumerate(answers):
        question = questions[str(answer.get("question_id"))]
        text = answer.get("answer_text")
        option = answer.get("answer_option")
        a_errors: dict[str, list[str]] = {}
        if question.type == QuestionType.OPEN_TEXT:
            if option:
                a_errors["answer_option"] = ["Open text questions take answer_text only."]
            if text is None:
                a_errors["answer_text"] = ["An answer text is required."]
        else:
            if text:
                a_errors["answer_text"] = ["Choice questions take answer_option only."]
            if question.type == QuestionType.TRUE_FALSE and option not in TRUE_FALSE_VALUES:
                a_errors["answer_option"] = ["Answer must be 'true' or 'false'."]
            elif question.type == QuestionType.MULTIPLE_CHOICE and str(option) not in question.option_ids():
                a_errors["answer_option"] = ["Answer must be one of the question options."]
        if a_errors:
            errors[str(index)] = a_errors
            continue
        rows.append(Answer(
            question=question,
            answer_text=text if question.type == QuestionType.OPEN_TEXT else None,
            answer_option=None if question.type == QuestionType.OPEN_TEXT else str(option),
        ))
    if errors:
        raise ValidationError({"answers": errors})
    return rows


@transaction.atomic
def submit_homework(
    actor: Any,
    student_id: Any,
    homework_id: Any,
    answers: list[dict],
    file_url: str | None = None,
    now: datetime | None = None,
) -> Submission:
    """Record a student's one-time submission.

    Rules:
        - Caller must be the student the submission is for.
        - Homework must not be past due (due date equal to now is still open).
        - One submission per (student, homework).
        - Answers reference distinct questions of this homework.
        - ``file_url`` only when the homework allows uploads.
    Side effect: the student is notified that the submission was received.

    Raises:
        AuthorizationError, NotFoundError, ConflictError, ValidationError.
    """
    ensure_role(actor, {UserRole.STUDENT}, "Access denied")
    try:
        student = Student.objects.get(pk=student_id)
    except (Student.DoesNotExist, DjangoValidationError, ValueError):
        student = None
    if not is_student_owner(actor, student):
        raise AuthorizationError("You are not allowed to submit on behalf of this student")

    homework = get_or_not_found(Homework, homework_id, "Homework not found")
    now = now or timezone.now()
    if homework.due_date < now:
        raise ConflictError("The submission deadline has passed")
    if Submission.objects.filter(homework=homework, student=student).exists():
        raise ConflictError("You have already submitted this homework")

    rows = _clean_answers(homework, answers or [])

    if file_url:
        if not homework.allow_file_upload:
            raise ValidationError({"fileUrl": ["This homework does not accept file uploads."]})
        try:
            validate_file_url(file_url)
        except DjangoValidationError as exc:
            raise ValidationError({"fileUrl": exc.messages})

    try:
        with transaction.atomic():
            submission = Submission.objects.create(
                homework=homework,
                student=student,
                status=SubmissionState.SUBMITTED,
                file_url=file_url or None,
            )
            for row in rows:
                row.submission = submission
            Answer.objects.bulk_create(rows)
    except IntegrityError:
        logger.warning("Concurrent submission for student=%s homework=%s", student.pk, homework.pk)
        raise ConflictError("You have already submitted this homework")

    logger.info("Submission %s received for homework=%s student=%s", submission.pk, homework.pk, student.pk)
    notification_service.notify(
        actor,
        "Submission received",
        f'You have successfully submitted the homework "{homework.title}".',
    )
    return submission


def list_submissions(
    actor: Any,
    student_id: Any | None = None,
    homework_id: Any | None = None,
) -> QuerySet[Submission]:
    """List submissions visible to the caller, newest first.

    Teachers asking for a homework they did not author get NotFoundError.
    """
    ensure_authenticated(actor)
    if actor.role == UserRole.STUDENT:
        student_profile(actor)
    elif actor.role == UserRole.TEACHER:
        teacher = teacher_profile(actor)
        if homework_id and not Homework.objects.filter(id=homework_id, teacher=teacher).exists():
            raise NotFoundError("Homework not found or not authorized")

    qs = Submission.objects.visible_to(actor).select_related(
        "student__user", "homework__subject", "grade"
    ).prefetch_related("answers__question")
    if homework_id:
        qs = qs.filter(homework_id=homework_id)
    if student_id and actor.role != UserRole.STUDENT:
        qs = qs.filter(student_id=student_id)
    return qs.order_by("-submitted_at")


def homework_summary(
    actor: Any,
    student_id: Any | None = None,
    subject_id: Any | None = None,
    now: datetime | None = None,
) -> dict[str, int]:
    """Count a student's homework by derived status across approved subjects.

    Students get their own summary; teachers may ask about a student enrolled
    in their subjects (counts cover only those subjects); admins about anyone.

    Returns:
        Mapping with ``total``, ``completed`` (submitted or graded), ``graded``,
        ``pending`` and ``overdue``.
    """
    ensure_authenticated(actor)
    now = now or timezone.now()
    if actor.role == UserRole.STUDENT:
        student = student_profile(actor)
        if student_id and not same_id(student_id, student.id):
            raise AuthorizationError("You are not allowed to view this student")
        subjects = Subject.objects.approved_for(student)
    else:
        ensure_role(actor, STAFF_ROLES, "Access denied")
        if not student_id:
            raise ValidationError({"studentId": ["This field is required."]})
        student = get_or_not_found(Student, student_id, "Student not found")
        subjects = Subject.objects.approved_for(student)
        if actor.role not in ADMIN_ROLES:
            subjects = subjects.filter(teacher=teacher_profile(actor))
            if not subjects.exists():
                raise AuthorizationError("The student is not enrolled in your subjects")
    if subject_id:
        subjects = subjects.filter(id=subject_id)

    homeworks = list(Homework.objects.filter(subject__in=subjects).only("id", "due_date"))
    submissions = {
        sub.homework_id: sub
        for sub in Submission.objects.filter(student=student, homework__in=homeworks).select_related("grade")
    }
    counts = {status: 0 for status in HomeworkStatus.values}
    for homework in homeworks:
        submission = submissions.get(homework.id)
        status = derive_homework_status(
            has_submission=submission is not None,
            has_grade=submission is not None and hasattr(submission, "grade"),
            due_date=homework.due_date,
            now=now,
        )
        counts[status] += 1
    return {
        "total": len(homeworks),
        "completed": counts[HomeworkStatus.SUBMITTED] + counts[HomeworkStatus.GRADED],
        "graded": counts[HomeworkStatus.GRADED],
        "pending": counts[HomeworkStatus.PENDING],
        "overdue": counts[HomeworkStatus.OVERDUE],
    }
