"""Domain service functions for the school directory: students, teachers, subjects and user accounts.

Creating a student or teacher writes the login ``User`` and the role profile
in one transaction. Hard deletes are reserved to SUPERADMIN and remove every
dependent row explicitly so no orphan history is left behind.
"""

import logging
from datetime import datetime
from typing import Any

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import Prefetch, QuerySet
from django.utils.crypto import get_random_string

from SaberProApp.core.access import (
    ensure_authenticated,
    ensure_role,
    is_admin,
    student_profile,
    teacher_profile,
)
from SaberProApp.core.choices import ADMIN_ROLES, EnrollmentStatus, UserRole
from SaberProApp.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from SaberProApp.core.validators import validate_password_strength, validate_student_code
from SaberProApp.courses.models import Enrollment, Subject
from SaberProApp.domain.services.lookups import get_or_not_found, same_id
from SaberProApp.learning.models import Answer, Grade, Homework, Question, Submission
from SaberProApp.users.models import Student, Teacher

logger = logging.getLogger(__name__)

User = get_user_model()

SUPERADMIN_ONLY = {UserRole.SUPERADMIN}
EMAIL_TAKEN = "The email is already in use"
CODE_TAKEN = "The student code is already in use"
SUBJECT_CODE_TAKEN = "The subject code is already in use"


def _check_code(code: str) -> None:
    try:
        validate_student_code(code)
    except DjangoValidationError as exc:
        raise ValidationError({"studentCode": exc.messages})


def _check_password(password: str, field: str = "password") -> None:
    try:
        validate_password_strength(password)
    except DjangoValidationError as exc:
        raise ValidationError({field: exc.messages})


def _email_taken(email: str, exclude_user_id: Any = None) -> bool:
    qs = User.objects.filter(email__iexact=email)
    if exclude_user_id is not None:
        qs = qs.exclude(pk=exclude_user_id)
    return qs.exists()


def _create_user(*, name: str, email: str, role: str, password: str | None) -> Any:
    user = User(username=email, email=email, name=name, role=role)
    if password:
        user.set_password(password)
    else:
        user.set_unusable_password()
    user.save()
    return user


# Students

@transaction.atomic
def create_student(
    actor: Any,
    *,
    name: str,
    email: str,
    student_code: str,
    password: str | None = None,
    is_activated: bool = False,
) -> Student:
    """Create a student account and profile (admins only).

    Without a password the account cannot log in until one is set.

    Raises:
        AuthorizationError: Caller is not an admin.
        ValidationError: Malformed code or password.
        ConflictError: Email or student code already taken.
    """
    ensure_role(actor, ADMIN_ROLES, "Access denied")
    _check_code(student_code)
    if password:
        _check_password(password)
    if _email_taken(email):
        raise ConflictError(EMAIL_TAKEN)
    if Student.objects.filter(student_code=student_code).exists():
        raise ConflictError(CODE_TAKEN)

    try:
        with transaction.atomic():
            user = _create_user(name=name, email=email, role=UserRole.STUDENT, password=password)
            student = Student.objects.create(user=user, student_code=student_code, is_activated=is_activated)
    except IntegrityError:
        logger.warning("Concurrent student creation for email=%s code=%s", email, student_code)
        raise ConflictError("The email or student code is already in use")
    logger.info("Student %s created (code=%s)", student.pk, student_code)
    return student


def list_students(actor: Any) -> QuerySet[Student]:
    """Admins see every student by name; teachers the approved students of their subjects."""
    ensure_authenticated(actor)
    qs = Student.objects.select_related("user")
    if is_admin(actor):
        return qs.order_by("user__name")
    if actor.role == UserRole.TEACHER:
        teacher = teacher_profile(actor)
        return qs.filter(
            enrollments__subject__teacher=teacher,
            enrollments__status=EnrollmentStatus.APPROVED,
        ).distinct().order_by("user__name")
    raise AuthorizationError("Access denied")


def get_student(actor: Any, student_id: Any) -> Student:
    """Return a student with enrollments, submissions and grades prefetched.

    Students may only read their own profile.
    """
    ensure_authenticated(actor)
    if actor.role == UserRole.STUDENT:
        own = student_profile(actor)
        if not same_id(own.pk, student_id):
            raise AuthorizationError("You are not allowed to view this student")
    elif actor.role == UserRole.TEACHER:
        teacher_profile(actor)

    qs = Student.objects.select_related("user").prefetch_related(
        Prefetch("enrollments", queryset=Enrollment.objects.select_related("subject__teacher__user")),
        Prefetch("submissions", queryset=Submission.objects.select_related("homework__subject", "grade")),
        Prefetch("grades", queryset=Grade.objects.select_related("submission__homework")),
    )
    return get_or_not_found(qs, student_id, "Student not found")


@transaction.atomic
def update_student(
    actor: Any,
    student_id: Any,
    *,
    name: str | None = None,
    email: str | None = None,
    student_code: str | None = None,
    is_activated: bool | None = None,
    password: str | None = None,
) -> Student:
    """Update a student and its user (admins only); ``None`` fields are left as is."""
    ensure_role(actor, ADMIN_ROLES, "Access denied")
    student = get_or_not_found(
        Student.objects.select_for_update().select_related("user"), student_id, "Student not found"
    )
    user = student.user

    if email is not None and email != user.email:
        if _email_taken(email, exclude_user_id=user.pk):
            raise ConflictError(EMAIL_TAKEN)
        user.email = email
        user.username = email
    if student_code is not None and student_code != student.student_code:
        _check_code(student_code)
        if Student.objects.filter(student_code=student_code).exclude(pk=student.pk).exists():
            raise ConflictError(CODE_TAKEN)
        student.student_code = student_code
    if name is not None:
        user.name = name
    if is_activated is not None:
        student.is_activated = is_activated
    if password:
        _check_password(password)
        user.set_password(password)

    try:
        with transaction.atomic():
            user.save()
            student.save()
    except IntegrityError:
        raise ConflictError("The email or student code is already in use")
    logger.info("Student %s updated by %s", student.pk, actor.pk)
    return student


@transaction.atomic
def delete_student(actor: Any, student_id: Any) -> None:
    """Remove a student with enrollments, grades, submissions, profile and user (superadmin only)."""
    ensure_role(actor, SUPERADMIN_ONLY, "Access denied")
    student = get_or_not_found(Student.objects.select_related("user"), student_id, "Student not found")
    Enrollment.objects.filter(student=student).delete()
    Grade.objects.filter(student=student).delete()
    Answer.objects.filter(submission__student=student).delete()
    Submission.objects.filter(student=student).delete()
    user = student.user
    student.delete()
    user.delete()
    logger.info("Student %s deleted by %s", student_id, actor.pk)


def check_student_code(code: str | None) -> dict[str, Any]:
    """Report whether a student code exists and is activated (no authentication needed)."""
    if not code:
        raise ValidationError({"id": ["A student code is required."]})
    student = Student.objects.filter(student_code=code).first()
    if student is None:
        return {"exists": False, "message": "Student not found"}
    return {
        "exists": True,
        "activated": student.is_activated,
        "message": "Account activated" if student.is_activated else "Account not activated",
    }


@transaction.atomic
def activate_student(code: str | None, password: str, confirm_password: str) -> Student:
    """Set the first password of a student account and mark it activated.

    Students sign in only after activation; the student code is the
    credential that proves who is activating (no authentication needed).

    Raises:
        ValidationError: Missing code, mismatched or too short password.
        NotFoundError: No student has this code.
        ConflictError: The account is already activated.
    """
    if not code:
        raise ValidationError({"studentId": ["A student code is required."]})
    student = Student.objects.select_for_update().select_related("user").filter(student_code=code).first()
    if student is None:
        raise NotFoundError("Student not found")
    if student.is_activated:
        raise ConflictError("This account is already activated")
    if password != confirm_password:
        raise ValidationError({"confirmPassword": ["Passwords do not match."]})
    _check_password(password)

    student.user.set_password(password)
    student.user.save(update_fields=["password"])
    student.is_activated = True
    student.save(update_fields=["is_activated"])
    logger.info("Student %s activated", student.pk)
    return student


# Teachers

@transaction.atomic
def create_teacher(
    actor: Any,
    *,
    name: str,
    email: str,
    password: str | None = None,
    department: str | None = None,
    bio: str | None = None,
) -> Teacher:
    """Create a teacher account and profile (admins only).

    A random password is generated when none is given.
    """
    ensure_role(actor, ADMIN_ROLES, "Access denied")
    if password:
        _check_password(password)
    if _email_taken(email):
        raise ConflictError(EMAIL_TAKEN)
    try:
        with transaction.atomic():
            user = _create_user(
                name=name, email=email, role=UserRole.TEACHER, password=password or get_random_string(12)
            )
            teacher = Teacher.objects.create(user=user, department=department, bio=bio)
    except IntegrityError:
        logger.warning("Concurrent teacher creation for email=%s", email)
        raise ConflictError(EMAIL_TAKEN)
    logger.info("Teacher %s created", teacher.pk)
    return teacher


def list_teachers(actor: Any) -> QuerySet[Teacher]:
    ensure_authenticated(actor)
    return Teacher.objects.select_related("user").prefetch_related("subjects").order_by("user__name")


def get_teacher(actor: Any, teacher_id: Any) -> Teacher:
    ensure_authenticated(actor)
    return get_or_not_found(
        Teacher.objects.select_related("user").prefetch_related("subjects"), teacher_id, "Teacher not found"
    )


@transaction.atomic
def update_teacher(
    actor: Any,
    teacher_id: Any,
    *,
    name: str | None = None,
    email: str | None = None,
    department: str | None = None,
    bio: str | None = None,
) -> Teacher:
    """Update a teacher and its user (admins only)."""
    ensure_role(actor, ADMIN_ROLES, "Access denied")
    teacher = get_or_not_found(
        Teacher.objects.select_for_update().select_related("user"), teacher_id, "Teacher not found"
    )
    user = teacher.user
    if email is not None and email != user.email:
        if _email_taken(email, exclude_user_id=user.pk):
            raise ConflictError(EMAIL_TAKEN)
        user.email = email
        user.username = email
    if name is not None:
        user.name = name
    if department is not None:
        teacher.department = department
    if bio is not None:
        teacher.bio = bio
    user.save()
    teacher.save()
    logger.info("Teacher %s updated by %s", teacher.pk, actor.pk)
    return teacher


@transaction.atomic
def delete_teacher(actor: Any, teacher_id: Any) -> None:
    """Delete a teacher and its user (superadmin only) once they own no subjects or homework."""
    ensure_role(actor, SUPERADMIN_ONLY, "Access denied")
    teacher = get_or_not_found(Teacher.objects.select_related("user"), teacher_id, "Teacher not found")
    if Subject.objects.filter(teacher=teacher).exists():
        raise ConflictError("The teacher still has assigned subjects")
    if Homework.objects.filter(teacher=teacher).exists():
        raise ConflictError("The teacher still has authored homework")
    user = teacher.user
    teacher.delete()
    user.delete()
    logger.info("Teacher %s deleted by %s", teacher_id, actor.pk)


# Subjects

def _check_dates(start_date: datetime, end_date: datetime) -> None:
    if start_date and end_date and end_date < start_date:
        raise ValidationError({"endDate": ["End date must not be before the start date."]})


@transaction.atomic
def create_subject(
    actor: Any,
    *,
    name: str,
    code: str,
    start_date: datetime,
    end_date: datetime,
    teacher_id: Any,
    description: str | None = None,
) -> Subject:
    """Create a subject with a unique code for an existing teacher (admins only)."""
    ensure_role(actor, ADMIN_ROLES, "Access denied")
    teacher = get_or_not_found(Teacher, teacher_id, "Teacher not found")
    _check_dates(start_date, end_date)
    if Subject.objects.filter(code=code).exists():
        raise ConflictError(SUBJECT_CODE_TAKEN)
    try:
        with transaction.atomic():
            subject = Subject.objects.create(
                name=name,
                code=code,
                description=description,
                start_date=start_date,
                end_date=end_date,
                teacher=teacher,
            )
    except IntegrityError:
        logger.warning("Concurrent subject creation for code=%s", code)
        raise ConflictError(SUBJECT_CODE_TAKEN)
    logger.info("Subject %s created (code=%s)", subject.pk, code)
    return subject


def list_subjects(actor: Any) -> QuerySet[Subject]:
    """Subjects visible to the caller, by name."""
    ensure_authenticated(actor)
    if actor.role == UserRole.STUDENT:
        student_profile(actor)
    elif actor.role == UserRole.TEACHER:
        teacher_profile(actor)
    return Subject.objects.visible_to(actor).select_related("teacher__user").order_by("name")


def get_subject(actor: Any, subject_id: Any) -> Subject:
    ensure_authenticated(actor)
    return get_or_not_found(Subject.objects.select_related("teacher__user"), subject_id, "Subject not found")


@transaction.atomic
def update_subject(
    actor: Any,
    subject_id: Any,
    *,
    name: str | None = None,
    code: str | None = None,
    description: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    teacher_id: Any | None = None,
) -> Subject:
    """Update a subject (admins only); the code stays unique and the teacher must exist."""
    ensure_role(actor, ADMIN_ROLES, "Access denied")
    subject = get_or_not_found(Subject.objects.select_for_update(), subject_id, "Subject not found")
    if code is not None and code != subject.code:
        if Subject.objects.filter(code=code).exclude(pk=subject.pk).exists():
            raise ConflictError(SUBJECT_CODE_TAKEN)
        subject.code = code
    if teacher_id is not None:
        teacher = get_or_not_found(Teacher, teacher_id, "Teacher not found")
        if teacher.pk != subject.teacher_id:
            # Homework follows its subject to the new teacher.
            Homework.objects.filter(subject=subject).update(teacher=teacher)
        subject.teacher = teacher
    if name is not None:
        subject.name = name
    if description is not None:
        subject.description = description
    if start_date is not None:
        subject.start_date = start_date
    if end_date is not None:
        subject.end_date = end_date
    _check_dates(subject.start_date, subject.end_date)
    subject.save()
    logger.info("Subject %s updated by %s", subject.pk, actor.pk)
    return subject


@transaction.atomic
def delete_subject(actor: Any, subject_id: Any) -> None:
    """Delete a subject and every dependent row (superadmin only)."""
    ensure_role(actor, SUPERADMIN_ONLY, "Access denied")
    subject = get_or_not_found(Subject, subject_id, "Subject not found")
    homeworks = Homework.objects.filter(subject=subject)
    Grade.objects.filter(submission__homework__in=homeworks).delete()
    Answer.objects.filter(submission__homework__in=homeworks).delete()
    Submission.objects.filter(homework__in=homeworks).delete()
    Question.objects.filter(homework__in=homeworks).delete()
    homeworks.delete()
    Enrollment.objects.filter(subject=subject).delete()
    subject.delete()
    logger.info("Subject %s deleted by %s", subject_id, actor.pk)


# Users

def _self_or_admin(actor: Any, user_id: Any, message: str) -> Any:
    ensure_authenticated(actor)
    if not same_id(actor.pk, user_id) and not is_admin(actor):
        raise AuthorizationError(message)
    return get_or_not_found(User, user_id, "User not found")


def change_password(actor: Any, user_id: Any, current_password: str, new_password: str) -> None:
    """Replace a password after verifying the current one (the user or an admin)."""
    user = _self_or_admin(actor, user_id, "You are not allowed to change this password")
    if not current_password:
        raise ValidationError({"currentPassword": ["The current password is required."]})
    _check_password(new_password, field="newPassword")
    if not user.check_password(current_password):
        raise ValidationError({"currentPassword": ["The current password is incorrect."]})
    user.set_password(new_password)
    user.save(update_fields=["password"])
    logger.info("Password changed for user=%s by %s", user.pk, actor.pk)


def get_user(actor: Any, user_id: Any) -> Any:
    return _self_or_admin(actor, user_id, "You are not allowed to view this profile")


def update_profile(
    actor: Any,
    user_id: Any,
    *,
    name: str | None = None,
    email: str | None = None,
    image: str | None = None,
) -> Any:
    """Update name, email or image of a user (the user or an admin) and mark them onboarded."""
    user = _self_or_admin(actor, user_id, "You are not allowed to update this profile")
    if email and email != user.email:
        if _email_taken(email, exclude_user_id=user.pk):
            raise ConflictError(EMAIL_TAKEN)
        user.email = email
        user.username = email
    if name:
        user.name = name
    if image:
        user.image = image
    user.is_onboarded = True
    user.save()
    return user


def me(actor: Any) -> Any:
    """Return the caller with its role profile ids attached as ``student_id`` / ``teacher_id``."""
    ensure_authenticated(actor)
    student = Student.objects.filter(user=actor).only("id").first()
    teacher = Teacher.objects.filter(user=actor).only("id").first()
    actor.student_id = student.pk if student else None
    actor.teacher_id = teacher.pk if teacher else None
    return actor
