import pytest
from django.utils import timezone
from model_bakery import baker

from SaberProApp.core.choices import EnrollmentStatus, UserRole
from SaberProApp.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from SaberProApp.courses.models import Enrollment, Subject
from SaberProApp.domain.services import directory_service, grading_service, learning_service
from SaberProApp.learning.models import Answer, Grade, Homework, Question, Submission
from SaberProApp.users.models import Student, Teacher, User
from SaberProApp.tests.conftest import PASSWORD, answers_for, enroll

pytestmark = pytest.mark.django_db


def test_admin_creates_student_with_profile(admin_user):
    student = directory_service.create_student(
        admin_user, name="Ana", email="ana@example.com", student_code="111222", password="secret1"
    )
    assert student.user.role == UserRole.STUDENT
    assert student.user.check_password("secret1")


def test_student_without_password_cannot_log_in(admin_user):
    student = directory_service.create_student(admin_user, name="Bo", email="bo@example.com", student_code="333444")
    assert not student.user.has_usable_password()


def test_duplicate_student_code_or_email_conflicts(admin_user, student):
    with pytest.raises(ConflictError):
        directory_service.create_student(admin_user, name="X", email="x@example.com", student_code=student.student_code)
    with pytest.raises(ConflictError):
        directory_service.create_student(admin_user, name="X", email=student.user.email, student_code="999999")


def test_student_code_must_be_six_digits(admin_user):
    with pytest.raises(ValidationError):
        directory_service.create_student(admin_user, name="X", email="x@example.com", student_code="12ab56")


def test_teachers_cannot_create_students(teacher):
    with pytest.raises(AuthorizationError):
        directory_service.create_student(teacher.user, name="X", email="x@example.com", student_code="123123")


def test_list_students_by_role(admin_user, teacher, subject, student, other_student):
    enroll(student, subject)
    enroll(other_student, subject, EnrollmentStatus.PENDING)
    assert directory_service.list_students(admin_user).count() == 2
    assert [s.id for s in directory_service.list_students(teacher.user)] == [student.id]
    with pytest.raises(AuthorizationError):
        directory_service.list_students(student.user)


def test_student_reads_only_own_profile(student, other_student):
    assert directory_service.get_student(student.user, student.id).id == student.id
    with pytest.raises(AuthorizationError):
        directory_service.get_student(student.user, other_student.id)


def test_update_student_rejects_taken_code(admin_user, student, other_student):
    with pytest.raises(ConflictError):
        directory_service.update_student(admin_user, student.id, student_code=other_student.student_code)
    updated = directory_service.update_student(admin_user, student.id, name="Renamed", is_activated=False)
    assert updated.user.name == "Renamed"
    assert updated.is_activated is False


def test_delete_student_superadmin_only(admin_user, superadmin_user, student):
    with pytest.raises(AuthorizationError):
        directory_service.delete_student(admin_user, student.id)
    user_id = student.user_id
    directory_service.delete_student(superadmin_user, student.id)
    assert not Student.objects.filter(pk=student.pk).exists()
    assert not User.objects.filter(pk=user_id).exists()


def test_check_student_code(student):
    assert directory_service.check_student_code(student.student_code) == {
        "exists": True,
        "activated": True,
        "message": "Account activated",
    }
    assert directory_service.check_student_code("000000")["exists"] is False
    with pytest.raises(ValidationError):
        directory_service.check_student_code("")


def test_activate_student_sets_password(other_student):
    student = directory_service.activate_student(other_student.student_code, "fresh123", "fresh123")

    assert student.is_activated is True
    student.user.refresh_from_db()
    assert student.user.check_password("fresh123")
    assert directory_service.check_student_code(other_student.student_code)["activated"] is True


def test_activate_student_rejects_bad_input(student, other_student):
    with pytest.raises(ConflictError):
        directory_service.activate_student(student.student_code, "fresh123", "fresh123")
    with pytest.raises(NotFoundError):
        directory_service.activate_student("000000", "fresh123", "fresh123")
    with pytest.raises(ValidationError):
        directory_service.activate_student(other_student.student_code, "fresh123", "other123")
    with pytest.raises(ValidationError):
        directory_service.activate_student(other_student.student_code, "123", "123")
    other_student.refresh_from_db()
    assert other_student.is_activated is False


def test_create_teacher_generates_password(admin_user):
    teacher = directory_service.create_teacher(admin_user, name="Tess", email="tess@example.com", department="Art")
    assert teacher.user.role == UserRole.TEACHER
    assert teacher.user.has_usable_password()


def test_delete_teacher_with_subjects_conflicts(superadmin_user, teacher, subject):
    with pytest.raises(ConflictError):
        directory_service.delete_teacher(superadmin_user, teacher.id)
    assert Teacher.objects.filter(pk=teacher.pk).exists()


def test_reassigned_subject_keeps_homework_when_old_teacher_deleted(
    admin_user, superadmin_user, teacher, other_teacher, subject, student, approved, homework
):
    learning_service.submit_homework(student.user, student.id, homework.id, answers_for(homework))

    directory_service.update_subject(admin_user, subject.id, teacher_id=other_teacher.id)
    homework.refresh_from_db()
    assert homework.teacher_id == other_teacher.id

    directory_service.delete_teacher(superadmin_user, teacher.id)

    assert Homework.objects.filter(subject=subject).count() == 1
    assert Submission.objects.filter(homework=homework).count() == 1


def test_delete_teacher_with_authored_homework_conflicts(superadmin_user, teacher, other_subject):
    baker.make("learning.Homework", subject=other_subject, teacher=teacher, total_points=10)
    with pytest.raises(ConflictError):
        directory_service.delete_teacher(superadmin_user, teacher.id)
    assert Teacher.objects.filter(pk=teacher.pk).exists()


def test_create_subject_requires_unique_code_and_existing_teacher(admin_user, teacher, subject):
    now = timezone.now()
    kwargs = {"name": "Physics", "start_date": now, "end_date": now + timezone.timedelta(days=60)}
    with pytest.raises(ConflictError):
        directory_service.create_subject(admin_user, code=subject.code, teacher_id=teacher.id, **kwargs)
    with pytest.raises(NotFoundError):
        directory_service.create_subject(
            admin_user, code="PHY1", teacher_id="00000000-0000-0000-0000-000000000000", **kwargs
        )
    created = directory_service.create_subject(admin_user, code="PHY1", teacher_id=teacher.id, **kwargs)
    assert created.teacher_id == teacher.id


def test_list_subjects_by_role(admin_user, teacher, student, subject, other_subject):
    enroll(student, subject)
    assert directory_service.list_subjects(admin_user).count() == 2
    assert [s.id for s in directory_service.list_subjects(teacher.user)] == [subject.id]
    assert [s.id for s in directory_service.list_subjects(student.user)] == [subject.id]


def test_delete_subject_cascades_without_orphans(superadmin_user, teacher, subject, student, approved, homework):
    submission = learning_service.submit_homework(student.user, student.id, homework.id, answers_for(homework))
    grading_service.grade_submission(teacher.user, submission.id, teacher.id, student.id, 99)

    directory_service.delete_subject(superadmin_user, subject.id)

    assert not Subject.objects.filter(pk=subject.pk).exists()
    assert not Enrollment.objects.exists()
    assert not Homework.objects.exists()
    assert not Question.objects.exists()
    assert not Submission.objects.exists()
    assert not Answer.objects.exists()
    assert not Grade.objects.exists()


def test_change_password_verifies_current(student, admin_user):
    with pytest.raises(ValidationError):
        directory_service.change_password(student.user, student.user.id, "wrong", "newpass1")
    with pytest.raises(ValidationError):
        directory_service.change_password(student.user, student.user.id, PASSWORD, "123")
    directory_service.change_password(student.user, student.user.id, PASSWORD, "newpass1")
    student.user.refresh_from_db()
    assert student.user.check_password("newpass1")


def test_change_password_of_other_user_forbidden(student, other_student):
    with pytest.raises(AuthorizationError):
        directory_service.change_password(student.user, other_student.user.id, PASSWORD, "newpass1")


def test_update_profile_marks_onboarded(student):
    user = directory_service.update_profile(student.user, student.user.id, name="Stu", image="https://img.example.com/a.png")
    assert user.is_onboarded is True
    assert user.name == "Stu"


def test_me_exposes_profile_ids(student):
    me = directory_service.me(student.user)
    assert me.student_id == student.id
    assert me.teacher_id is None
