import pytest
from django.test import override_settings

from SaberProApp.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from SaberProApp.domain.services import grading_service, learning_service
from SaberProApp.learning.models import Grade
from SaberProApp.notifications.models import Notification
from SaberProApp.tests.conftest import answers_for, enroll, make_homework

pytestmark = pytest.mark.django_db


@pytest.fixture
def submission(student, approved, homework):
    return learning_service.submit_homework(student.user, student.id, homework.id, answers_for(homework))


def graded_notes(student):
    return Notification.objects.filter(user=student.user, title__in=["Homework graded", "Grade updated"])


def test_first_grade_creates_row_and_notifies(teacher, student, submission):
    grade = grading_service.grade_submission(teacher.user, submission.id, teacher.id, student.id, 87.5, "Nice")
    assert grade.score == 87.5
    assert grade.teacher_id == teacher.id
    note = graded_notes(student).get()
    assert "87.5" in note.message


def test_regrade_updates_in_place_without_second_notification(teacher, student, submission):
    grading_service.grade_submission(teacher.user, submission.id, teacher.id, student.id, 60)
    grade = grading_service.grade_submission(teacher.user, submission.id, teacher.id, student.id, 75, "Revised")
    assert Grade.objects.filter(submission=submission).count() == 1
    assert grade.score == 75
    assert grade.feedback == "Revised"
    assert graded_notes(student).count() == 1


def test_regrade_keeps_original_grader(teacher, other_teacher, subject, student, submission):
    grading_service.grade_submission(teacher.user, submission.id, teacher.id, student.id, 60)
    subject.teacher = other_teacher
    subject.save()

    grade = grading_service.grade_submission(other_teacher.user, submission.id, other_teacher.id, student.id, 70)

    assert grade.score == 70
    grade.refresh_from_db()
    assert grade.teacher_id == teacher.id


@override_settings(SABERPRO={"NOTIFY_ON_REGRADE": True})
def test_regrade_notifies_when_enabled(teacher, student, submission):
    grading_service.grade_submission(teacher.user, submission.id, teacher.id, student.id, 60)
    grading_service.grade_submission(teacher.user, submission.id, teacher.id, student.id, 75)
    assert graded_notes(student).filter(title="Grade updated").count() == 1


@pytest.mark.parametrize("score", [-1, 100.5])
def test_score_out_of_range(teacher, student, submission, score):
    with pytest.raises(ValidationError):
        grading_service.grade_submission(teacher.user, submission.id, teacher.id, student.id, score)


@pytest.mark.parametrize("score", [0, 100])
def test_score_bounds_are_inclusive(teacher, student, submission, score):
    grade = grading_service.grade_submission(teacher.user, submission.id, teacher.id, student.id, score)
    assert grade.score == score


def test_student_mismatch_is_validation_error(teacher, other_student, submission):
    with pytest.raises(ValidationError):
        grading_service.grade_submission(teacher.user, submission.id, teacher.id, other_student.id, 50)


def test_teacher_cannot_grade_as_someone_else(teacher, other_teacher, student, submission):
    with pytest.raises(AuthorizationError):
        grading_service.grade_submission(other_teacher.user, submission.id, teacher.id, student.id, 50)


def test_teacher_cannot_grade_foreign_subject(other_teacher, student, submission):
    with pytest.raises(AuthorizationError):
        grading_service.grade_submission(other_teacher.user, submission.id, other_teacher.id, student.id, 50)


def test_students_cannot_grade(teacher, student, submission):
    with pytest.raises(AuthorizationError):
        grading_service.grade_submission(student.user, submission.id, teacher.id, student.id, 50)


def test_missing_submission_is_not_found(teacher, student):
    with pytest.raises(NotFoundError):
        grading_service.grade_submission(
            teacher.user, "00000000-0000-0000-0000-000000000000", teacher.id, student.id, 50
        )


def test_superadmin_may_grade_for_teacher(superadmin_user, teacher, student, submission):
    grade = grading_service.grade_submission(superadmin_user, submission.id, teacher.id, student.id, 90)
    assert grade.teacher_id == teacher.id


def test_list_grades_filters_and_scoping(teacher, subject, student, other_student, submission):
    enroll(other_student, subject)
    hw2 = make_homework(teacher, subject, title="Second")
    other_sub = learning_service.submit_homework(other_student.user, other_student.id, hw2.id, answers_for(hw2))
    grading_service.grade_submission(teacher.user, submission.id, teacher.id, student.id, 70)
    grading_service.grade_submission(teacher.user, other_sub.id, teacher.id, other_student.id, 90)

    assert grading_service.list_grades(teacher.user).count() == 2
    assert [g.student_id for g in grading_service.list_grades(student.user)] == [student.id]
    # submission filter wins over student filter
    by_submission = grading_service.list_grades(teacher.user, student_id=student.id, submission_id=other_sub.id)
    assert [g.submission_id for g in by_submission] == [other_sub.id]
    # homework filter wins over subject filter
    by_homework = grading_service.list_grades(teacher.user, homework_id=hw2.id, subject_id=subject.id)
    assert [g.submission_id for g in by_homework] == [other_sub.id]
