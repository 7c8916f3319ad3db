import pytest
from django.utils import timezone
from model_bakery import baker
from rest_framework.test import APIClient

from SaberProApp.core.choices import EnrollmentStatus, QuestionType, UserRole
from SaberProApp.domain.services import learning_service

PASSWORD = "pass1234"


def make_user(email, role):
    u = baker.make("users.User", email=email, username=email, name=email.split("@")[0], role=role)
    u.set_password(PASSWORD)
    u.save()
    return u


def client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def admin_user():
    return make_user("admin@example.com", UserRole.ADMIN)


@pytest.fixture
def superadmin_user():
    return make_user("root@example.com", UserRole.SUPERADMIN)


@pytest.fixture
def teacher():
    u = make_user("teacher@example.com", UserRole.TEACHER)
    return baker.make("users.Teacher", user=u, department="Math")


@pytest.fixture
def other_teacher():
    u = make_user("teacher2@example.com", UserRole.TEACHER)
    return baker.make("users.Teacher", user=u, department="History")


@pytest.fixture
def student():
    u = make_user("student@example.com", UserRole.STUDENT)
    return baker.make("users.Student", user=u, student_code="123456", is_activated=True)


@pytest.fixture
def other_student():
    u = make_user("student2@example.com", UserRole.STUDENT)
    return baker.make("users.Student", user=u, student_code="654321")


def make_subject(teacher, code):
    now = timezone.now()
    return baker.make(
        "courses.Subject",
        name=f"Subject {code}",
        code=code,
        teacher=teacher,
        start_date=now - timezone.timedelta(days=30),
        end_date=now + timezone.timedelta(days=90),
    )


@pytest.fixture
def subject(teacher):
    return make_subject(teacher, "MAT101")


@pytest.fixture
def other_subject(other_teacher):
    return make_subject(other_teacher, "HIS101")


def enroll(student, subject, status=EnrollmentStatus.APPROVED):
    return baker.make("courses.Enrollment", student=student, subject=subject, status=status)


@pytest.fixture
def approved(student, subject):
    return enroll(student, subject)


def question_payload():
    return [
        {
            "order": 1,
            "text": "2 + 2 = ?",
            "type": QuestionType.MULTIPLE_CHOICE,
            "points": 5,
            "options": [{"text": "3"}, {"text": "4"}],
            "correct_answer": "4",
        },
        {
            "order": 2,
            "text": "The earth is round",
            "type": QuestionType.TRUE_FALSE,
            "points": 3,
            "correct_answer": "true",
        },
        {
            "order": 3,
            "text": "Explain addition",
            "type": QuestionType.OPEN_TEXT,
            "points": 2,
        },
    ]


def make_homework(teacher, subject, due_in=timezone.timedelta(days=7), **overrides):
    data = {
        "title": "Homework 1",
        "subject_id": subject.id,
        "teacher_id": teacher.id,
        "due_date": timezone.now() + due_in,
        "total_points": 10,
        "questions": question_payload(),
    }
    data.update(overrides)
    return learning_service.create_homework(teacher.user, **data)


@pytest.fixture
def homework(teacher, subject):
    return make_homework(teacher, subject)


def answers_for(homework):
    """A valid answer set for the questions created by ``question_payload``."""
    questions = {q.order: q for q in homework.questions.all()}
    return [
        {"question_id": questions[1].id, "answer_option": "1"},
        {"question_id": questions[2].id, "answer_option": "true"},
        {"question_id": questions[3].id, "answer_text": "Putting numbers together"},
    ]
