import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from SaberProApp.core.choices import EnrollmentStatus
from SaberProApp.notifications.models import Notification
from SaberProApp.tests.conftest import client_for, enroll

pytestmark = pytest.mark.django_db

ENROLLMENTS_URL = "/api/v1/enrollments/"
HOMEWORKS_URL = "/api/v1/homeworks/"
SUBMISSIONS_URL = "/api/v1/submissions/"
GRADES_URL = "/api/v1/grades/"


def homework_body(teacher, subject):
    return {
        "title": "Fractions",
        "description": "Practice",
        "subjectId": str(subject.id),
        "teacherId": str(teacher.id),
        "dueDate": (timezone.now() + timezone.timedelta(days=3)).isoformat(),
        "allowFileUpload": False,
        "totalPoints": 10,
        "questions": [
            {
                "order": 1,
                "text": "1/2 + 1/2 = ?",
                "type": "MULTIPLE_CHOICE",
                "points": 6,
                "options": [{"text": "1"}, {"text": "2"}],
                "correctAnswer": "1",
            },
            {"order": 2, "text": "1/2 > 1/3", "type": "TRUE_FALSE", "points": 4, "correctAnswer": "true"},
        ],
    }


def test_anonymous_request_is_unauthorized():
    resp = APIClient().get(ENROLLMENTS_URL)
    assert resp.status_code == 401
    assert "error" in resp.data


def test_enrollment_request_and_approval(student, teacher, subject):
    s_client = client_for(student.user)
    resp = s_client.post(ENROLLMENTS_URL, {"studentId": str(student.id), "subjectId": str(subject.id)}, format="json")
    assert resp.status_code == 201
    enrollment = resp.data["enrollment"]
    assert enrollment["status"] == EnrollmentStatus.PENDING

    dup = s_client.post(ENROLLMENTS_URL, {"studentId": str(student.id), "subjectId": str(subject.id)}, format="json")
    assert dup.status_code == 400
    assert "already enrolled" in dup.data["error"]

    t_client = client_for(teacher.user)
    upd = t_client.put(
        f"{ENROLLMENTS_URL}status/", {"enrollmentId": enrollment["id"], "status": "APPROVED"}, format="json"
    )
    assert upd.status_code == 200
    assert upd.data["enrollment"]["status"] == EnrollmentStatus.APPROVED

    listed = s_client.get(ENROLLMENTS_URL)
    assert [e["id"] for e in listed.data["enrollments"]] == [enrollment["id"]]


def test_student_cannot_change_enrollment_status(student, subject):
    enrollment = enroll(student, subject, EnrollmentStatus.PENDING)
    resp = client_for(student.user).put(
        f"{ENROLLMENTS_URL}status/", {"enrollmentId": str(enrollment.id), "status": "APPROVED"}, format="json"
    )
    assert resp.status_code == 403


def test_delete_enrollment_requires_id(admin_user):
    resp = client_for(admin_user).delete(ENROLLMENTS_URL)
    assert resp.status_code == 400
    assert resp.data["error"] == "Invalid data"


def test_homework_submission_and_grading_flow(teacher, subject, student, approved):
    t_client = client_for(teacher.user)
    created = t_client.post(HOMEWORKS_URL, homework_body(teacher, subject), format="json")
    assert created.status_code == 201
    homework = created.data["homework"]
    assert homework["questions"][0]["correct_answer"] == "1"

    s_client = client_for(student.user)
    listed = s_client.get(HOMEWORKS_URL)
    assert listed.status_code == 200
    student_view = listed.data["homeworks"][0]
    assert student_view["status"] == "pending"
    assert all(q["correct_answer"] is None for q in student_view["questions"])

    answers = [
        {"questionId": homework["questions"][0]["id"], "answerOption": "1"},
        {"questionId": homework["questions"][1]["id"], "answerOption": "true"},
    ]
    body = {"studentId": str(student.id), "homeworkId": homework["id"], "answers": answers}
    submitted = s_client.post(SUBMISSIONS_URL, body, format="json")
    assert submitted.status_code == 201
    submission = submitted.data["submission"]
    assert submission["derived_status"] == "submitted"
    assert len(submission["answers"]) == 2

    again = s_client.post(SUBMISSIONS_URL, body, format="json")
    assert again.status_code == 400

    revealed = s_client.get(HOMEWORKS_URL).data["homeworks"][0]
    assert revealed["questions"][0]["correct_answer"] == "1"

    graded = t_client.post(
        GRADES_URL,
        {
            "submissionId": submission["id"],
            "teacherId": str(teacher.id),
            "studentId": str(student.id),
            "score": 95,
            "feedback": "Great",
        },
        format="json",
    )
    assert graded.status_code == 200
    assert graded.data["grade"]["score"] == 95

    grades = s_client.get(GRADES_URL).data["grades"]
    assert len(grades) == 1
    summary = s_client.get(f"{HOMEWORKS_URL}summary/").data["summary"]
    assert summary["graded"] == 1
    assert Notification.objects.filter(user=student.user, title="Homework graded").exists()


def test_submission_validation_errors_are_wrapped(student, approved, homework):
    resp = client_for(student.user).post(
        SUBMISSIONS_URL,
        {"studentId": str(student.id), "homeworkId": str(homework.id), "answers": [{"questionId": "nope"}]},
        format="json",
    )
    assert resp.status_code == 400
    assert resp.data["error"] == "Invalid data"
    assert "answers" in resp.data["details"]


def test_teachers_cannot_submit(teacher, homework):
    resp = client_for(teacher.user).post(SUBMISSIONS_URL, {}, format="json")
    assert resp.status_code == 403


def test_score_over_range_is_rejected_by_serializer(teacher, student):
    resp = client_for(teacher.user).post(
        GRADES_URL,
        {
            "submissionId": "00000000-0000-0000-0000-000000000000",
            "teacherId": str(teacher.id),
            "studentId": str(student.id),
            "score": 101,
        },
        format="json",
    )
    assert resp.status_code == 400
    assert "score" in resp.data["details"]
