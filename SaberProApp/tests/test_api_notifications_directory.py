import pytest
from rest_framework.test import APIClient

from SaberProApp.domain.services import notification_service
from SaberProApp.notifications.models import Notification
from SaberProApp.tests.conftest import PASSWORD, client_for

pytestmark = pytest.mark.django_db

NOTIFICATIONS_URL = "/api/v1/notifications/"
TOKEN_URL = "/api/v1/auth/token/"


def test_jwt_login_and_me(student):
    client = APIClient()
    token = client.post(TOKEN_URL, {"email": student.user.email, "password": PASSWORD}, format="json").data["access"]
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    resp = client.get("/api/v1/users/me/")
    assert resp.status_code == 200
    assert resp.data["user"]["email"] == student.user.email
    assert resp.data["user"]["student_id"] == str(student.id)


def test_notification_lifecycle(teacher, student):
    t_client = client_for(teacher.user)
    created = t_client.post(
        NOTIFICATIONS_URL, {"userId": str(student.user.id), "title": "Hi", "message": "Welcome"}, format="json"
    )
    assert created.status_code == 201
    note_id = created.data["notification"]["id"]

    s_client = client_for(student.user)
    listed = s_client.get(NOTIFICATIONS_URL).data["notifications"]
    assert [n["id"] for n in listed] == [note_id]

    assert s_client.put(f"{NOTIFICATIONS_URL}{note_id}/read/").data == {"success": True}
    assert Notification.objects.get(pk=note_id).is_read is True

    notification_service.notify(student.user, "Another", "one")
    read_all = s_client.put(f"{NOTIFICATIONS_URL}readAll/")
    assert read_all.data["count"] == 1

    deleted = s_client.delete(f"{NOTIFICATIONS_URL}{note_id}/")
    assert deleted.status_code == 200
    assert not Notification.objects.filter(pk=note_id).exists()


def test_student_cannot_send_notifications(student, other_student):
    resp = client_for(student.user).post(
        NOTIFICATIONS_URL, {"userId": str(other_student.user.id), "title": "x", "message": "y"}, format="json"
    )
    assert resp.status_code == 403
    assert resp.data["error"]


def test_foreign_notification_is_forbidden_and_missing_is_not_found(student, other_student):
    note = notification_service.notify(other_student.user, "Private", "p")
    client = client_for(student.user)
    assert client.put(f"{NOTIFICATIONS_URL}{note.id}/read/").status_code == 403
    missing = client.delete(f"{NOTIFICATIONS_URL}00000000-0000-0000-0000-000000000000/")
    assert missing.status_code == 404
    assert missing.data == {"error": "Not found"}


def test_student_check_is_public(student):
    resp = APIClient().get("/api/v1/students/check/", {"id": student.student_code})
    assert resp.status_code == 200
    assert resp.data["exists"] is True
    assert resp.data["activated"] is True


def test_inactive_student_activates_before_token_login(other_student):
    client = APIClient()
    credentials = {"email": other_student.user.email, "password": PASSWORD}
    refused = client.post(TOKEN_URL, credentials, format="json")
    assert refused.status_code == 401

    activated = client.post(
        "/api/v1/students/activate/",
        {"studentId": other_student.student_code, "password": "fresh123", "confirmPassword": "fresh123"},
        format="json",
    )
    assert activated.status_code == 200
    assert activated.data["student"]["id"] == str(other_student.id)

    again = client.post(
        "/api/v1/students/activate/",
        {"studentId": other_student.student_code, "password": "fresh123", "confirmPassword": "fresh123"},
        format="json",
    )
    assert again.status_code == 400

    token = client.post(TOKEN_URL, {"email": other_student.user.email, "password": "fresh123"}, format="json")
    assert token.status_code == 200
    assert "access" in token.data


def test_admin_creates_student_and_teacher_lists_none(admin_user, teacher):
    resp = client_for(admin_user).post(
        "/api/v1/students/",
        {"name": "Ana", "email": "ana@example.com", "studentCode": "112233", "password": "secret1"},
        format="json",
    )
    assert resp.status_code == 201
    assert resp.data["student"]["student_code"] == "112233"
    assert client_for(teacher.user).get("/api/v1/students/").data["students"] == []


def test_only_superadmin_deletes_subjects(admin_user, superadmin_user, subject):
    url = f"/api/v1/subjects/?id={subject.id}"
    assert client_for(admin_user).delete(url).status_code == 403
    assert client_for(superadmin_user).delete(url).data == {"success": True}


def test_subject_create_with_camel_case_payload(admin_user, teacher):
    resp = client_for(admin_user).post(
        "/api/v1/subjects/",
        {
            "name": "Chemistry",
            "code": "CHE1",
            "startDate": "2026-01-10T08:00:00Z",
            "endDate": "2026-06-10T08:00:00Z",
            "teacherId": str(teacher.id),
        },
        format="json",
    )
    assert resp.status_code == 201
    assert resp.data["subject"]["teacher"]["id"] == str(teacher.id)


def test_password_change_endpoint(student):
    client = client_for(student.user)
    url = f"/api/v1/users/{student.user.id}/password/"
    bad = client.put(url, {"currentPassword": "wrong", "newPassword": "another1"}, format="json")
    assert bad.status_code == 400
    ok = client.put(url, {"currentPassword": PASSWORD, "newPassword": "another1"}, format="json")
    assert ok.status_code == 200


def test_profile_update_for_other_user_forbidden(student, other_student):
    resp = client_for(student.user).put(f"/api/v1/users/{other_student.user.id}/", {"name": "Hacker"}, format="json")
    assert resp.status_code == 403


def test_schema_is_served(admin_user):
    assert client_for(admin_user).get("/api/v1/schema/").status_code == 200
