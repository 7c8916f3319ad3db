import pytest
from django.utils import timezone
from model_bakery import baker

from SaberProApp.core.exceptions import AuthorizationError, NotFoundError
from SaberProApp.domain.services import notification_service
from SaberProApp.notifications.models import Notification

pytestmark = pytest.mark.django_db


def test_staff_creates_notification_for_existing_user(teacher, student):
    note = notification_service.create_notification(teacher.user, student.user.id, "Hello", "Welcome")
    assert note.user_id == student.user.id


def test_students_cannot_create_notifications(student, other_student):
    with pytest.raises(AuthorizationError):
        notification_service.create_notification(student.user, other_student.user.id, "Hi", "There")


def test_unknown_recipient_is_not_found(admin_user):
    with pytest.raises(NotFoundError):
        notification_service.create_notification(admin_user, "00000000-0000-0000-0000-000000000000", "Hi", "There")


def test_list_is_own_and_newest_first(student, other_student):
    first = notification_service.notify(student.user, "One", "1")
    Notification.objects.filter(pk=first.pk).update(created_at=timezone.now() - timezone.timedelta(minutes=5))
    second = notification_service.notify(student.user, "Two", "2")
    notification_service.notify(other_student.user, "Other", "x")
    listed = list(notification_service.list_notifications(student.user))
    assert [n.id for n in listed] == [second.id, first.id]


def test_unread_filter(student):
    read = notification_service.notify(student.user, "Read", "r")
    unread = notification_service.notify(student.user, "Unread", "u")
    notification_service.mark_read(student.user, read.id)
    listed = list(notification_service.list_notifications(student.user, unread_only=True))
    assert [n.id for n in listed] == [unread.id]


def test_mark_read_requires_ownership(student, other_student, admin_user):
    note = notification_service.notify(student.user, "Mine", "m")
    with pytest.raises(AuthorizationError):
        notification_service.mark_read(other_student.user, note.id)
    assert notification_service.mark_read(admin_user, note.id).is_read is True


def test_mark_missing_is_not_found(student):
    with pytest.raises(NotFoundError):
        notification_service.mark_read(student.user, "00000000-0000-0000-0000-000000000000")


def test_mark_all_read_returns_count(student, other_student):
    baker.make("notifications.Notification", user=student.user, is_read=False, _quantity=3)
    baker.make("notifications.Notification", user=other_student.user, is_read=False)
    assert notification_service.mark_all_read(student.user) == 3
    assert Notification.objects.filter(user=other_student.user, is_read=False).count() == 1


def test_delete_notification(student, other_student):
    note = notification_service.notify(student.user, "Bye", "b")
    with pytest.raises(AuthorizationError):
        notification_service.delete_notification(other_student.user, note.id)
    notification_service.delete_notification(student.user, note.id)
    assert not Notification.objects.filter(pk=note.pk).exists()


def test_notify_many_bulk_creates(student, other_student):
    created = notification_service.notify_many([student.user, other_student.user], "All", "everyone")
    assert len(created) == 2
    assert notification_service.notify_many([], "None", "nobody") == []
