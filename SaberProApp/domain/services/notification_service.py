"""Notification dispatcher.

Managers call :func:`notify` / :func:`notify_many` as a side effect of
enrollment, homework, submission and grading events. The remaining functions
back the public notification endpoints and enforce recipient ownership
(admins may act on any notification).
"""

import logging
from typing import Any, Iterable

from django.contrib.auth import get_user_model
from django.db.models import QuerySet

from SaberProApp.core.access import ensure_authenticated, ensure_role, is_admin
from SaberProApp.core.choices import STAFF_ROLES
from SaberProApp.core.exceptions import AuthorizationError
from SaberProApp.domain.services.lookups import get_or_not_found
from SaberProApp.notifications.models import Notification

logger = logging.getLogger(__name__)

User = get_user_model()


def notify(user: Any, title: str, message: str) -> Notification:
    """Create one notification for ``user``."""
    return Notification.objects.create(user=user, title=title, message=message)


def notify_many(users: Iterable[Any], title: str, message: str) -> list[Notification]:
    """Create the same notification for every user in one bulk insert."""
    rows = [Notification(user=user, title=title, message=message) for user in users]
    if not rows:
        return []
    created = Notification.objects.bulk_create(rows)
    logger.info("Dispatched %d notifications: %s", len(created), title)
    return created


def create_notification(actor: Any, user_id: Any, title: str, message: str) -> Notification:
    """Create a notification through the public endpoint (staff only)."""
    ensure_role(actor, STAFF_ROLES, "Access denied")
    recipient = get_or_not_found(User, user_id, "User not found")
    return notify(recipient, title, message)


def list_notifications(actor: Any, unread_only: bool = False) -> QuerySet[Notification]:
    """Return the caller's notifications, newest first."""
    ensure_authenticated(actor)
    qs = Notification.objects.for_user(actor)
    if unread_only:
        qs = qs.unread()
    return qs.order_by("-created_at")


def _owned_notification(actor: Any, notification_id: Any) -> Notification:
    ensure_authenticated(actor)
    notification = get_or_not_found(Notification, notification_id, "Notification not found")
    if notification.user_id != actor.id and not is_admin(actor):
        raise AuthorizationError("You are not allowed to modify this notification")
    return notification


def mark_read(actor: Any, notification_id: Any) -> Notification:
    """Mark one notification as read (recipient or admin)."""
    notification = _owned_notification(actor, notification_id)
    if not notification.is_read:
        notification.is_read = True
        notification.save(update_fields=["is_read"])
    return notification


def mark_all_read(actor: Any) -> int:
    """Mark every unread notification of the caller as read; returns the count updated."""
    ensure_authenticated(actor)
    return Notification.objects.for_user(actor).unread().update(is_read=True)


def delete_notification(actor: Any, notification_id: Any) -> None:
    """Delete one notification (recipient or admin)."""
    notification = _owned_notification(actor, notification_id)
    notification.delete()
