"""User-scoped notification records created as side effects of lifecycle events."""

import uuid

from django.conf import settings
from django.db import models
from django.db.models import QuerySet
from typing import Self

User = settings.AUTH_USER_MODEL


class NotificationQuerySet(QuerySet):
    """QuerySet helpers for recipient scoping."""

    def for_user(self, user) -> Self:
        return self.filter(user=user)

    def unread(self) -> Self:
        return self.filter(is_read=False)


class Notification(models.Model):
    """A message addressed to one user."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="notifications")
    title = models.CharField(max_length=200)
    message = models.TextField()
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = NotificationQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.title} -> {self.user_id}"
