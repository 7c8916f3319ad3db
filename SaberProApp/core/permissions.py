"""Custom DRF permission classes for role gates and notification ownership."""

from typing import Any

from rest_framework.permissions import BasePermission
from rest_framework.request import Request

from SaberProApp.core.choices import ADMIN_ROLES, STAFF_ROLES, UserRole
from SaberProApp.core.access import is_admin


class _RolePermission(BasePermission):
    """Allow authenticated users whose role is in ``allowed_roles``."""
    allowed_roles: frozenset = frozenset()
    message = "Access denied"

    def has_permission(self, request: Request, view: Any) -> bool:
        user = request.user
        return bool(user and user.is_authenticated and user.role in self.allowed_roles)


class IsStudent(_RolePermission):
    """Only students."""
    allowed_roles = frozenset({UserRole.STUDENT})


class IsStaffMember(_RolePermission):
    """Teachers, admins and superadmins."""
    allowed_roles = STAFF_ROLES


class IsAdmin(_RolePermission):
    """Admins and superadmins."""
    allowed_roles = ADMIN_ROLES


class IsSuperAdmin(_RolePermission):
    """Only superadmins (hard deletes)."""
    allowed_roles = frozenset({UserRole.SUPERADMIN})


class IsRecipientOrAdmin(BasePermission):
    """Object access limited to the notification's recipient or an admin."""

    def has_object_permission(self, request: Request, view: Any, obj: Any) -> bool:
        return obj.user_id == request.user.id or is_admin(request.user)
