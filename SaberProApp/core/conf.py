"""Access to the ``SABERPRO`` settings dictionary with defaults."""

from typing import Any

from django.conf import settings

DEFAULTS: dict[str, Any] = {
    "NOTIFY_ON_REGRADE": False,
    "ALLOWED_FILE_DOMAINS": [],
    "STUDENT_CODE_LENGTH": 6,
    "MIN_PASSWORD_LENGTH": 6,
}


def app_setting(name: str) -> Any:
    """Return ``settings.SABERPRO[name]`` falling back to the module default."""
    overrides = getattr(settings, "SABERPRO", {}) or {}
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]
