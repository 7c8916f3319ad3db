"""Validation helpers for student codes, passwords and externally uploaded file URLs."""

from urllib.parse import urlparse

from django.core.exceptions import ValidationError

from SaberProApp.core.conf import app_setting


def validate_student_code(code: str) -> None:
    """Ensure a student code is made of exactly ``STUDENT_CODE_LENGTH`` digits."""
    length = app_setting("STUDENT_CODE_LENGTH")
    if not code or len(code) != length or not code.isdigit():
        raise ValidationError(f"Student code must have exactly {length} digits.")

def validate_password_strength(password: str) -> None:
    """Ensure a new password meets the minimum length."""
    min_length = app_setting("MIN_PASSWORD_LENGTH")
    if not password or len(password) < min_length:
        raise ValidationError(f"Password must be at least {min_length} characters long.")

def validate_file_url(url: str) -> None:
    """Ensure an uploaded file URL uses https and, when configured, an allowed domain suffix."""
    result = urlparse(url)
    if result.scheme != "https":
        raise ValidationError("URL must use https.")
    allowed = app_setting("ALLOWED_FILE_DOMAINS")
    if allowed and not any(result.netloc.endswith(d) for d in allowed):
        raise ValidationError("URL domain not allowed.")
