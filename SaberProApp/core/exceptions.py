"""Error taxonomy shared by services and the API layer.

Every class is a DRF ``APIException`` so services can raise them directly and
the API exception handler renders them with the right status code.
"""

from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    NotAuthenticated,
    NotFound,
    PermissionDenied,
    ValidationError,
)

__all__ = [
    "AuthenticationError",
    "AuthorizationError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "UnhandledStoreError",
]


class AuthenticationError(NotAuthenticated):
    """No authenticated session."""
    default_detail = "Unauthorized"
    default_code = "unauthorized"


class AuthorizationError(PermissionDenied):
    """Role or ownership mismatch."""
    default_detail = "Forbidden"
    default_code = "forbidden"


class NotFoundError(NotFound):
    """Referenced entity is absent."""
    default_detail = "Not found"
    default_code = "not_found"


class ConflictError(APIException):
    """Duplicate row or business-rule violation (deadline passed, wrong state)."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Conflict"
    default_code = "conflict"


class UnhandledStoreError(APIException):
    """Persistence failure not otherwise classified; detail never leaks internals."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Error processing the request"
    default_code = "store_error"
