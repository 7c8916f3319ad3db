"""DRF exception handler that shapes every error as ``{"error": ..., "details": ...}``."""

import logging
from typing import Any

from django.core.exceptions import ObjectDoesNotExist, ValidationError as DjangoValidationError
from django.db import DatabaseError
from django.http import Http404
from rest_framework import exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler

from SaberProApp.core.exceptions import NotFoundError, UnhandledStoreError

logger = logging.getLogger(__name__)

VALIDATION_MESSAGE = "Invalid data"


def _convert(exc: Exception) -> Exception:
    if isinstance(exc, (Http404, ObjectDoesNotExist)):
        return NotFoundError()
    if isinstance(exc, DjangoValidationError):
        detail = exc.message_dict if hasattr(exc, "error_dict") else exc.messages
        return exceptions.ValidationError(detail)
    if isinstance(exc, DatabaseError):
        return UnhandledStoreError()
    return exc


def saberpro_exception_handler(exc: Exception, context: dict[str, Any]) -> Response | None:
    """Translate framework and store errors, then flatten DRF's body into the error envelope."""
    if isinstance(exc, DatabaseError):
        view = context.get("view")
        logger.exception("Store failure in %s", type(view).__name__ if view else "unknown view")
    exc = _convert(exc)

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, exceptions.ValidationError):
        body = {"error": VALIDATION_MESSAGE, "details": response.data}
    elif isinstance(response.data, dict) and "detail" in response.data:
        body = {"error": str(response.data["detail"])}
    else:
        body = {"error": VALIDATION_MESSAGE, "details": response.data}
    response.data = body
    return response
