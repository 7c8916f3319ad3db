"""Primary-key lookups that translate ORM misses into the SaberPro error taxonomy."""

from typing import Any, TypeVar

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Model, QuerySet

from SaberProApp.core.exceptions import NotFoundError, ValidationError

M = TypeVar("M", bound=Model)


def get_or_not_found(source: type[M] | QuerySet, pk: Any, message: str = "Not found") -> M:
    """Fetch one row by primary key.

    Raises:
        ValidationError: If ``pk`` is missing or not a valid identifier.
        NotFoundError: If no row matches.
    """
    qs = source.objects.all() if isinstance(source, type) else source
    if pk in (None, ""):
        raise ValidationError({"id": ["This field is required."]})
    try:
        return qs.get(pk=pk)
    except qs.model.DoesNotExist:
        raise NotFoundError(message)
    except (DjangoValidationError, ValueError):
        raise ValidationError({"id": ["Must be a valid UUID."]})


def same_id(left: Any, right: Any) -> bool:
    """Compare identifiers that may arrive as UUID objects or strings."""
    return str(left) == str(right)
