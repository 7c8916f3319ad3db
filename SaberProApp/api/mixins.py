"""Shared helpers for the SaberPro API views."""

from typing import Any

from rest_framework import status
from rest_framework.response import Response


class EnvelopeMixin:
    """Render payloads wrapped under a single key, e.g. ``{"enrollment": {...}}``."""

    def respond(self, key: str, serializer_cls: Any, instance: Any, many: bool = False,
                status_code: int = status.HTTP_200_OK) -> Response:
        serializer = serializer_cls(instance, many=many, context=self.get_serializer_context())
        return Response({key: serializer.data}, status=status_code)

    def get_serializer_context(self) -> dict[str, Any]:
        return {"request": self.request, "view": self}

    def validated(self, serializer_cls: Any, partial: bool = False) -> dict[str, Any]:
        """Validate the request body and return the service keyword arguments."""
        serializer = serializer_cls(data=self.request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        return dict(serializer.validated_data)

    def query_param(self, *names: str) -> str | None:
        """First non-empty query parameter among ``names`` (camelCase first, then snake_case)."""
        for name in names:
            value = self.request.query_params.get(name)
            if value:
                return value
        return None
