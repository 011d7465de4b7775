"""Body serializers and content-type driven serializer selection."""

import json
from collections.abc import Sequence
from functools import lru_cache
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, TypeAdapter, ValidationError

from halkit.errors import SerializationError


@runtime_checkable
class Serializer(Protocol):
    """Encodes request bodies and decodes response bodies for some media types."""

    def handles(self, media_type: str) -> bool: ...

    def serialize(self, value: Any) -> bytes: ...

    def deserialize(self, content: bytes, target_type: Any) -> Any: ...


@lru_cache(maxsize=256)
def _adapter(target_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(target_type)


class JsonSerializer:
    """JSON (and ``+json``) bodies, validated against pydantic-compatible types."""

    def handles(self, media_type: str) -> bool:
        return media_type == "application/json" or media_type.endswith("+json")

    def serialize(self, value: Any) -> bytes:
        if isinstance(value, bytes):
            return value
        try:
            if isinstance(value, BaseModel):
                return value.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")
            return json.dumps(_adapter(type(value)).dump_python(value, mode="json")).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise SerializationError(
                f"Request body of type {type(value).__name__} cannot be encoded as JSON."
            ) from exc

    def deserialize(self, content: bytes, target_type: Any) -> Any:
        try:
            return _adapter(target_type).validate_json(content)
        except ValidationError as exc:
            raise SerializationError(
                f"Response body does not match {getattr(target_type, '__name__', target_type)!s}: "
                f"{exc.error_count()} validation error(s)."
            ) from exc


def media_type_of(content_type: str | None) -> str:
    """Strip parameters from a Content-Type value, e.g. ``; charset=utf-8``."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def select_serializer(serializers: Sequence[Serializer], content_type: str | None) -> Serializer:
    """Pick the first serializer claiming the media type, else the first one."""
    if not serializers:
        raise SerializationError("No serializers are configured.")
    media_type = media_type_of(content_type)
    if media_type:
        for serializer in serializers:
            if serializer.handles(media_type):
                return serializer
    return serializers[0]
