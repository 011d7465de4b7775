"""
Request dispatch through the handler pipeline and typed response decoding.

The connection owns the httpx transport and the handler chain. It reports
any non-2xx answer left after redirects as ApiError and undecodable bodies
as SerializationError, and lets httpx transport failures propagate as they
are.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, TypeVar

import httpx

from halkit.errors import ApiError, ArgumentError
from halkit.handlers import DelegatingHandler, build_pipeline
from halkit.http_client import create_transport_client
from halkit.models import ApiResponse, NoContent
from halkit.serialization import JsonSerializer, Serializer, select_serializer
from halkit.settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

GET = "GET"
POST = "POST"
PUT = "PUT"
PATCH = "PATCH"
DELETE = "DELETE"
SUPPORTED_METHODS = frozenset({GET, POST, PUT, PATCH, DELETE})


class HttpConnection:
    """Sends requests for a HalClient and wraps the answers in ApiResponse."""

    def __init__(
        self,
        settings: Settings,
        handlers: Sequence[DelegatingHandler] = (),
        *,
        client: httpx.AsyncClient | None = None,
        serializers: Sequence[Serializer] | None = None,
    ) -> None:
        if settings is None:
            raise ArgumentError("settings must not be None.")
        self._settings = settings
        self._client = client if client is not None else create_transport_client(settings)
        self._serializers: tuple[Serializer, ...] = tuple(serializers or (JsonSerializer(),))
        self._handlers = tuple(handlers)
        self._send = build_pipeline(self._handlers, self._transport_send)

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def handlers(self) -> tuple[DelegatingHandler, ...]:
        return self._handlers

    async def aclose(self) -> None:
        """Close the underlying HTTP resources."""
        await self._client.aclose()

    async def send_request(
        self,
        url: str,
        method: str,
        body: Any = None,
        headers: Mapping[str, Iterable[str]] | None = None,
        result_type: type[T] | Any = NoContent,
    ) -> ApiResponse[T]:
        method = (method or "").upper()
        if method not in SUPPORTED_METHODS:
            raise ArgumentError(f"Unsupported HTTP method: {method or '<empty>'}.")
        if body is not None and method in (GET, DELETE):
            raise ArgumentError(f"{method} requests cannot carry a body.")

        header_items = [
            (name, value)
            for name, values in (headers or {}).items()
            for value in ([values] if isinstance(values, str) else values)
        ]
        content: bytes | None = None
        if body is not None:
            content_type = next(
                (value for name, value in header_items if name.lower() == "content-type"),
                None,
            )
            if content_type is None:
                content_type = self._settings.media_type
                header_items.append(("Content-Type", content_type))
            serializer = select_serializer(self._serializers, content_type)
            content = serializer.serialize(body)

        request = self._client.build_request(method, url, content=content, headers=header_items)
        logger.debug("Dispatching HAL request", extra={"method": method, "url": url})
        response = await self._send(request)
        try:
            raw = await response.aread()
        finally:
            await response.aclose()

        if not response.is_success:
            raise ApiError(
                response.status_code,
                response.headers,
                raw,
                method=method,
                url=url,
            )

        return ApiResponse(
            status_code=response.status_code,
            headers=response.headers,
            body=raw,
            body_as_object=self._decode(raw, response.headers.get("Content-Type"), result_type),
        )

    def _decode(self, raw: bytes, content_type: str | None, result_type: Any) -> Any:
        if result_type is None or result_type is NoContent or not raw.strip():
            return None
        serializer = select_serializer(self._serializers, content_type)
        return serializer.deserialize(raw, result_type)

    async def _transport_send(self, request: httpx.Request) -> httpx.Response:
        return await self._client.send(request)
