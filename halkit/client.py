"""
HalClient: the public entry point for navigating a HAL API.

Every verb resolves a Link through the LinkResolver, makes sure an Accept
header is present, and dispatches through the HttpConnection. Typed verbs
return only the decoded body; ``delete`` and ``send_request`` return the
whole ApiResponse.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, TypeVar

from halkit.connection import DELETE, GET, PATCH, POST, PUT, HttpConnection
from halkit.errors import ArgumentError
from halkit.handlers import DelegatingHandler
from halkit.link_resolver import LinkResolver
from halkit.models import ApiResponse, Link, NoContent, RootResource
from halkit.settings import HAL_JSON_MEDIA_TYPE, Settings, is_absolute_http_url

logger = logging.getLogger(__name__)

T = TypeVar("T")

Parameters = Mapping[str, str]
Headers = Mapping[str, Iterable[str]]


class HalClient:
    """Typed wrapper around a HttpConnection for one HAL API."""

    def __init__(
        self,
        connection: HttpConnection,
        settings: Settings,
        resolver: LinkResolver,
    ) -> None:
        if connection is None:
            raise ArgumentError("connection must not be None.")
        if settings is None:
            raise ArgumentError("settings must not be None.")
        if resolver is None:
            raise ArgumentError("resolver must not be None.")
        if not settings.root_endpoint:
            raise ArgumentError("settings must have a root_endpoint.")
        if not is_absolute_http_url(settings.root_endpoint):
            raise ArgumentError("settings.root_endpoint must be an absolute http(s) URL.")

        self._connection = connection
        self._settings = settings
        self._resolver = resolver

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        handlers: Sequence[DelegatingHandler] = (),
    ) -> "HalClient":
        """Factory that builds the default connection and resolver from Settings."""
        if settings is None:
            raise ArgumentError("settings must not be None.")
        return cls(HttpConnection(settings, handlers), settings, LinkResolver())

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def connection(self) -> HttpConnection:
        return self._connection

    async def aclose(self) -> None:
        """Close the underlying HTTP resources."""
        await self._connection.aclose()

    async def __aenter__(self) -> "HalClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def get_root(
        self,
        *,
        parameters: Parameters | None = None,
        headers: Headers | None = None,
    ) -> RootResource:
        """GET the configured root endpoint and return the entry-point resource."""
        root = Link(href=str(self._settings.root_endpoint))
        return await self.get(root, RootResource, parameters=parameters, headers=headers)

    async def get(
        self,
        link: Link,
        result_type: type[T],
        *,
        parameters: Parameters | None = None,
        headers: Headers | None = None,
    ) -> T:
        return await self._send_and_get_body(link, GET, result_type, None, parameters, headers)

    async def post(
        self,
        link: Link,
        result_type: type[T],
        *,
        body: Any = None,
        parameters: Parameters | None = None,
        headers: Headers | None = None,
    ) -> T:
        return await self._send_and_get_body(link, POST, result_type, body, parameters, headers)

    async def put(
        self,
        link: Link,
        result_type: type[T],
        *,
        body: Any = None,
        parameters: Parameters | None = None,
        headers: Headers | None = None,
    ) -> T:
        return await self._send_and_get_body(link, PUT, result_type, body, parameters, headers)

    async def patch(
        self,
        link: Link,
        result_type: type[T],
        *,
        body: Any = None,
        parameters: Parameters | None = None,
        headers: Headers | None = None,
    ) -> T:
        return await self._send_and_get_body(link, PATCH, result_type, body, parameters, headers)

    async def delete(
        self,
        link: Link,
        *,
        parameters: Parameters | None = None,
        headers: Headers | None = None,
    ) -> ApiResponse[Any]:
        """DELETE the target; the body is left undecoded in the returned envelope."""
        return await self.send_request(
            link, DELETE, NoContent, parameters=parameters, headers=headers
        )

    async def send_request(
        self,
        link: Link,
        method: str,
        result_type: Any = NoContent,
        *,
        body: Any = None,
        parameters: Parameters | None = None,
        headers: Headers | None = None,
    ) -> ApiResponse[Any]:
        """Resolve ``link`` and dispatch it, returning the full ApiResponse."""
        if link is None:
            raise ArgumentError("link must not be None.")
        if not method:
            raise ArgumentError("method must not be empty.")

        url = self._resolver.resolve(
            link,
            parameters or {},
            base_url=self._settings.root_endpoint,
        )
        request_headers = with_default_accept(headers)
        logger.debug(
            "Following link",
            extra={"rel": link.rel, "method": method, "url": url},
        )
        return await self._connection.send_request(
            url,
            method,
            body,
            request_headers,
            result_type,
        )

    async def _send_and_get_body(
        self,
        link: Link,
        method: str,
        result_type: type[T],
        body: Any,
        parameters: Parameters | None,
        headers: Headers | None,
    ) -> T:
        response = await self.send_request(
            link,
            method,
            result_type,
            body=body,
            parameters=parameters,
            headers=headers,
        )
        return response.body_as_object


def with_default_accept(headers: Headers | None) -> dict[str, list[str]]:
    """Copy headers, adding ``Accept: application/hal+json`` unless one is present."""
    merged = {
        name: [values] if isinstance(values, str) else list(values)
        for name, values in (headers or {}).items()
    }
    if not any(name.lower() == "accept" for name in merged):
        merged["Accept"] = [HAL_JSON_MEDIA_TYPE]
    return merged
