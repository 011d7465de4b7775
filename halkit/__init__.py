"""
Async client for hypermedia APIs that follow the HAL convention.

Resources are reached by following typed links rather than hardcoded URLs:
``HalClient.get_root`` discovers the entry point, and the verb methods resolve
and follow any ``Link`` found on a resource.
"""

from halkit.client import HalClient
from halkit.connection import HttpConnection
from halkit.errors import (
    ApiError,
    ArgumentError,
    HalKitError,
    InvalidLinkError,
    SerializationError,
)
from halkit.handlers import DelegatingHandler, HeadersHandler, LoggingHandler, RetryHandler
from halkit.link_resolver import LinkResolver
from halkit.models import ApiResponse, Link, NoContent, Resource, RootResource
from halkit.serialization import JsonSerializer, Serializer
from halkit.settings import HAL_JSON_MEDIA_TYPE, Settings

__all__ = [
    "ApiError",
    "ApiResponse",
    "ArgumentError",
    "DelegatingHandler",
    "HAL_JSON_MEDIA_TYPE",
    "HalClient",
    "HalKitError",
    "HeadersHandler",
    "HttpConnection",
    "InvalidLinkError",
    "JsonSerializer",
    "Link",
    "LinkResolver",
    "LoggingHandler",
    "NoContent",
    "Resource",
    "RetryHandler",
    "RootResource",
    "Serializer",
    "SerializationError",
    "Settings",
]
