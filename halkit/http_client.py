"""HTTP transport factory for talking to a HAL API."""

import httpx

from halkit.settings import Settings


def create_transport_client(settings: Settings) -> httpx.AsyncClient:
    """
    Build the AsyncClient every request of one HalClient goes through.

    Connection pooling is left to httpx and redirects are followed. Default
    headers are attached at the client level, so a header set on an individual
    request takes precedence.
    """
    return httpx.AsyncClient(
        timeout=settings.api_timeout,
        headers=list(settings.default_headers),
        follow_redirects=True,
    )
