"""Error types raised by the HAL client."""

import httpx


class HalKitError(Exception):
    """Base class for every error raised by halkit itself."""


class ArgumentError(HalKitError, ValueError):
    """A required collaborator or argument is missing or invalid."""


class InvalidLinkError(ArgumentError):
    """A link could not be expanded into an absolute URL."""

    def __init__(self, message: str, *, href: str | None = None) -> None:
        super().__init__(message)
        self.href = href


class SerializationError(HalKitError):
    """A request or response body did not match the expected shape."""


class ApiError(HalKitError):
    """The server answered with a non-2xx status."""

    def __init__(
        self,
        status_code: int,
        headers: httpx.Headers,
        body: bytes,
        *,
        method: str = "",
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.headers = headers
        self.body = body
        self.method = method
        self.url = url
        snippet = self.text.strip()
        if len(snippet) > 512:
            snippet = f"{snippet[:512]}..."
        super().__init__(
            f"API error ({status_code}) during {method} {url}: {snippet or 'no body provided.'}"
        )

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500
