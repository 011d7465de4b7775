"""Environment-driven configuration for the HAL client."""

import os
from dataclasses import dataclass
from urllib.parse import urlsplit

from dotenv import load_dotenv

HAL_JSON_MEDIA_TYPE = "application/hal+json"


def is_absolute_http_url(value: str) -> bool:
    """Return True when value has an http(s) scheme and a host."""
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.netloc)


@dataclass(frozen=True, slots=True)
class Settings:
    """Container for runtime configuration, read-only once a client holds it."""

    root_endpoint: str | None
    api_timeout: float = 30.0
    media_type: str = HAL_JSON_MEDIA_TYPE
    default_headers: tuple[tuple[str, str], ...] = ()

    @classmethod
    def load(cls) -> "Settings":
        """
        Load configuration from environment variables.

        Python-dotenv is used so a local .env file can provide the root endpoint
        without exporting variables globally.
        """
        load_dotenv()

        root_endpoint = os.getenv("HALKIT_ROOT_ENDPOINT", "").strip()
        if not root_endpoint:
            raise ValueError("HALKIT_ROOT_ENDPOINT is required but was not provided.")
        if not is_absolute_http_url(root_endpoint):
            raise ValueError("HALKIT_ROOT_ENDPOINT must be an absolute http(s) URL.")

        api_timeout_raw = os.getenv("HALKIT_API_TIMEOUT", "").strip() or "30"
        try:
            api_timeout = float(api_timeout_raw)
        except ValueError as exc:
            raise ValueError("HALKIT_API_TIMEOUT must be a numeric value.") from exc
        if api_timeout <= 0:
            raise ValueError("HALKIT_API_TIMEOUT must be greater than zero.")

        media_type = os.getenv("HALKIT_MEDIA_TYPE", "").strip() or HAL_JSON_MEDIA_TYPE
        if "/" not in media_type:
            raise ValueError("HALKIT_MEDIA_TYPE must look like 'type/subtype'.")

        return cls(
            root_endpoint=root_endpoint,
            api_timeout=api_timeout,
            media_type=media_type,
        )
