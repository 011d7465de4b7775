"""Entry point: discover a HAL API's root resource and print its links."""

import asyncio
import json
import logging
import os

from halkit import HalClient, LoggingHandler, Settings
from halkit.models import Link


def _configure_logging() -> None:
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def _describe(link: Link) -> dict[str, object]:
    return link.model_dump(exclude_none=True, exclude_defaults=True) | {"href": link.href}


async def discover(settings: Settings) -> dict[str, object]:
    """Fetch the root resource and return its relations keyed by name."""
    async with HalClient.from_settings(settings, handlers=[LoggingHandler()]) as client:
        root = await client.get_root()
    return {
        rel: [_describe(item) for item in value] if isinstance(value, list) else _describe(value)
        for rel, value in root.links.items()
    }


def main() -> None:
    """Load settings, run root discovery and print the result as JSON."""
    _configure_logging()
    logger = logging.getLogger("halkit")
    settings = Settings.load()

    try:
        links = asyncio.run(discover(settings))
    except KeyboardInterrupt:
        logger.info("Discovery interrupted (Ctrl+C).")
        return
    except Exception:
        logger.exception("Root discovery failed.")
        raise

    print(json.dumps(links, indent=2, sort_keys=True))


if __name__ == "__main__":
    main()
