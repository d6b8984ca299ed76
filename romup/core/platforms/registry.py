"""
Platform registry clients.

The registry's CRUD lifecycle belongs to the server; the pipeline only
fetches one snapshot of the active platforms per run.
"""
from typing import Any, Iterable, List

from .models import Platform
from ..api import AsyncAPIClient, Routes
from ..exceptions import NetworkError
from ..logging import get_logger

logger = get_logger('romup.platforms.registry')


def parse_platforms(payload: Any) -> List[Platform]:
    """
    Parse an API platform list, skipping malformed entries.

    Raises:
        NetworkError: If the payload is not a list
    """
    if not isinstance(payload, list):
        raise NetworkError("Unexpected platform list response", status=502)

    platforms: List[Platform] = []
    for item in payload:
        if not isinstance(item, dict):
            logger.warning(f"Skipping malformed platform entry: {item!r}")
            continue
        try:
            platforms.append(Platform.from_dict(item))
        except (TypeError, ValueError) as e:
            logger.warning(f"Skipping platform entry: {e}")
    return platforms


class HttpPlatformRegistry:
    """Fetches active platforms from the ROM library API."""

    def __init__(self, api: AsyncAPIClient):
        self._api = api

    async def list_active(self) -> List[Platform]:
        """
        Fetch the active platforms.

        Raises:
            NetworkError: If the registry cannot be reached
        """
        payload = await self._api.get_json(Routes.PLATFORMS_ACTIVE)
        platforms = [p for p in parse_platforms(payload) if p.is_active]
        logger.info(f"Loaded {len(platforms)} active platform(s)")
        return platforms


class StaticPlatformRegistry:
    """In-memory registry over a fixed platform list."""

    def __init__(self, platforms: Iterable[Platform] = ()):
        self._platforms = list(platforms)

    async def list_active(self) -> List[Platform]:
        return [p for p in self._platforms if p.is_active]
