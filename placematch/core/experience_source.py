"""
Sources of raw experience and video records.

The recommendation core never fetches data itself; the service asks an
ExperienceSource for already-normalized records.
"""

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class ExperienceSourceError(RuntimeError):
    """The experience store could not be reached or returned bad data."""


class ExperienceSource:
    """Interface for stores that hand out raw place and video records."""

    async def list_places(self) -> list[dict[str, Any]]:
        raise NotImplementedError

    async def list_videos(self) -> list[dict[str, Any]]:
        raise NotImplementedError


class InMemoryExperienceSource(ExperienceSource):
    """Serves fixed record lists, for embedding and tests."""

    def __init__(
        self,
        places: list[dict[str, Any]] | None = None,
        videos: list[dict[str, Any]] | None = None,
    ):
        self._places = list(places or [])
        self._videos = list(videos or [])

    async def list_places(self) -> list[dict[str, Any]]:
        return list(self._places)

    async def list_videos(self) -> list[dict[str, Any]]:
        return list(self._videos)


class HttpExperienceSource(ExperienceSource):
    """
    Reads records from the experience API.

    Expects GET {base_url}/api/experiences and GET {base_url}/api/videos to
    return JSON arrays.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not base_url:
            raise ValueError("base_url is required for HttpExperienceSource")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def _get_list(self, path: str) -> list[dict[str, Any]]:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                response = await client.get(url)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Experience API error for {url}: {e.response.status_code}")
            raise ExperienceSourceError(
                f"Experience API returned {e.response.status_code} for {path}"
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Error fetching {url}: {e}", exc_info=True)
            raise ExperienceSourceError(f"Could not reach experience API at {url}") from e
        except ValueError as e:
            logger.error(f"Experience API returned invalid JSON for {url}: {e}")
            raise ExperienceSourceError(f"Invalid JSON from {path}") from e

        if not isinstance(payload, list):
            raise ExperienceSourceError(
                f"Expected a JSON array from {path}, got {type(payload).__name__}"
            )
        return payload

    async def list_places(self) -> list[dict[str, Any]]:
        return await self._get_list("/api/experiences")

    async def list_videos(self) -> list[dict[str, Any]]:
        return await self._get_list("/api/videos")
