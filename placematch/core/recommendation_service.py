"""
Request-scoped orchestration of clustering, itineraries, preference
filtering and video matching.
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from placematch.core.experience_source import ExperienceSource, ExperienceSourceError
from placematch.core.ingest import parse_places, parse_preferences, parse_videos
from placematch.core.itinerary_builder import build_itineraries
from placematch.core.place_clusterer import cluster_places
from placematch.core.preference_filter import filter_and_rank
from placematch.core.schemas import (
    Cluster,
    EnhancedExperience,
    Itinerary,
    Place,
    RecommendationMatch,
    RecommendationResponse,
    UserPreferences,
    Video,
)
from placematch.core.settings import Settings, get_settings
from placematch.core.video_matcher import find_matches, generate_contextual_video_titles

logger = logging.getLogger(__name__)

RawPreferences = UserPreferences | dict[str, Any] | str | None


def filter_places(
    places: Sequence[Place], city: str | None = None, category: str | None = None
) -> list[Place]:
    """
    Narrow places to a city and/or category.

    City matches as a case-insensitive substring of the place city;
    category matches case-insensitively in full.
    """
    filtered = list(places)
    if city:
        needle = city.lower()
        filtered = [p for p in filtered if needle in p.city.lower()]
    if category:
        wanted = category.lower()
        filtered = [p for p in filtered if p.category.lower() == wanted]
    return filtered


def _native_match(video: Video) -> RecommendationMatch:
    return RecommendationMatch(
        **video.model_dump(include=set(Video.model_fields)),
        is_recommended=False,
    )


class RecommendationService:
    """
    Stateless coordinator for one recommendation request.

    Clustering (with itineraries), preference filtering and video matching
    do not depend on each other; arecommend runs them concurrently.
    """

    def __init__(self, settings: Settings | None = None, source: ExperienceSource | None = None):
        self.settings = settings or get_settings()
        self.source = source

    # ------------------------------------------------------------------
    # Sub-computations
    # ------------------------------------------------------------------

    @staticmethod
    def cluster_and_build(
        places: Sequence[Place], max_itineraries: int
    ) -> tuple[list[Cluster], list[Itinerary]]:
        clusters = cluster_places(places)
        return clusters, build_itineraries(clusters, max_itineraries)

    @staticmethod
    def enhance_experiences(
        places: Sequence[Place], videos: Sequence[Video], max_videos_per_event: int
    ) -> list[EnhancedExperience]:
        """
        Attach videos to every place.

        A place with no native videos gets contextualized matches from the
        whole pool. A place with some, but fewer than max_videos_per_event,
        is topped up with plain matches from the videos that are not its own.
        """
        experiences = []
        for place in places:
            native = [v for v in videos if v.experience_id == place.id]

            if not native:
                matches = find_matches(place, videos, max_videos_per_event)
                attached = generate_contextual_video_titles(place, matches)
            else:
                attached = [_native_match(v) for v in native]
                missing = max_videos_per_event - len(native)
                if missing > 0:
                    pool = [v for v in videos if v.experience_id != place.id]
                    attached.extend(find_matches(place, pool, missing))

            experiences.append(
                EnhancedExperience(
                    **place.model_dump(),
                    videos=attached,
                    video_count=len(attached),
                    has_videos=bool(attached),
                    has_recommended_videos=any(v.is_recommended for v in attached),
                )
            )
        return experiences

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def _limits(self, max_itineraries: int | None, max_videos_per_event: int | None) -> tuple[int, int]:
        if max_itineraries is None:
            max_itineraries = self.settings.max_itineraries
        if max_videos_per_event is None:
            max_videos_per_event = self.settings.max_videos_per_event
        return max_itineraries, max_videos_per_event

    def _assemble(
        self,
        places: list[Place],
        clustered: tuple[list[Cluster], list[Itinerary]],
        personalized: list[Place],
        experiences: list[EnhancedExperience] | None,
        rejected: int,
    ) -> RecommendationResponse:
        clusters, itineraries = clustered
        logger.info(
            f"Recommendations: {len(places)} places, {len(clusters)} clusters, "
            f"{len(itineraries)} itineraries, {len(personalized)} personalized, "
            f"{rejected} rejected records"
        )
        return RecommendationResponse(
            clusters=clusters,
            itineraries=itineraries,
            personalized_recommendations=personalized,
            experiences=experiences,
            total_places=len(places),
            total_clusters=len(clusters),
            rejected_records=rejected,
        )

    def recommend(
        self,
        places: Sequence[Place | dict[str, Any]],
        preferences: RawPreferences = None,
        videos: Sequence[Video | dict[str, Any]] | None = None,
        max_itineraries: int | None = None,
        max_videos_per_event: int | None = None,
    ) -> RecommendationResponse:
        """
        Build the combined recommendation response.

        Args:
            places: Place models or raw place dicts; malformed ones are dropped
            preferences: Preferences as a model, dict or JSON string
            videos: Video pool; when None, no video matching is done
            max_itineraries: Override for settings.max_itineraries
            max_videos_per_event: Override for settings.max_videos_per_event

        Returns:
            RecommendationResponse (experiences is None when videos is None)
        """
        valid_places, rejected = parse_places(places)
        prefs = parse_preferences(preferences)
        max_itineraries, max_videos = self._limits(max_itineraries, max_videos_per_event)

        experiences = None
        if videos is not None:
            valid_videos, rejected_videos = parse_videos(videos)
            rejected += rejected_videos
            experiences = self.enhance_experiences(valid_places, valid_videos, max_videos)

        return self._assemble(
            valid_places,
            self.cluster_and_build(valid_places, max_itineraries),
            filter_and_rank(valid_places, prefs),
            experiences,
            rejected,
        )

    async def arecommend(
        self,
        places: Sequence[Place | dict[str, Any]],
        preferences: RawPreferences = None,
        videos: Sequence[Video | dict[str, Any]] | None = None,
        max_itineraries: int | None = None,
        max_videos_per_event: int | None = None,
    ) -> RecommendationResponse:
        """Same as recommend, with the three computations run in worker threads."""
        valid_places, rejected = parse_places(places)
        prefs = parse_preferences(preferences)
        max_itineraries, max_videos = self._limits(max_itineraries, max_videos_per_event)

        tasks = [
            asyncio.to_thread(self.cluster_and_build, valid_places, max_itineraries),
            asyncio.to_thread(filter_and_rank, valid_places, prefs),
        ]
        if videos is not None:
            valid_videos, rejected_videos = parse_videos(videos)
            rejected += rejected_videos
            tasks.append(
                asyncio.to_thread(self.enhance_experiences, valid_places, valid_videos, max_videos)
            )

        results = await asyncio.gather(*tasks)
        experiences = results[2] if videos is not None else None
        return self._assemble(valid_places, results[0], results[1], experiences, rejected)

    async def _load_places(
        self, city: str | None, category: str | None
    ) -> tuple[list[Place], int]:
        if self.source is None:
            raise ExperienceSourceError("No experience source configured")
        places, rejected = parse_places(await self.source.list_places())
        return filter_places(places, city, category), rejected

    async def recommend_for_request(
        self,
        city: str | None = None,
        category: str | None = None,
        raw_preferences: RawPreferences = None,
        include_videos: bool = False,
    ) -> RecommendationResponse:
        """
        Load places from the experience source and recommend over them.

        Raises:
            ExperienceSourceError: no source configured or the source failed
        """
        places, rejected = await self._load_places(city, category)
        videos = await self.source.list_videos() if include_videos else None

        response = await self.arecommend(places, raw_preferences, videos=videos)
        response.rejected_records += rejected
        return response

    async def enhanced_experiences(
        self, city: str | None = None, category: str | None = None
    ) -> list[EnhancedExperience]:
        """Places from the experience source with native or matched videos attached."""
        places, _ = await self._load_places(city, category)
        videos, _ = parse_videos(await self.source.list_videos())
        return await asyncio.to_thread(
            self.enhance_experiences, places, videos, self.settings.max_videos_per_event
        )
