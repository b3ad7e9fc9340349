import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request

from placematch.core.experience_source import ExperienceSourceError
from placematch.core.recommendation_service import RecommendationService
from placematch.core.schemas import RecommendationRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["recommendations"])


def _service(request: Request) -> RecommendationService:
    return request.app.state.service


@router.post("/recommendations")
async def create_recommendations(payload: RecommendationRequest, request: Request) -> dict[str, Any]:
    """
    Cluster, plan and personalize the places sent in the request body.

    Malformed place or video records are dropped and counted in
    rejectedRecords instead of failing the request.
    """
    response = await _service(request).arecommend(
        payload.places,
        payload.preferences,
        videos=payload.videos,
        max_itineraries=payload.max_itineraries,
        max_videos_per_event=payload.max_videos_per_event,
    )
    return response.to_json_dict()


@router.get("/recommendations")
async def get_recommendations(
    request: Request,
    city: str | None = Query(None, description="Case-insensitive substring of the place city"),
    category: str | None = Query(None, description="Exact category, case-insensitive"),
    preferences: str | None = Query(None, description="UserPreferences as a JSON string"),
    include_videos: bool = Query(
        False, alias="includeVideos", description="Attach matched videos as experiences"
    ),
) -> dict[str, Any]:
    """Recommend over the places held by the configured experience source."""
    service = _service(request)
    if service.source is None:
        raise HTTPException(status_code=503, detail="No experience source configured")

    try:
        response = await service.recommend_for_request(
            city=city,
            category=category,
            raw_preferences=preferences,
            include_videos=include_videos,
        )
    except ExperienceSourceError as e:
        logger.error(f"Failed to generate recommendations: {e}")
        raise HTTPException(status_code=502, detail=f"Failed to load experiences: {str(e)}")

    return response.to_json_dict()


@router.get("/experiences/enhanced")
async def get_enhanced_experiences(
    request: Request,
    city: str | None = Query(None),
    category: str | None = Query(None),
) -> list[dict[str, Any]]:
    """Experiences with their own videos, topped up or replaced by matched ones."""
    service = _service(request)
    if service.source is None:
        raise HTTPException(status_code=503, detail="No experience source configured")

    try:
        experiences = await service.enhanced_experiences(city=city, category=category)
    except ExperienceSourceError as e:
        logger.error(f"Failed to enhance experiences: {e}")
        raise HTTPException(status_code=502, detail=f"Failed to load experiences: {str(e)}")

    return [experience.to_json_dict() for experience in experiences]
