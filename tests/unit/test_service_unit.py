import math

import httpx
import pytest

from placematch.core.experience_source import (
    ExperienceSourceError,
    HttpExperienceSource,
    InMemoryExperienceSource,
)
from placematch.core.geo_utils import EARTH_RADIUS_KM
from placematch.core.ingest import parse_videos
from placematch.core.recommendation_service import RecommendationService, filter_places
from placematch.core.schemas import Place
from placematch.core.settings import Settings


def _north(km: float) -> float:
    return 38.7223 + math.degrees(km / EARTH_RADIUS_KM)


PLACES = [
    {
        "id": "cafe",
        "title": "Coffee tasting",
        "city": "Lisbon",
        "category": "food",
        "tags": ["coffee"],
        "latitude": _north(0.0),
        "longitude": -9.1393,
        "startTime": "2026-05-01T10:00:00",
        "price": 8,
    },
    {
        "id": "bakery",
        "title": "Pastel de nata workshop",
        "city": "Lisbon",
        "category": "food",
        "tags": ["pastry"],
        "latitude": _north(0.6),
        "longitude": -9.1393,
        "startTime": "2026-05-01T11:00:00",
        "price": 0,
    },
    {
        "id": "fado",
        "title": "Fado night",
        "city": "Lisbon",
        "category": "music",
        "tags": ["music"],
        "latitude": _north(20.0),
        "longitude": -9.1393,
        "startTime": "2026-05-01T22:00:00",
        "price": 25,
    },
    {
        "id": "harbour",
        "title": "Harbour walk",
        "city": "Porto",
        "category": "outdoor",
        "latitude": 41.1496,
        "longitude": -8.6109,
    },
]

VIDEOS = [
    {"id": "v-coffee", "title": "Morning coffee", "tags": ["coffee", "food"], "viewCount": 10},
    {"id": "v-fado-1", "title": "Fado at midnight", "tags": ["music"], "experienceId": "fado"},
    {"id": "v-cats", "title": "Cats", "tags": ["misc"], "viewCount": 500},
    {"id": "v-harbour-1", "title": "Harbour 1", "experienceId": "harbour"},
    {"id": "v-harbour-2", "title": "Harbour 2", "experienceId": "harbour"},
    {"id": "v-harbour-3", "title": "Harbour 3", "experienceId": "harbour"},
]


@pytest.fixture
def settings() -> Settings:
    return Settings(max_itineraries=5, max_videos_per_event=3)


@pytest.fixture
def service(settings) -> RecommendationService:
    return RecommendationService(
        settings=settings, source=InMemoryExperienceSource(PLACES, VIDEOS)
    )


def test_recommend_combines_all_results(service):
    response = service.recommend(PLACES, {"preferredCategories": ["food"]})

    assert response.total_places == 4
    assert response.total_clusters == 1
    assert response.rejected_records == 0
    assert [p.id for p in response.clusters[0].places] == ["cafe", "bakery"]
    assert response.itineraries[0].title == "food Experience in Lisbon"
    assert [p.id for p in response.personalized_recommendations] == ["cafe", "bakery"]
    assert response.experiences is None
    assert "experiences" not in response.to_json_dict()


def test_recommend_counts_rejected_records(service):
    places = PLACES + [{"id": "broken", "latitude": 500}, {"title": "no id"}]
    videos = VIDEOS + [{"id": "bad", "viewCount": -1}]

    response = service.recommend(places, videos=videos)

    assert response.total_places == 4
    assert response.rejected_records == 3


def test_recommend_survives_record_with_scalar_tags(service):
    response = service.recommend([{"id": "a", "tags": 7}, {"id": "b"}])

    assert response.total_places == 1
    assert response.rejected_records == 1


def test_recommend_uses_setting_limits():
    service = RecommendationService(settings=Settings(max_itineraries=0, max_videos_per_event=1))
    response = service.recommend(PLACES, videos=VIDEOS)

    assert response.itineraries == []
    assert response.total_clusters == 1
    cafe = next(e for e in response.experiences if e.id == "cafe")
    assert cafe.video_count == 1


def test_recommend_with_invalid_preferences_ignores_them(service):
    response = service.recommend(PLACES, "{broken json")
    assert len(response.personalized_recommendations) == 4


@pytest.mark.asyncio
async def test_arecommend_matches_recommend(service):
    kwargs = {"preferences": {"preferredPriceRange": "paid"}, "videos": VIDEOS}

    sync_result = service.recommend(PLACES, **kwargs)
    async_result = await service.arecommend(PLACES, **kwargs)

    assert async_result.to_json_dict() == sync_result.to_json_dict()


def test_enhance_experiences_native_partial_and_none(service):
    places = [Place.model_validate(p) for p in PLACES]
    videos, _ = parse_videos(VIDEOS)
    experiences = {e.id: e for e in service.enhance_experiences(places, videos, 3)}

    # Three native videos: kept as-is, nothing matched
    harbour = experiences["harbour"]
    assert [v.id for v in harbour.videos] == ["v-harbour-1", "v-harbour-2", "v-harbour-3"]
    assert harbour.has_videos
    assert not harbour.has_recommended_videos

    # One native video, topped up with two matches from the other videos
    fado = experiences["fado"]
    assert fado.video_count == 3
    assert fado.videos[0].id == "v-fado-1"
    assert not fado.videos[0].is_recommended
    assert all(v.is_recommended and not v.is_contextual for v in fado.videos[1:])
    assert "v-fado-1" not in [v.id for v in fado.videos[1:]]
    assert fado.has_recommended_videos

    # No native videos: contextualized matches
    cafe = experiences["cafe"]
    assert cafe.video_count == 3
    assert cafe.videos[0].id == "v-coffee"
    assert cafe.videos[0].title == "Coffee tasting - Food Experience 1"
    assert all(v.is_contextual for v in cafe.videos)


def test_enhanced_experience_serializes_camel_case(service):
    response = service.recommend(PLACES[:1], videos=VIDEOS[:1])
    payload = response.to_json_dict()["experiences"][0]
    assert payload["videoCount"] == 1
    assert payload["hasRecommendedVideos"] is True
    assert payload["videos"][0]["similarityScore"] > 20
    assert payload["externalSource"] == "user-created"


def test_filter_places_by_city_and_category():
    places = [Place.model_validate(p) for p in PLACES]
    assert [p.id for p in filter_places(places, city="lis")] == ["cafe", "bakery", "fado"]
    assert [p.id for p in filter_places(places, category="FOOD")] == ["cafe", "bakery"]
    assert [p.id for p in filter_places(places, city="porto", category="food")] == []
    assert len(filter_places(places)) == 4


@pytest.mark.asyncio
async def test_recommend_for_request_uses_source(service):
    response = await service.recommend_for_request(city="Lisbon", include_videos=True)

    assert response.total_places == 3
    assert response.total_clusters == 1
    assert {e.id for e in response.experiences} == {"cafe", "bakery", "fado"}


@pytest.mark.asyncio
async def test_recommend_for_request_without_source_raises(settings):
    service = RecommendationService(settings=settings)
    with pytest.raises(ExperienceSourceError):
        await service.recommend_for_request()


@pytest.mark.asyncio
async def test_enhanced_experiences_filters_by_category(service):
    experiences = await service.enhanced_experiences(category="outdoor")
    assert [e.id for e in experiences] == ["harbour"]
    assert experiences[0].video_count == 3


# =============================================================================
# HTTP experience source
# =============================================================================


def _transport(routes: dict[str, httpx.Response]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        return routes.get(request.url.path, httpx.Response(404))

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_http_source_lists_records():
    transport = _transport(
        {
            "/api/experiences": httpx.Response(200, json=PLACES),
            "/api/videos": httpx.Response(200, json=VIDEOS),
        }
    )
    source = HttpExperienceSource("http://experiences.test/", transport=transport)

    assert await source.list_places() == PLACES
    assert await source.list_videos() == VIDEOS


@pytest.mark.asyncio
async def test_http_source_error_status_raises():
    source = HttpExperienceSource("http://experiences.test", transport=_transport({}))
    with pytest.raises(ExperienceSourceError, match="404"):
        await source.list_places()


@pytest.mark.asyncio
async def test_http_source_rejects_non_list_payload():
    transport = _transport({"/api/experiences": httpx.Response(200, json={"items": []})})
    source = HttpExperienceSource("http://experiences.test", transport=transport)
    with pytest.raises(ExperienceSourceError, match="JSON array"):
        await source.list_places()


@pytest.mark.asyncio
async def test_http_source_invalid_json_raises():
    transport = _transport({"/api/videos": httpx.Response(200, content=b"not json")})
    source = HttpExperienceSource("http://experiences.test", transport=transport)
    with pytest.raises(ExperienceSourceError, match="Invalid JSON"):
        await source.list_videos()


@pytest.mark.asyncio
async def test_http_source_connection_error_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    source = HttpExperienceSource("http://experiences.test", transport=httpx.MockTransport(handler))
    with pytest.raises(ExperienceSourceError, match="Could not reach"):
        await source.list_places()


def test_http_source_requires_base_url():
    with pytest.raises(ValueError):
        HttpExperienceSource("")

