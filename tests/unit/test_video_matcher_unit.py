import pytest

from placematch.core.activity_types import extract_keywords, get_event_type, get_video_type
from placematch.core.schemas import Place, RecommendationMatch, Video
from placematch.core.video_matcher import (
    RELEVANCE_THRESHOLD,
    calculate_video_similarity,
    find_matches,
    generate_contextual_video_titles,
    get_fallback_videos,
    get_recommendation_reason,
    is_time_of_day_match,
)


def _filler(n: int, view_count: int = 0, **fields) -> Video:
    return Video(id=f"filler-{n}", title=f"Clip {n}", tags=["misc"], view_count=view_count, **fields)


@pytest.fixture
def coffee_event() -> Place:
    return Place(id="evt-1", title="Coffee tasting", category="food", tags=["coffee"], city="Lisbon")


@pytest.fixture
def coffee_video() -> Video:
    return Video(id="coffee", title="Morning coffee", tags=["coffee", "food"])


def test_coffee_video_ranks_first_with_two_fallbacks(coffee_event, coffee_video):
    pool = [_filler(n) for n in range(5)] + [coffee_video] + [_filler(n) for n in range(5, 9)]

    matches = find_matches(coffee_event, pool, 3)

    assert len(matches) == 3
    assert matches[0].id == "coffee"
    assert matches[0].similarity_score >= 55
    # Fillers all tie on popularity, so pool order decides
    assert [m.id for m in matches[1:]] == ["filler-0", "filler-1"]
    assert all(isinstance(m, RecommendationMatch) for m in matches)
    assert all(m.is_recommended for m in matches)


def test_similarity_components(coffee_event, coffee_video):
    # category +40, tag "coffee" +15, activity type food +20, keyword "coffee" +10
    assert calculate_video_similarity(coffee_event, coffee_video) == 85.0


def test_city_and_time_of_day_components():
    event = Place(
        id="e", title="Sunset", category="misc", city="Porto", start_time="2026-05-01T19:00:00"
    )
    video = Video(id="v", title="Evening views", location="Porto, Portugal")
    # city +25, "evening" +10, both indoor +20
    assert calculate_video_similarity(event, video) == 55.0
    assert is_time_of_day_match(event, video)


def test_time_of_day_needs_start_time():
    event = Place(id="e", title="Sunset")
    video = Video(id="v", title="Evening views")
    assert not is_time_of_day_match(event, video)


@pytest.mark.parametrize("pool_size, max_videos", [(0, 3), (1, 3), (2, 3), (3, 3), (10, 3), (10, 0)])
def test_find_matches_always_fills_up_to_pool(coffee_event, pool_size, max_videos):
    pool = [_filler(n) for n in range(pool_size)]
    matches = find_matches(coffee_event, pool, max_videos)
    assert len(matches) == min(max_videos, pool_size)
    assert len({m.id for m in matches}) == len(matches)


def test_find_matches_does_not_mutate_pool(coffee_event, coffee_video):
    pool = [coffee_video, _filler(1)]
    snapshot = [v.model_dump() for v in pool]

    matches = find_matches(coffee_event, pool, 2)
    generate_contextual_video_titles(coffee_event, matches)

    assert [v.model_dump() for v in pool] == snapshot
    assert all(type(v) is Video for v in pool)


def test_fallback_prefers_activity_type_then_popularity(coffee_event):
    popular = _filler(1, view_count=900)
    food_video = Video(id="food", title="Street food", view_count=1)
    quiet = _filler(2, view_count=5)
    pool = [quiet, popular, food_video]

    assert [v.id for v in get_fallback_videos(coffee_event, pool, 2)] == ["food", "filler-1"]
    assert [v.id for v in get_fallback_videos(coffee_event, pool, 3, exclude=[food_video])] == [
        "filler-1",
        "filler-2",
    ]
    assert get_fallback_videos(coffee_event, pool, 0) == []


def test_duplicate_video_ids_are_matched_once(coffee_event, coffee_video):
    twin = coffee_video.model_copy()
    pool = [coffee_video, twin, _filler(1), _filler(1), _filler(2)]

    matches = find_matches(coffee_event, pool, 3)

    assert [m.id for m in matches] == ["coffee", "filler-1", "filler-2"]
    assert [v.id for v in get_fallback_videos(coffee_event, pool, 5)] == [
        "coffee",
        "filler-1",
        "filler-2",
    ]


def test_only_scores_above_threshold_are_relevant(coffee_event):
    # Exactly at the threshold: same activity type only
    at_threshold = Video(id="same-type", title="Eat", tags=["dining"])
    assert calculate_video_similarity(coffee_event, at_threshold) == RELEVANCE_THRESHOLD

    popular = _filler(1, view_count=1000)
    matches = find_matches(coffee_event, [popular, at_threshold], 1)
    # Not relevant, so it is picked as a same-type fallback instead
    assert matches[0].id == "same-type"


def test_recommendation_reasons(coffee_event):
    assert get_recommendation_reason(coffee_event, Video(id="v", tags=["cafe"])) == (
        "Similar food experience"
    )
    assert get_recommendation_reason(
        coffee_event, Video(id="v", title="Clip", tags=["food"], location="x")
    ) == ("Similar food experience")

    music_event = Place(
        id="m", title="Jazz concert tonight", category="jazz", tags=["club"], city="Lisbon"
    )
    assert get_recommendation_reason(music_event, Video(id="v", tags=["jazz"])) == (
        "Matches jazz category"
    )
    assert get_recommendation_reason(music_event, Video(id="v", location="Lisbon")) == (
        "From the same area"
    )
    assert get_recommendation_reason(
        music_event, Video(id="v", title="Best jazz concert ever")
    ) == ("Similar keywords: jazz, concert")
    assert get_recommendation_reason(music_event, Video(id="v", title="Cats")) == (
        "Popular related content"
    )


def test_contextual_titles_use_event_type(coffee_event, coffee_video):
    matches = find_matches(coffee_event, [coffee_video, _filler(1)], 2)

    contextual = generate_contextual_video_titles(coffee_event, matches)

    assert [m.title for m in contextual] == [
        "Coffee tasting - Food Experience 1",
        "Coffee tasting - Food Experience 2",
    ]
    assert contextual[0].description == "Discover amazing food experiences like Coffee tasting"
    assert all(m.is_contextual for m in contextual)
    assert not any(m.is_contextual for m in matches)
    assert matches[0].title == "Morning coffee"


def test_contextual_titles_default_to_related_experience():
    event = Place(id="e", title="Pottery class", category="workshop")
    matches = find_matches(event, [_filler(1)], 1)
    assert generate_contextual_video_titles(event, matches)[0].title == (
        "Pottery class - Related Experience 1"
    )


def test_extract_keywords_drops_stop_words_and_short_words():
    assert extract_keywords("The best coffee, in Lisbon! Go at 9am") == [
        "best",
        "coffee",
        "lisbon",
        "9am",
    ]
    assert len(extract_keywords(" ".join(f"word{i}" for i in range(20)))) == 10


def test_activity_types():
    assert get_event_type(Place(id="a", category="outdoor")) == "outdoor"
    assert get_event_type(Place(id="a", category="misc", tags=["museum"])) == "culture"
    assert get_event_type(Place(id="a", category="arts")) == "culture"
    assert get_event_type(Place(id="a", category="misc")) == "indoor"
    # First rule wins
    assert get_event_type(Place(id="a", category="food", tags=["hiking"])) == "outdoor"

    assert get_video_type(Video(id="v", title="Late night tour")) == "nightlife"
    assert get_video_type(Video(id="v", tags=["Yoga"])) == "wellness"
    assert get_video_type(Video(id="v", title="Cats")) == "indoor"
