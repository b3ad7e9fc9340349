"""
Content-similarity matching of short videos to events that lack their own.

Scores are additive and uncapped:
    +40  event category is one of the video's tags
    +15  per shared tag (case-insensitive)
    +25  event city appears in the video location
    +10  per shared keyword from title and description
    +20  event and video have the same activity type
    +10  video text mentions the event's time of day
"""

import logging
from collections.abc import Iterable, Sequence

from placematch.core.activity_types import (
    CONTEXTUAL_TEMPLATES,
    DEFAULT_ACTIVITY_TYPE,
    TIME_OF_DAY_KEYWORDS,
    extract_keywords,
    get_event_type,
    get_video_type,
)
from placematch.core.schemas import Place, RecommendationMatch, Video
from placematch.core.time_utils import time_of_day_bucket

logger = logging.getLogger(__name__)

CATEGORY_WEIGHT = 40
TAG_OVERLAP_WEIGHT = 15
CITY_WEIGHT = 25
KEYWORD_WEIGHT = 10
ACTIVITY_TYPE_WEIGHT = 20
TIME_OF_DAY_WEIGHT = 10

# A video must score strictly above this to count as a genuine match
RELEVANCE_THRESHOLD = 20


def _category_in_tags(event: Place, video: Video) -> bool:
    return bool(event.category) and event.category in video.tags


def _same_city(event: Place, video: Video) -> bool:
    return bool(event.city) and event.city.lower() in video.location.lower()


def is_time_of_day_match(event: Place, video: Video) -> bool:
    """Check whether the video text mentions the time of day the event starts."""
    if event.start_time is None:
        return False

    bucket = time_of_day_bucket(event.start_time.hour)
    title = video.title.lower()
    description = video.description.lower()

    return any(word in title or word in description for word in TIME_OF_DAY_KEYWORDS[bucket])


def calculate_video_similarity(event: Place, video: Video) -> float:
    """
    Score how related a video is to an event.

    Args:
        event: The event looking for videos
        video: Candidate video

    Returns:
        Non-negative additive score (see module docstring for weights)
    """
    score = 0

    # Category matching (highest weight)
    if _category_in_tags(event, video):
        score += CATEGORY_WEIGHT

    # Tag overlap
    event_tags = {tag.lower() for tag in event.tags}
    video_tags = {tag.lower() for tag in video.tags}
    score += TAG_OVERLAP_WEIGHT * len(event_tags & video_tags)

    # Location similarity
    if _same_city(event, video):
        score += CITY_WEIGHT

    # Title/description keyword matching
    event_keywords = set(extract_keywords(f"{event.title} {event.description}"))
    video_keywords = set(extract_keywords(f"{video.title} {video.description}"))
    score += KEYWORD_WEIGHT * len(event_keywords & video_keywords)

    if get_event_type(event) == get_video_type(video):
        score += ACTIVITY_TYPE_WEIGHT

    if is_time_of_day_match(event, video):
        score += TIME_OF_DAY_WEIGHT

    return float(score)


def get_fallback_videos(
    event: Place,
    videos: Sequence[Video],
    count: int,
    exclude: Iterable[Video] = (),
) -> list[Video]:
    """
    Pick filler videos when too few pass the relevance threshold.

    Videos of the event's activity type come first (pool order), then the
    most viewed of the rest. Videos are told apart by id; an id already in
    `exclude` or already picked is never picked again.

    Args:
        event: The event looking for videos
        videos: Full video pool
        count: Number of videos wanted
        exclude: Videos already selected

    Returns:
        Up to `count` videos with distinct ids, fewer only when the pool runs out
    """
    if count <= 0:
        return []

    event_type = get_event_type(event)
    taken = {video.id for video in exclude}
    chosen: list[Video] = []

    def take(candidates: Iterable[Video], same_type_only: bool) -> None:
        for video in candidates:
            if len(chosen) >= count:
                return
            if video.id in taken:
                continue
            if same_type_only and get_video_type(video) != event_type:
                continue
            chosen.append(video)
            taken.add(video.id)

    take(videos, same_type_only=True)
    if len(chosen) < count:
        by_popularity = sorted(videos, key=lambda v: v.view_count, reverse=True)
        take(by_popularity, same_type_only=False)

    return chosen


def get_recommendation_reason(event: Place, video: Video) -> str:
    """Short human-readable explanation of why a video was proposed."""
    event_type = get_event_type(event)
    if event_type == get_video_type(video):
        return f"Similar {event_type} experience"

    if _category_in_tags(event, video):
        return f"Matches {event.category} category"

    if _same_city(event, video):
        return "From the same area"

    video_title_keywords = set(extract_keywords(video.title))
    shared: list[str] = []
    for keyword in extract_keywords(event.title):
        if keyword in video_title_keywords and keyword not in shared:
            shared.append(keyword)

    if shared:
        return f"Similar keywords: {', '.join(shared[:2])}"

    return "Popular related content"


def _to_match(event: Place, video: Video, score: float) -> RecommendationMatch:
    return RecommendationMatch(
        **video.model_dump(include=set(Video.model_fields)),
        similarity_score=score,
        is_recommended=True,
        recommendation_reason=get_recommendation_reason(event, video),
    )


def find_matches(
    event: Place, videos: Sequence[Video], max_videos: int = 3
) -> list[RecommendationMatch]:
    """
    Find the videos most related to an event.

    Every video is scored; those above RELEVANCE_THRESHOLD are taken best
    first (ties keep pool order). If fewer than `max_videos` qualify, the
    rest is filled by get_fallback_videos, so the result always holds
    min(max_videos, distinct ids in the pool) matches, with no id repeated.

    Args:
        event: The event looking for videos
        videos: Video pool (not modified)
        max_videos: Maximum number of matches

    Returns:
        New RecommendationMatch objects
    """
    if max_videos <= 0 or not videos:
        return []

    scored = [(video, calculate_video_similarity(event, video)) for video in videos]
    scored.sort(key=lambda item: item[1], reverse=True)

    selected: list[tuple[Video, float]] = []
    seen: set[str] = set()
    for video, score in scored:
        if len(selected) >= max_videos or score <= RELEVANCE_THRESHOLD:
            break
        if video.id not in seen:
            selected.append((video, score))
            seen.add(video.id)

    if len(selected) < max_videos:
        fallback = get_fallback_videos(
            event,
            videos,
            max_videos - len(selected),
            exclude=[video for video, _ in selected],
        )
        logger.debug(
            f"Event {event.id}: {len(selected)} relevant videos, {len(fallback)} fallback"
        )
        selected.extend((video, calculate_video_similarity(event, video)) for video in fallback)

    return [_to_match(event, video, score) for video, score in selected]


def generate_contextual_video_titles(
    event: Place, matches: Sequence[RecommendationMatch]
) -> list[RecommendationMatch]:
    """
    Rewrite match titles and descriptions so they reference the event.

    Used for events with no videos of their own. Returns copies flagged
    is_contextual; the given matches are left untouched.
    """
    event_type = get_event_type(event)
    title_template, description_template = CONTEXTUAL_TEMPLATES.get(
        event_type, CONTEXTUAL_TEMPLATES[DEFAULT_ACTIVITY_TYPE]
    )

    return [
        match.model_copy(
            update={
                "title": title_template.format(title=event.title, n=n),
                "description": description_template.format(title=event.title),
                "is_contextual": True,
            }
        )
        for n, match in enumerate(matches, start=1)
    ]
