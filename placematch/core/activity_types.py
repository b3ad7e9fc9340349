"""
Activity-type classification and keyword tables used for video matching.
"""

import re

from placematch.core.schemas import Place, Video

DEFAULT_ACTIVITY_TYPE = "indoor"

# Checked in order; the first matching type wins.
# Events match on their category or on any tag.
EVENT_TYPE_RULES: dict[str, dict[str, frozenset[str]]] = {
    "outdoor": {
        "categories": frozenset({"outdoor"}),
        "tags": frozenset({"hiking", "walking", "park", "nature"}),
    },
    "nightlife": {
        "categories": frozenset({"nightlife"}),
        "tags": frozenset({"bar", "club", "music", "party"}),
    },
    "food": {
        "categories": frozenset({"food"}),
        "tags": frozenset({"restaurant", "cafe", "food", "dining"}),
    },
    "culture": {
        "categories": frozenset({"arts", "culture"}),
        "tags": frozenset({"museum", "gallery", "art", "culture"}),
    },
    "wellness": {
        "categories": frozenset({"wellness"}),
        "tags": frozenset({"yoga", "fitness", "wellness"}),
    },
}

# Videos match on any tag, or on a substring of title/description.
VIDEO_TYPE_RULES: dict[str, dict[str, frozenset[str] | str]] = {
    "outdoor": {
        "tags": frozenset({"outdoor", "hiking", "walking", "park", "nature"}),
        "text": "outdoor",
    },
    "nightlife": {
        "tags": frozenset({"nightlife", "bar", "club", "music", "party"}),
        "text": "night",
    },
    "food": {
        "tags": frozenset({"food", "restaurant", "cafe", "dining"}),
        "text": "food",
    },
    "culture": {
        "tags": frozenset({"art", "museum", "gallery", "culture"}),
        "text": "art",
    },
    "wellness": {
        "tags": frozenset({"wellness", "yoga", "fitness"}),
        "text": "wellness",
    },
}

# Words a video must mention to match an event's time-of-day bucket
TIME_OF_DAY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "morning": ("morning", "breakfast"),
    "afternoon": ("afternoon", "lunch"),
    "evening": ("evening", "dinner"),
    "night": ("night", "late"),
}

# (title, description) templates for contextualized recommendations
CONTEXTUAL_TEMPLATES: dict[str, tuple[str, str]] = {
    "food": (
        "{title} - Food Experience {n}",
        "Discover amazing food experiences like {title}",
    ),
    "outdoor": (
        "{title} - Outdoor Adventure {n}",
        "Explore outdoor activities similar to {title}",
    ),
    "nightlife": (
        "{title} - Nightlife Experience {n}",
        "Experience the nightlife scene like {title}",
    ),
    "culture": (
        "{title} - Cultural Experience {n}",
        "Immerse yourself in culture like {title}",
    ),
    "wellness": (
        "{title} - Wellness Experience {n}",
        "Find your zen with experiences like {title}",
    ),
    DEFAULT_ACTIVITY_TYPE: (
        "{title} - Related Experience {n}",
        "Discover experiences similar to {title}",
    ),
}

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
        "with", "by", "is", "are", "was", "were", "be", "been", "have", "has", "had",
        "do", "does", "did", "will", "would", "could", "should", "may", "might", "can",
        "this", "that", "these", "those", "i", "you", "he", "she", "it", "we", "they",
        "me", "him", "her", "us", "them",
    }
)  # fmt: skip

MAX_KEYWORDS = 10
MIN_KEYWORD_LENGTH = 3

_NON_WORD = re.compile(r"[^\w\s]")


def extract_keywords(text: str) -> list[str]:
    """
    Extract up to MAX_KEYWORDS meaningful words from free text.

    Lowercases, replaces punctuation with spaces, and drops stop words and
    words shorter than MIN_KEYWORD_LENGTH. Order follows the text.
    """
    words = _NON_WORD.sub(" ", text.lower()).split()
    keywords = [w for w in words if len(w) >= MIN_KEYWORD_LENGTH and w not in STOP_WORDS]
    return keywords[:MAX_KEYWORDS]


def get_event_type(place: Place) -> str:
    """
    Classify an event into an activity type from its category and tags.

    Returns:
        One of outdoor, nightlife, food, culture, wellness, indoor
    """
    category = place.category.lower()
    tags = {tag.lower() for tag in place.tags}

    for activity_type, rule in EVENT_TYPE_RULES.items():
        if category in rule["categories"] or tags & rule["tags"]:
            return activity_type

    return DEFAULT_ACTIVITY_TYPE


def get_video_type(video: Video) -> str:
    """
    Classify a video into an activity type from its tags and text.

    Returns:
        One of outdoor, nightlife, food, culture, wellness, indoor
    """
    title = video.title.lower()
    description = video.description.lower()
    tags = {tag.lower() for tag in video.tags}

    for activity_type, rule in VIDEO_TYPE_RULES.items():
        if tags & rule["tags"] or rule["text"] in title or rule["text"] in description:
            return activity_type

    return DEFAULT_ACTIVITY_TYPE
