"""
Filter and rank places against a user's stated preferences.
"""

from collections.abc import Sequence

from placematch.core.schemas import Place, UserPreferences
from placematch.core.time_utils import time_slot_for_hour

CATEGORY_MATCH_POINTS = 2
PRICE_MATCH_POINTS = 1


def _matches_preferences(place: Place, prefs: UserPreferences) -> bool:
    # Category filter
    if prefs.preferred_categories and place.category not in prefs.preferred_categories:
        return False

    # Price filter ("mixed" keeps everything)
    if prefs.preferred_price_range in ("free", "paid") and place.type != prefs.preferred_price_range:
        return False

    # Time slot filter, only for places that have a start time
    if prefs.preferred_time_slots and place.start_time is not None:
        if time_slot_for_hour(place.start_time.hour) not in prefs.preferred_time_slots:
            return False

    return True


def preference_score(place: Place, prefs: UserPreferences) -> int:
    """Relevance of a place: 2 for a preferred category, 1 for a matching price type."""
    score = 0
    if prefs.preferred_categories and place.category in prefs.preferred_categories:
        score += CATEGORY_MATCH_POINTS
    if prefs.preferred_price_range == place.type:
        score += PRICE_MATCH_POINTS
    return score


def filter_and_rank(places: Sequence[Place], prefs: UserPreferences | None = None) -> list[Place]:
    """
    Keep the places that satisfy the preferences and rank them by relevance.

    Absent constraints do not filter. Ranking is a stable descending sort on
    preference_score, so equally relevant places keep their input order.

    Args:
        places: Candidate places (not modified)
        prefs: User preferences; None means no preferences

    Returns:
        New list of matching places, most relevant first
    """
    if prefs is None:
        prefs = UserPreferences()

    kept = [place for place in places if _matches_preferences(place, prefs)]
    return sorted(kept, key=lambda place: preference_score(place, prefs), reverse=True)
