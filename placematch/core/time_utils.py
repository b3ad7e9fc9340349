"""
Time-of-day bucketing and temporal compatibility between places.
"""

from collections.abc import Sequence
from datetime import datetime, timedelta, timezone

from placematch.core.schemas import Place

# Two places belong to the same outing when their starts are this close
TIME_WINDOW = timedelta(hours=24)

ANYTIME = "Anytime"


def _epoch_seconds(moment: datetime) -> float:
    # Naive values are read as UTC so naive and aware starts can be compared
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.timestamp()


def are_temporally_compatible(place1: Place, place2: Place) -> bool:
    """
    Check whether two places fit in the same outing window.

    Places without a start time are compatible with everything.
    """
    if place1.start_time is None or place2.start_time is None:
        return True

    diff = abs(_epoch_seconds(place1.start_time) - _epoch_seconds(place2.start_time))
    return diff <= TIME_WINDOW.total_seconds()


def time_slot_for_hour(hour: int) -> str:
    """Map an hour of day (0-23) to Morning, Afternoon, Evening or Night."""
    if hour < 12:
        return "Morning"
    elif hour < 17:
        return "Afternoon"
    elif hour < 21:
        return "Evening"
    return "Night"


def cluster_time_slot(places: Sequence[Place]) -> str:
    """
    Derive the time slot of a group of places from their mean start time.

    The mean is rendered back in the zone of the first timed place, so the
    hour reflects local wall-clock time. Returns "Anytime" when no place has
    a start time.
    """
    timed = [p.start_time for p in places if p.start_time is not None]
    if not timed:
        return ANYTIME

    mean_epoch = sum(_epoch_seconds(t) for t in timed) / len(timed)
    mean_time = datetime.fromtimestamp(mean_epoch, tz=timezone.utc)

    reference_zone = timed[0].tzinfo
    if reference_zone is not None:
        mean_time = mean_time.astimezone(reference_zone)

    return time_slot_for_hour(mean_time.hour)


def time_of_day_bucket(hour: int) -> str:
    """
    Bucket an hour for video text matching.

    morning 6-12, afternoon 12-18, evening 18-24, night 0-6.
    """
    if 6 <= hour < 12:
        return "morning"
    elif 12 <= hour < 18:
        return "afternoon"
    elif hour >= 18:
        return "evening"
    return "night"
