"""
Greedy proximity and time clustering of places with pairwise scoring.
"""

import logging
from collections.abc import Sequence
from itertools import combinations

from placematch.core.category_utils import category_similarity
from placematch.core.geo_utils import centroid, place_distance
from placematch.core.schemas import Cluster, ClusterCenter, Place
from placematch.core.time_utils import are_temporally_compatible, cluster_time_slot

logger = logging.getLogger(__name__)

PROXIMITY_THRESHOLD_KM = 2.0
PRICE_DIVERSITY_BONUS = 0.5
MIN_CLUSTER_SIZE = 2


def distance_term(place1: Place, place2: Place) -> float:
    """Closeness in [0, 1]; 0.0 when either place lacks coordinates."""
    distance = place_distance(place1, place2)
    if distance is None:
        return 0.0
    return max(0.0, 1.0 - distance / PROXIMITY_THRESHOLD_KM)


def calculate_recommendation_score(places: Sequence[Place]) -> float:
    """
    Average pairwise score of a group of places.

    Each unordered pair contributes a distance term, a category term, a
    temporal term (1 when compatible) and a price-diversity bonus when one
    place is free and the other paid. The sum is divided by the number of
    pairs. Groups of fewer than two places score 0.
    """
    if len(places) < MIN_CLUSTER_SIZE:
        return 0.0

    total_score = 0.0
    comparisons = 0

    for place1, place2 in combinations(places, 2):
        total_score += distance_term(place1, place2)
        total_score += category_similarity(place1, place2)
        total_score += 1.0 if are_temporally_compatible(place1, place2) else 0.0
        total_score += PRICE_DIVERSITY_BONUS if place1.type != place2.type else 0.0
        comparisons += 1

    return total_score / comparisons


def dominant_category(places: Sequence[Place]) -> str:
    """Most frequent category; ties go to the category seen first."""
    category_counts: dict[str, int] = {}
    for place in places:
        category_counts[place.category] = category_counts.get(place.category, 0) + 1

    # dicts keep insertion order and max() returns the first maximal key
    return max(category_counts, key=category_counts.__getitem__)


def _is_neighbor(seed: Place, candidate: Place) -> bool:
    distance = place_distance(seed, candidate)
    if distance is None:
        return False
    return distance <= PROXIMITY_THRESHOLD_KM and are_temporally_compatible(seed, candidate)


def cluster_places(places: Sequence[Place]) -> list[Cluster]:
    """
    Group places into proximity and time clusters.

    Single greedy pass in input order: each unassigned place seeds a cluster
    and pulls in every later unassigned place within PROXIMITY_THRESHOLD_KM
    of the seed that is temporally compatible with it. Clusters with fewer
    than two members are dropped. Places are identified by id, so a repeated
    id is only ever assigned once.

    Args:
        places: Places to cluster (not modified)

    Returns:
        Clusters sorted by recommendation score, highest first; ties keep
        input order.
    """
    clusters: list[Cluster] = []
    assigned: set[str] = set()

    for seed in places:
        if seed.id in assigned:
            continue

        members = [seed]
        assigned.add(seed.id)

        for candidate in places:
            if candidate.id in assigned:
                continue
            if _is_neighbor(seed, candidate):
                members.append(candidate)
                assigned.add(candidate.id)

        if len(members) < MIN_CLUSTER_SIZE:
            continue

        avg_lat, avg_lng = centroid(members)
        cluster = Cluster(
            center=ClusterCenter(latitude=avg_lat, longitude=avg_lng, city=seed.city),
            places=members,
            dominant_category=dominant_category(members),
            time_slot=cluster_time_slot(members),
            recommendation_score=calculate_recommendation_score(members),
        )
        logger.debug(
            f"Cluster around {seed.id}: {len(members)} places, "
            f"category={cluster.dominant_category}, score={cluster.recommendation_score:.3f}"
        )
        clusters.append(cluster)

    # sorted() is stable, equal scores keep their discovery order
    return sorted(clusters, key=lambda c: c.recommendation_score, reverse=True)
