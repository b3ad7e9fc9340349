"""
Turn ranked clusters into display-ready itineraries.
"""

from collections.abc import Sequence

from placematch.core.schemas import Cluster, Itinerary

HOURS_PER_PLACE = 2


def build_itineraries(clusters: Sequence[Cluster], max_count: int = 5) -> list[Itinerary]:
    """
    Project the first clusters of an already ranked list into itineraries.

    Args:
        clusters: Clusters sorted by recommendation score (not re-sorted here)
        max_count: Maximum number of itineraries to produce

    Returns:
        One itinerary per retained cluster, in input order
    """
    if max_count <= 0:
        return []

    itineraries = []
    for index, cluster in enumerate(clusters[:max_count], start=1):
        category = cluster.dominant_category
        itineraries.append(
            Itinerary(
                id=f"itinerary-{index}",
                title=f"{category} Experience in {cluster.center.city}",
                description=f"Curated {category} experience with {len(cluster.places)} locations",
                places=list(cluster.places),
                center=cluster.center,
                time_slot=cluster.time_slot,
                recommendation_score=cluster.recommendation_score,
                estimated_duration=HOURS_PER_PLACE * len(cluster.places),
                total_cost=sum(place.price for place in cluster.places),
            )
        )

    return itineraries
