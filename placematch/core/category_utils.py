"""
Category and tag similarity between places.
"""

from placematch.core.schemas import Place


def category_similarity(place1: Place, place2: Place) -> float:
    """
    Score how alike two places are by category and tags.

    Returns:
        1.0 when the categories are equal, otherwise the Jaccard index of the
        two tag sets (0.0 when both are empty). Always within [0, 1].
    """
    if place1.category == place2.category:
        return 1.0

    tags1 = set(place1.tags)
    tags2 = set(place2.tags)
    union = tags1 | tags2
    if not union:
        return 0.0

    return len(tags1 & tags2) / len(union)
