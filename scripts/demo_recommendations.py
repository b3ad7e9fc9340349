#!/usr/bin/env python3
"""
Run the recommendation pipeline on a small Lisbon sample and print the results.

Usage:
    python scripts/demo_recommendations.py
"""
import json
import os
import sys

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Add the project root to the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from placematch.core.recommendation_service import RecommendationService  # noqa: E402

SAMPLE_PLACES = [
    {
        "id": "cafe",
        "title": "Specialty coffee tasting",
        "city": "Lisbon",
        "category": "food",
        "tags": ["coffee", "cafe"],
        "latitude": 38.7110,
        "longitude": -9.1420,
        "startTime": "09:30",
        "price": 12,
    },
    {
        "id": "market",
        "title": "Time Out Market lunch",
        "city": "Lisbon",
        "category": "food",
        "tags": ["market", "lunch"],
        "latitude": 38.7069,
        "longitude": -9.1459,
        "startTime": "12:30",
        "price": 0,
    },
    {
        "id": "tiles",
        "title": "National Tile Museum",
        "city": "Lisbon",
        "category": "arts",
        "tags": ["museum"],
        "latitude": 38.7246,
        "longitude": -9.1136,
        "startTime": "15:00",
        "price": 5,
    },
    {
        "id": "fado",
        "title": "Fado in Alfama",
        "city": "Lisbon",
        "category": "music",
        "tags": ["music", "bar"],
        "latitude": 38.7114,
        "longitude": -9.1301,
        "startTime": "21:30",
        "price": 30,
    },
    {
        "id": "sintra",
        "title": "Sintra hiking day",
        "city": "Sintra",
        "category": "outdoor",
        "tags": ["hiking", "nature"],
        "latitude": 38.7874,
        "longitude": -9.3906,
    },
]

SAMPLE_VIDEOS = [
    {"id": "v1", "title": "Best coffee in Lisbon", "tags": ["coffee", "food"], "viewCount": 1200},
    {"id": "v2", "title": "Fado night in Alfama", "tags": ["music"], "experienceId": "fado"},
    {"id": "v3", "title": "Sintra palaces", "tags": ["outdoor", "hiking"], "viewCount": 5400},
    {"id": "v4", "title": "Azulejo art walk", "tags": ["art", "museum"], "location": "Lisbon"},
    {"id": "v5", "title": "Street food tour", "tags": ["food"], "viewCount": 800},
]


def print_section(title: str):
    """Print a formatted section header."""
    print("\n" + "=" * 80)
    print(f"  {title}")
    print("=" * 80 + "\n")


def run_demo():
    service = RecommendationService()
    preferences = {"preferredCategories": ["food", "arts"], "preferredPriceRange": "mixed"}

    response = service.recommend(SAMPLE_PLACES, preferences, videos=SAMPLE_VIDEOS)

    print_section(f"Clusters ({response.total_clusters})")
    for cluster in response.clusters:
        names = ", ".join(place.title for place in cluster.places)
        print(
            f"  {cluster.dominant_category:<8} {cluster.time_slot:<10} "
            f"score={cluster.recommendation_score:.2f}  [{names}]"
        )

    print_section(f"Itineraries ({len(response.itineraries)})")
    for itinerary in response.itineraries:
        print(f"  {itinerary.id}: {itinerary.title}")
        print(f"    {itinerary.description}")
        print(f"    ~{itinerary.estimated_duration}h, total cost {itinerary.total_cost:.2f}")

    print_section("Personalized recommendations")
    for place in response.personalized_recommendations:
        print(f"  - {place.title} ({place.category}, {place.type})")

    print_section("Videos per experience")
    for experience in response.experiences or []:
        print(f"  {experience.title}:")
        for video in experience.videos:
            reason = video.recommendation_reason or "own video"
            print(f"    - {video.title}  [{video.similarity_score:.0f}] {reason}")

    print_section("Raw JSON (first itinerary)")
    if response.itineraries:
        print(json.dumps(response.itineraries[0].to_json_dict(), indent=2))
    else:
        print("  No itineraries")


if __name__ == "__main__":
    run_demo()
