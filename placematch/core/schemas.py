import re
from datetime import date, datetime, time
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

TimeSlot = Literal["Morning", "Afternoon", "Evening", "Night"]
PriceType = Literal["free", "paid"]
PriceRange = Literal["free", "paid", "mixed"]

_BARE_TIME = re.compile(r"^(\d{1,2}):(\d{2})$")


class CamelModel(BaseModel):
    """Base model: snake_case attributes, camelCase JSON keys, extra keys ignored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def _text_or_empty(value: Any) -> Any:
    return "" if value is None else value


def _identifier(value: Any) -> Any:
    # Upstream stores sometimes hand out numeric ids
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


def _unique_tags(value: Any, lowercase: bool) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple, set)):
        raise ValueError("tags must be a list of strings")
    tags: list[str] = []
    for raw in value:
        tag = str(raw).strip()
        if lowercase:
            tag = tag.lower()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


# =============================================================================
# Input Records
# =============================================================================


class Place(CamelModel):
    """A normalized experience/event record."""

    id: str = Field(..., min_length=1)
    title: str = ""
    description: str = ""
    location: str = ""
    city: str = ""
    category: str = ""
    tags: list[str] = Field(default_factory=list, description="Lowercase keywords")
    latitude: float | None = Field(None, ge=-90.0, le=90.0)
    longitude: float | None = Field(None, ge=-180.0, le=180.0)
    start_time: datetime | None = None
    end_time: datetime | None = None
    price: float = Field(0.0, ge=0.0)
    type: PriceType | None = Field(None, description="Derived from price when omitted")
    external_source: str = "user-created"

    normalize_id = field_validator("id", mode="before")(_identifier)
    normalize_text = field_validator(
        "title", "description", "location", "city", "category", "external_source", mode="before"
    )(_text_or_empty)

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v: Any) -> list[str]:
        return _unique_tags(v, lowercase=True)

    @field_validator("price", mode="before")
    @classmethod
    def normalize_price(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return 0.0
        return v

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_timestamp(cls, v: Any) -> Any:
        """Accept ISO-8601 values; a bare 'HH:MM' is placed on the current date."""
        if v is None:
            return None
        if isinstance(v, str):
            text = v.strip()
            if not text:
                return None
            match = _BARE_TIME.match(text)
            if match:
                return datetime.combine(
                    date.today(), time(int(match.group(1)), int(match.group(2)))
                )
        return v

    @model_validator(mode="after")
    def derive_price_type(self) -> "Place":
        if self.type is None:
            self.type = "free" if self.price == 0 else "paid"
        elif self.type == "free" and self.price != 0:
            raise ValueError(f"free place {self.id!r} must have price 0, got {self.price}")
        return self

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class Video(CamelModel):
    """A short-form video from the shared video pool."""

    id: str = Field(..., min_length=1)
    title: str = ""
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    location: str = ""
    view_count: int = Field(0, ge=0)
    experience_id: str | None = Field(None, description="Experience this video belongs to")
    url: str | None = None
    thumbnail_url: str | None = None
    duration: float | None = None

    normalize_ids = field_validator("id", "experience_id", mode="before")(_identifier)
    normalize_text = field_validator("title", "description", "location", mode="before")(
        _text_or_empty
    )

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v: Any) -> list[str]:
        return _unique_tags(v, lowercase=False)

    @field_validator("view_count", mode="before")
    @classmethod
    def normalize_view_count(cls, v: Any) -> Any:
        return 0 if v is None else v


class UserPreferences(CamelModel):
    """Caller-supplied preferences. Empty lists behave as absent constraints."""

    preferred_categories: list[str] | None = None
    preferred_price_range: PriceRange | None = None
    preferred_time_slots: list[TimeSlot] | None = None
    max_distance: float | None = Field(
        None, ge=0.0, description="Advisory only; not used by filtering"
    )


# =============================================================================
# Derived Results
# =============================================================================


class ClusterCenter(CamelModel):
    latitude: float
    longitude: float
    city: str = ""


class Cluster(CamelModel):
    center: ClusterCenter
    places: list[Place]
    dominant_category: str = Field(..., alias="category")
    time_slot: str
    recommendation_score: float


class Itinerary(CamelModel):
    id: str
    title: str
    description: str
    places: list[Place]
    center: ClusterCenter
    time_slot: str
    recommendation_score: float
    estimated_duration: int = Field(..., description="Hours, two per place")
    total_cost: float


class RecommendationMatch(Video):
    """A video proposed for an event, with its similarity score and reason."""

    similarity_score: float = 0.0
    is_recommended: bool = True
    recommendation_reason: str | None = None
    is_contextual: bool = False


class EnhancedExperience(Place):
    videos: list[RecommendationMatch] = Field(default_factory=list)
    video_count: int = 0
    has_videos: bool = False
    has_recommended_videos: bool = False


class RecommendationResponse(CamelModel):
    clusters: list[Cluster] = Field(default_factory=list)
    itineraries: list[Itinerary] = Field(default_factory=list)
    personalized_recommendations: list[Place] = Field(default_factory=list)
    experiences: list[EnhancedExperience] | None = None
    total_places: int = 0
    total_clusters: int = 0
    rejected_records: int = 0

    def to_json_dict(self) -> dict[str, Any]:
        payload = super().to_json_dict()
        if self.experiences is None:
            payload.pop("experiences")
        return payload


# =============================================================================
# API Request Bodies
# =============================================================================


class RecommendationRequest(CamelModel):
    """
    Body for POST /recommendations.

    Records stay as raw dicts so a single malformed place or video is dropped
    during ingestion instead of failing the whole request.
    """

    places: list[dict[str, Any]] = Field(default_factory=list)
    videos: list[dict[str, Any]] | None = None
    preferences: dict[str, Any] | None = None
    max_itineraries: int | None = Field(None, ge=0)
    max_videos_per_event: int | None = Field(None, ge=0)
