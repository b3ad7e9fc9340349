"""
Validation of raw place, video and preference records.

A malformed record is dropped with a warning; a batch always completes.
"""

import json
import logging
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ValidationError

from placematch.core.schemas import Place, UserPreferences, Video

logger = logging.getLogger(__name__)


class InputShapeError(ValueError):
    """A single input record does not have the expected shape."""

    def __init__(self, kind: str, record_id: Any, reason: str):
        self.kind = kind
        self.record_id = record_id
        self.reason = reason
        super().__init__(f"Invalid {kind} record (id={record_id!r}): {reason}")


def _summarize(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(loc) for loc in item["loc"]) or "record"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


def _parse_record(model: type[BaseModel], kind: str, record: Any) -> Any:
    if isinstance(record, model):
        return record
    if not isinstance(record, dict):
        raise InputShapeError(kind, None, f"expected an object, got {type(record).__name__}")

    try:
        return model.model_validate(record)
    except ValidationError as e:
        raise InputShapeError(kind, record.get("id"), _summarize(e)) from e


def parse_place(record: Any) -> Place:
    """Validate one raw place record. Raises InputShapeError when malformed."""
    return _parse_record(Place, "place", record)


def parse_video(record: Any) -> Video:
    """Validate one raw video record. Raises InputShapeError when malformed."""
    return _parse_record(Video, "video", record)


def parse_places(records: Iterable[Any] | None) -> tuple[list[Place], int]:
    """
    Validate a batch of place records.

    Returns:
        (valid places in input order, number of rejected records)
    """
    places: list[Place] = []
    rejected = 0
    for record in records or []:
        try:
            places.append(parse_place(record))
        except InputShapeError as e:
            rejected += 1
            logger.warning(f"Dropping place record: {e}")
    return places, rejected


def parse_videos(records: Iterable[Any] | None) -> tuple[list[Video], int]:
    """
    Validate a batch of video records.

    Returns:
        (valid videos in input order, number of rejected records)
    """
    videos: list[Video] = []
    rejected = 0
    for record in records or []:
        try:
            videos.append(parse_video(record))
        except InputShapeError as e:
            rejected += 1
            logger.warning(f"Dropping video record: {e}")
    return videos, rejected


def parse_preferences(raw: UserPreferences | dict[str, Any] | str | None) -> UserPreferences:
    """
    Build preferences from a model, a dict or a JSON string.

    Anything unusable is logged and replaced by empty preferences.
    """
    if raw is None:
        return UserPreferences()
    if isinstance(raw, UserPreferences):
        return raw

    if isinstance(raw, str):
        if not raw.strip():
            return UserPreferences()
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid preferences format, ignoring: {e}")
            return UserPreferences()

    if not isinstance(raw, dict):
        logger.warning(f"Invalid preferences format, ignoring: got {type(raw).__name__}")
        return UserPreferences()

    try:
        return UserPreferences.model_validate(raw)
    except ValidationError as e:
        logger.warning(f"Invalid preferences, ignoring: {_summarize(e)}")
        return UserPreferences()
