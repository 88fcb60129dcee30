"""Parse and validate raw image mappings coming from the feed fetcher."""

from __future__ import annotations

import math
from dataclasses import dataclass
from numbers import Integral, Real
from typing import Any, Mapping, Optional

from ..config import ACCEPTED_IMAGE_TYPES, JSONKey
from ..errors import InvalidImageDataError
from ..models.image_item import ImageRecord


@dataclass(frozen=True)
class ParseResult:
    """Outcome of :func:`parse_image_data`."""

    record: Optional[ImageRecord] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.record is not None


def _is_number(value: object) -> bool:
    if not isinstance(value, Real) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


# SQLite stores integers as signed 64-bit values.
_MIN_INTEGER = -(2**63)
_MAX_INTEGER = 2**63 - 1


def _is_integer(value: object) -> bool:
    if not isinstance(value, Integral) or isinstance(value, bool):
        return False
    return _MIN_INTEGER <= value <= _MAX_INTEGER


def parse_image_data(data: Mapping[str, Any]) -> ParseResult:
    """Turn *data* into an :class:`ImageRecord` or explain why it was rejected."""

    if not isinstance(data, Mapping):
        return ParseResult(reason=f"expected a mapping, got {type(data).__name__}")
    for key in (JSONKey.title, JSONKey.id, JSONKey.link, JSONKey.type):
        if not isinstance(data.get(key), str):
            return ParseResult(reason=f"{key!r} missing or not a string")
    if not _is_number(data.get(JSONKey.datetime)):
        return ParseResult(reason="'datetime' missing or not a number")
    if not _is_integer(data.get(JSONKey.views)):
        return ParseResult(reason="'views' missing or not an integer")

    mime = data[JSONKey.type]
    if mime not in ACCEPTED_IMAGE_TYPES:
        return ParseResult(reason=f"unsupported type {mime!r}")

    record = ImageRecord(
        identifier=data[JSONKey.id],
        title=data[JSONKey.title],
        datetime=float(data[JSONKey.datetime]),
        views=int(data[JSONKey.views]),
        link=data[JSONKey.link],
        type=mime,
    )
    return ParseResult(record=record)


def check_if_valid_image_data(data: Mapping[str, Any]) -> bool:
    """Return ``True`` when *data* describes a storable JPEG or PNG item."""

    return parse_image_data(data).ok


def coerce_image_data(data: Mapping[str, Any]) -> ImageRecord:
    """Build a record from *data* without validating the optional fields.

    String attributes that are absent or mistyped become ``None``.  The
    numeric attributes are required and raise :class:`InvalidImageDataError`.
    """

    def _optional_str(key: str) -> Optional[str]:
        value = data.get(key)
        return value if isinstance(value, str) else None

    datetime_value = data.get(JSONKey.datetime)
    if not _is_number(datetime_value):
        raise InvalidImageDataError(f"'datetime' is required, got {datetime_value!r}")
    views_value = data.get(JSONKey.views)
    if not _is_integer(views_value):
        raise InvalidImageDataError(f"'views' is required, got {views_value!r}")

    return ImageRecord(
        identifier=_optional_str(JSONKey.id),  # type: ignore[arg-type]
        title=_optional_str(JSONKey.title),
        datetime=float(datetime_value),
        views=int(views_value),
        link=_optional_str(JSONKey.link),
        type=_optional_str(JSONKey.type),
    )
