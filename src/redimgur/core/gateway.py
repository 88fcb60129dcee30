"""Insert and look up single image items inside a context."""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Mapping, Optional, Union

from ..cache.item_store import FetchRequest, ManagedContext
from ..models.image_item import ImageItem, ImageRecord
from .validation import coerce_image_data

logger = logging.getLogger(__name__)


def insert_image_item(
    data: Union[ImageRecord, Mapping[str, Any]], context: ManagedContext
) -> ImageItem:
    """Create a pending item in *context*.

    *data* is expected to be valid already.  Raw mappings are coerced: string
    attributes that are missing become ``None`` while missing ``datetime`` or
    ``views`` raise :class:`~redimgur.errors.InvalidImageDataError`.
    """

    record = data if isinstance(data, ImageRecord) else coerce_image_data(data)
    return context.insert_object(record)


def find_image_item(identifier: str, context: ManagedContext) -> Optional[ImageItem]:
    """Return the first item stored under *identifier* or ``None``."""

    try:
        results = context.fetch(FetchRequest(identifier=identifier, limit=1))
    except sqlite3.Error as exc:
        logger.error("Error fetching image item %s: %s", identifier, exc)
        return None
    return results[0] if results else None
