"""Batch import of raw image mappings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from ..cache.item_store import ManagedContext
from ..errors import DuplicatedBatchError
from .gateway import find_image_item, insert_image_item
from .validation import parse_image_data

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportResult:
    """Outcome reported to the caller of a batch import."""

    success: bool
    inserted: int
    error: Optional[Exception] = None


def import_batch(context: ManagedContext, records: Iterable[Mapping[str, Any]]) -> ImportResult:
    """Insert the valid entries of *records* into *context* without saving.

    Invalid entries are skipped silently.  Only the first valid entry is
    checked against the store: if its identifier already exists the whole
    batch is treated as a repeated page and nothing is inserted.  Later
    entries are inserted without any duplicate check.
    """

    batch_checked = False
    inserted = 0
    skipped = 0
    for data in records:
        parsed = parse_image_data(data)
        if parsed.record is None:
            skipped += 1
            logger.debug("Skipping image data: %s", parsed.reason)
            continue

        record = parsed.record
        if not batch_checked:
            if find_image_item(record.identifier, context) is not None:
                logger.info("Batch starting with %s was already imported", record.identifier)
                context.rollback()
                return ImportResult(False, inserted, DuplicatedBatchError(record.identifier))
            batch_checked = True

        insert_image_item(record, context)
        inserted += 1

    if skipped:
        logger.info("Skipped %d invalid image entries", skipped)
    return ImportResult(True, inserted)
