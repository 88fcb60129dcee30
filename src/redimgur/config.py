"""Static configuration for the gallery store."""

from __future__ import annotations

import os
from pathlib import Path

from PySide6.QtCore import QStandardPaths

MODEL_NAME = "ImgurModel"
STORE_FILE_SUFFIX = ".sqlite"
SCHEMA_VERSION = 1

ACCEPTED_IMAGE_TYPES = frozenset({"image/jpeg", "image/png"})

DEFAULT_POOL_SIZE = 4
CONNECTION_TIMEOUT = 10.0
ACQUIRE_TIMEOUT = 5.0

DATA_DIR_ENV = "REDIMGUR_DATA_DIR"


class JSONKey:
    """Keys of the raw image mappings handed over by the feed fetcher."""

    title = "title"
    id = "id"
    datetime = "datetime"
    views = "views"
    link = "link"
    type = "type"


def default_store_directory() -> Path:
    """Return the directory that holds the store file.

    ``REDIMGUR_DATA_DIR`` wins when set, otherwise Qt's per-application data
    location is used.
    """

    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return Path(override).expanduser()
    location = QStandardPaths.writableLocation(
        QStandardPaths.StandardLocation.AppDataLocation
    )
    if not location:
        return Path.home() / ".redimgur"
    return Path(location)
