"""Exception hierarchy for the gallery store."""

from __future__ import annotations


class RedimgurError(Exception):
    """Base class for all store errors."""


class DuplicatedBatchError(RedimgurError):
    """Raised when a batch starts with an item that is already stored."""

    def __init__(self, identifier: str | None = None) -> None:
        message = "Batch already imported"
        if identifier:
            message = f"Batch already imported (first item {identifier!r} exists)"
        super().__init__(message)
        self.identifier = identifier


class InvalidImageDataError(RedimgurError):
    """Raised when raw image data lacks a required attribute."""


class StoreLoadError(RedimgurError):
    """Describes why the store file could not be opened."""
