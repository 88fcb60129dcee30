"""Data types persisted by the item store."""

from .image_item import ChangeSet, ImageItem, ImageRecord

__all__ = ["ChangeSet", "ImageItem", "ImageRecord"]
