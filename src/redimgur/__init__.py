"""Local persistence for the Redimgur image gallery."""

from .data_controller import DataController
from .errors import DuplicatedBatchError, InvalidImageDataError, RedimgurError, StoreLoadError
from .models.image_item import ImageItem, ImageRecord

__all__ = [
    "DataController",
    "DuplicatedBatchError",
    "ImageItem",
    "ImageRecord",
    "InvalidImageDataError",
    "RedimgurError",
    "StoreLoadError",
]
