"""Expose Qt models used by the gallery UI."""

from .feed_model import FeedListModel
from .roles import Roles

__all__ = ["FeedListModel", "Roles"]
