"""Facade tying the item store, gateway, importer and feed model together."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from PySide6.QtCore import QObject

from .cache.item_store import ItemStore, ManagedContext, ViewContext
from .core.gateway import find_image_item, insert_image_item
from .core.validation import check_if_valid_image_data
from .gui.models.feed_model import FeedListModel
from .gui.tasks.delete_worker import DeleteAllWorker
from .gui.tasks.import_worker import ImportCompletion, ImportWorker
from .models.image_item import ImageItem, ImageRecord
from .utils.logging import get_logger

logger = get_logger()


class DataController:
    """Entry point used by the gallery screens.

    The controller does not own any hidden global state: build one per store
    and pass it to whoever needs it.  Call :meth:`shutdown` before the
    application quits.
    """

    def __init__(
        self,
        store: Optional[ItemStore] = None,
        *,
        directory: str | Path | None = None,
    ) -> None:
        self._store = store if store is not None else ItemStore(directory)

    @property
    def store(self) -> ItemStore:
        return self._store

    @property
    def view_context(self) -> ViewContext:
        return self._store.view_context

    # ------------------------------------------------------------------
    # Data access and modification
    # ------------------------------------------------------------------
    def insert_image_item_data(
        self,
        data: Union[ImageRecord, Mapping[str, Any]],
        context: Optional[ManagedContext] = None,
    ) -> ImageItem:
        """Insert already validated *data* into *context* (default: view context)."""

        return insert_image_item(data, context or self.view_context)

    def find_image_item(
        self, identifier: str, context: Optional[ManagedContext] = None
    ) -> Optional[ImageItem]:
        return find_image_item(identifier, context or self.view_context)

    def create_feed_model(self, parent: QObject | None = None) -> FeedListModel:
        """Return a live model of every item, newest first."""

        return FeedListModel(self.view_context, parent)

    def delete_all_image_items(
        self, completion: Optional[Callable[[bool], None]] = None
    ) -> DeleteAllWorker:
        """Delete every item in the background; *completion* gets the outcome."""

        logger.info("Deleting all image items from %s", self._store.db_path)
        worker = DeleteAllWorker(self._store, completion)
        self._store.start(worker)
        return worker

    # ------------------------------------------------------------------
    # Context access
    # ------------------------------------------------------------------
    def save_context(self, context: Optional[ManagedContext] = None) -> None:
        self._store.save_context(context)

    def shutdown(self) -> None:
        self._store.shutdown()

    # ------------------------------------------------------------------
    # Parsing and validation
    # ------------------------------------------------------------------
    def insert_image_item_data_array(
        self,
        records: Iterable[Mapping[str, Any]],
        completion: Optional[ImportCompletion] = None,
    ) -> ImportWorker:
        """Import *records* in the background.

        *completion* runs on the GUI thread with ``(success, inserted, error)``.
        A batch whose first valid entry is already stored fails with
        :class:`~redimgur.errors.DuplicatedBatchError` and inserts nothing.
        """

        worker = ImportWorker(self._store, records, completion)
        self._store.start(worker)
        return worker

    @staticmethod
    def check_if_valid_image_data(data: Mapping[str, Any]) -> bool:
        return check_if_valid_image_data(data)
