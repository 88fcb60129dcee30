"""List model presenting stored image items newest first."""

from __future__ import annotations

import bisect
import logging
import sqlite3
from typing import Dict, List, Optional

from PySide6.QtCore import QAbstractListModel, QModelIndex, QObject, Qt, Slot

from ...cache.item_store import FetchRequest, ViewContext
from ...models.image_item import ChangeSet, ImageItem
from .roles import Roles, role_names

logger = logging.getLogger(__name__)

_DISPLAY_ROLE = int(Qt.ItemDataRole.DisplayRole)
_TOOLTIP_ROLE = int(Qt.ItemDataRole.ToolTipRole)
# Keeps object id lookups below SQLite's host parameter limit.
FETCH_CHUNK_SIZE = 500


class FeedListModel(QAbstractListModel):
    """Live, sorted view over the view context.

    The initial fetch runs in the constructor.  Afterwards the model follows
    the view context: merged commits are applied as row insertions and
    removals at their sorted positions, and a context reset triggers a full
    model reset.  Views subscribe through the usual ``rowsInserted``,
    ``rowsRemoved`` and ``modelReset`` signals.
    """

    def __init__(self, context: ViewContext, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._context = context
        self._request = FetchRequest.feed()
        self._rows: List[ImageItem] = []

        self.perform_fetch()

        context.signals.objectsDidChange.connect(self._on_objects_did_change)
        context.signals.didReset.connect(self._on_context_reset)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def perform_fetch(self) -> bool:
        """Replace the rows with a fresh fetch; ``False`` if the fetch failed."""

        try:
            rows = self._context.fetch(self._request)
        except sqlite3.Error as exc:
            logger.error("Error fetching image items: %s", exc)
            rows = []
            ok = False
        else:
            ok = True

        self.beginResetModel()
        self._rows = rows
        self.endResetModel()
        return ok

    def refresh(self) -> bool:
        return self.perform_fetch()

    def snapshot(self) -> List[ImageItem]:
        """Return the current rows in display order."""

        return list(self._rows)

    def item_at(self, row: int) -> Optional[ImageItem]:
        if not (0 <= row < len(self._rows)):
            return None
        return self._rows[row]

    def row_for_identifier(self, identifier: str) -> Optional[int]:
        for row, item in enumerate(self._rows):
            if item.identifier == identifier:
                return row
        return None

    # ------------------------------------------------------------------
    # Qt model implementation
    # ------------------------------------------------------------------
    def rowCount(self, parent: QModelIndex | None = None) -> int:  # type: ignore[override]
        if parent is not None and parent.isValid():
            return 0
        return len(self._rows)

    def data(self, index: QModelIndex, role: int = Qt.ItemDataRole.DisplayRole):  # type: ignore[override]
        if not index.isValid() or not (0 <= index.row() < len(self._rows)):
            return None
        item = self._rows[index.row()]
        role = int(role)
        if role == _DISPLAY_ROLE:
            return item.title if item.title is not None else item.identifier
        if role == _TOOLTIP_ROLE:
            return item.link
        if role == Roles.IDENTIFIER:
            return item.identifier
        if role == Roles.TITLE:
            return item.title
        if role == Roles.DATETIME:
            return item.datetime
        if role == Roles.VIEWS:
            return item.views
        if role == Roles.LINK:
            return item.link
        if role == Roles.OBJECT_ID:
            return item.object_id
        return None

    def roleNames(self) -> Dict[int, bytes]:  # type: ignore[override]
        return role_names(super().roleNames())

    # ------------------------------------------------------------------
    # View context callbacks
    # ------------------------------------------------------------------
    @Slot(object)
    def _on_objects_did_change(self, change_set: ChangeSet) -> None:
        if change_set.deleted:
            self._remove_objects(set(change_set.deleted))
        if change_set.inserted:
            self._insert_objects(change_set.inserted)

    @Slot()
    def _on_context_reset(self) -> None:
        self.perform_fetch()

    def _remove_objects(self, object_ids: set) -> None:
        # Walk backwards so earlier row numbers stay valid while removing.
        row = len(self._rows) - 1
        while row >= 0:
            if self._rows[row].object_id not in object_ids:
                row -= 1
                continue
            end = row
            while row > 0 and self._rows[row - 1].object_id in object_ids:
                row -= 1
            self.beginRemoveRows(QModelIndex(), row, end)
            del self._rows[row : end + 1]
            self.endRemoveRows()
            row -= 1

    def _insert_objects(self, object_ids) -> None:
        known = {item.object_id for item in self._rows}
        missing = [object_id for object_id in object_ids if object_id not in known]
        if not missing:
            return
        items: List[ImageItem] = []
        try:
            for start in range(0, len(missing), FETCH_CHUNK_SIZE):
                chunk = missing[start : start + FETCH_CHUNK_SIZE]
                items.extend(self._context.fetch(FetchRequest.by_object_ids(chunk)))
        except sqlite3.Error as exc:
            logger.error("Error fetching inserted image items: %s", exc)
            return

        keys = [item.sort_key() for item in self._rows]
        for item in sorted(items, key=ImageItem.sort_key):
            key = item.sort_key()
            position = bisect.bisect_right(keys, key)
            self.beginInsertRows(QModelIndex(), position, position)
            self._rows.insert(position, item)
            keys.insert(position, key)
            self.endInsertRows()
