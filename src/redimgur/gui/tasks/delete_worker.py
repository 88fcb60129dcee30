"""Background worker that removes every stored image item."""

from __future__ import annotations

import logging
import sqlite3
from functools import partial
from typing import Callable, Optional

from PySide6.QtCore import QObject, QRunnable, Signal

from ...cache.item_store import ItemStore

LOGGER = logging.getLogger(__name__)


class DeleteAllSignals(QObject):
    """Signals emitted by :class:`DeleteAllWorker`."""

    finished = Signal(bool)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)


class DeleteAllWorker(QRunnable):
    """Bulk delete the item table, then reset the view context."""

    def __init__(
        self, store: ItemStore, completion: Optional[Callable[[bool], None]] = None
    ) -> None:
        super().__init__()
        self.setAutoDelete(True)
        self._store = store
        self._completion = completion
        self.signals = DeleteAllSignals()

    def run(self) -> None:  # type: ignore[override]
        view_context = self._store.view_context
        with self._store.new_background_context() as context:
            try:
                context.execute_delete_all()
            except sqlite3.Error as exc:
                LOGGER.error("Error deleting records: %s", exc)
                success = False
            else:
                success = True

        if success:
            view_context.perform(view_context.reset)
        view_context.perform(partial(_deliver, self.signals, self._completion, success))


def _deliver(
    signals: DeleteAllSignals, completion: Optional[Callable[[bool], None]], success: bool
) -> None:
    signals.finished.emit(success)
    if completion is not None:
        completion(success)


__all__ = ["DeleteAllSignals", "DeleteAllWorker"]
