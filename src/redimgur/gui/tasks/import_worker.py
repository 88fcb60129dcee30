"""Background worker that imports a batch of raw image mappings."""

from __future__ import annotations

import logging
from functools import partial
from typing import Any, Callable, Iterable, List, Mapping, Optional

from PySide6.QtCore import QObject, QRunnable, Signal

from ...cache.item_store import ItemStore
from ...core.importer import ImportResult, import_batch

LOGGER = logging.getLogger(__name__)

ImportCompletion = Callable[[bool, int, Optional[Exception]], None]


class ImportSignals(QObject):
    """Signals emitted by :class:`ImportWorker`."""

    finished = Signal(bool, int, object)
    """Emitted on the GUI thread with ``(success, inserted, error)``."""

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)


class ImportWorker(QRunnable):
    """Validate, deduplicate and insert one batch in a background context."""

    def __init__(
        self,
        store: ItemStore,
        records: Iterable[Mapping[str, Any]],
        completion: Optional[ImportCompletion] = None,
    ) -> None:
        super().__init__()
        self.setAutoDelete(True)
        self._store = store
        self._records: List[Mapping[str, Any]] = list(records)
        self._completion = completion
        self.signals = ImportSignals()

    def run(self) -> None:  # type: ignore[override]
        try:
            with self._store.new_background_context() as context:
                result = import_batch(context, self._records)
                if result.success:
                    self._store.save_context(context)
        except Exception as exc:
            LOGGER.exception("Image batch import failed")
            result = ImportResult(False, 0, exc)

        LOGGER.info("Imported %d image items (success=%s)", result.inserted, result.success)
        self._store.view_context.perform(
            partial(_deliver, self.signals, self._completion, result)
        )


def _deliver(
    signals: ImportSignals, completion: Optional[ImportCompletion], result: ImportResult
) -> None:
    signals.finished.emit(result.success, result.inserted, result.error)
    if completion is not None:
        completion(result.success, result.inserted, result.error)


__all__ = ["ImportCompletion", "ImportSignals", "ImportWorker"]
