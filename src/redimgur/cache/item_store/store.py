"""Store handle owning the SQLite file, the view context and the worker pool."""

from __future__ import annotations

import itertools
import logging
import sqlite3
from pathlib import Path
from typing import Callable, Optional

from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal, qFatal

from ...config import DEFAULT_POOL_SIZE, MODEL_NAME, STORE_FILE_SUFFIX, default_store_directory
from ...errors import StoreLoadError
from ...models.image_item import ChangeSet
from .connection_pool import ConnectionPool
from .context import ManagedContext, ViewContext
from .migrations import ensure_schema

logger = logging.getLogger(__name__)


class ItemStoreSignals(QObject):
    """Signals emitted by :class:`ItemStore`."""

    didSave = Signal(object, object)
    """Emitted from the committing thread with the origin context and its ``ChangeSet``."""


class _BackgroundTask(QRunnable):
    """Run a block against a fresh background context."""

    def __init__(self, store: "ItemStore", block: Callable[[ManagedContext], None]) -> None:
        super().__init__()
        self.setAutoDelete(True)
        self._store = store
        self._block = block

    def run(self) -> None:  # type: ignore[override]
        with self._store.new_background_context() as context:
            try:
                self._block(context)
            except Exception:
                logger.exception("Background task on %s failed", context.name)


class ItemStore:
    """Open the ``ImgurModel`` store file and hand out contexts.

    Opening never raises.  When the file cannot be opened the failure is
    logged, kept in :attr:`load_error`, and every context created afterwards
    reads as empty and drops writes.
    """

    def __init__(
        self,
        directory: str | Path | None = None,
        *,
        model_name: str = MODEL_NAME,
        pool_size: int = DEFAULT_POOL_SIZE,
    ) -> None:
        self._directory = Path(directory) if directory is not None else default_store_directory()
        self._model_name = model_name
        self._db_path = self._directory / f"{model_name}{STORE_FILE_SUFFIX}"
        self._pool = ConnectionPool(self._db_path, pool_size)
        self._thread_pool = QThreadPool()
        self._thread_pool.setMaxThreadCount(max(1, pool_size))
        self._context_ids = itertools.count(1)
        self._closed = False
        self.load_error: Optional[StoreLoadError] = None
        self.signals = ItemStoreSignals()

        view_connection = self._load_persistent_store()
        self._view_context = ViewContext(self, view_connection, release=_close_connection)
        self.signals.didSave.connect(self._view_context.signals._on_did_save)

    def _load_persistent_store(self) -> Optional[sqlite3.Connection]:
        conn: Optional[sqlite3.Connection] = None
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            conn = self._pool.connect()
            ensure_schema(conn)
        except (OSError, sqlite3.Error, StoreLoadError) as exc:
            if conn is not None:
                conn.close()
            self.load_error = StoreLoadError(str(exc))
            logger.error("Error loading store model %s at %s: %s", self._model_name, self._db_path, exc)
            return None
        logger.info("Loaded store model %s at %s", self._model_name, self._db_path)
        return conn

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------
    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def is_loaded(self) -> bool:
        return self.load_error is None and not self._closed

    @property
    def view_context(self) -> ViewContext:
        """The long-lived context read by the GUI."""

        return self._view_context

    # ------------------------------------------------------------------
    # Contexts and background work
    # ------------------------------------------------------------------
    def new_background_context(self) -> ManagedContext:
        """Return a private context with its own pooled connection.

        Close it (or use it as a context manager) to return the connection.
        """

        name = f"background-{next(self._context_ids)}"
        if not self.is_loaded:
            return ManagedContext(self, None, name=name)
        conn = self._pool.acquire()
        if conn is None:
            logger.error("No connection available for %s", name)
            return ManagedContext(self, None, name=name)
        return ManagedContext(self, conn, name=name, release=self._pool.release)

    def start(self, runnable: QRunnable) -> None:
        """Schedule *runnable* on the store's private thread pool."""

        if self._closed:
            logger.warning("Ignoring %s: store is shut down", type(runnable).__name__)
            return
        self._thread_pool.start(runnable)

    def perform_background_task(self, block: Callable[[ManagedContext], None]) -> None:
        """Run ``block(context)`` on a new background context off the GUI thread."""

        self.start(_BackgroundTask(self, block))

    def wait_for_background_tasks(self, msecs: int = -1) -> bool:
        """Block until queued background work finished; ``False`` on timeout."""

        return self._thread_pool.waitForDone(msecs)

    # ------------------------------------------------------------------
    # Saving
    # ------------------------------------------------------------------
    def save_context(self, context: Optional[ManagedContext] = None) -> None:
        """Commit *context* (the view context by default) if it has changes.

        A failing commit means the store file is unusable.  Any error is
        logged and the process is terminated through ``qFatal``; there is no
        recovery path.
        """

        context = context or self._view_context
        if not context.has_changes:
            return
        try:
            context.save()
        except Exception as exc:
            logger.critical("Failure to save context %s: %s", context.name, exc)
            qFatal(f"Failure to save context: {exc}")

    def notify_did_save(self, origin: ManagedContext, change_set: ChangeSet) -> None:
        """Publish a commit of *origin* to every merging context."""

        if change_set.is_empty():
            return
        self.signals.didSave.emit(origin, change_set)

    def shutdown(self) -> None:
        """Wait for background work and close every connection."""

        if self._closed:
            return
        self._thread_pool.waitForDone()
        self._closed = True
        self._view_context.close()
        self._pool.shutdown()
        logger.info("Closed store model %s", self._model_name)


def _close_connection(conn: sqlite3.Connection) -> None:
    conn.close()
