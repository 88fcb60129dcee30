"""Read/write sessions against the item store.

A context owns one SQLite connection, a list of pending inserts and a cache of
the items it has handed out.  Every public method runs under the context's
lock, so operations on one context never interleave.  Items are only valid in
the context that produced them; other contexts learn about changes through
:class:`~redimgur.models.image_item.ChangeSet` object ids.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, TypeVar

from PySide6.QtCore import QObject, Qt, Signal, Slot

from ...models.image_item import ChangeSet, ImageItem, ImageRecord
from .queries import COUNT_ALL, DELETE_ALL, INSERT_ITEM, SELECT_ALL_IDS, FetchRequest, build_select

if TYPE_CHECKING:  # pragma: no cover - import only for type checking
    from .store import ItemStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ManagedContext:
    """Short-lived read/write session used by background work."""

    def __init__(
        self,
        store: "ItemStore",
        connection: Optional[sqlite3.Connection],
        *,
        name: str,
        release: Optional[Callable[[sqlite3.Connection], None]] = None,
    ) -> None:
        self._store = store
        self._conn = connection
        self._release = release
        self._lock = threading.RLock()
        self._pending: List[ImageItem] = []
        self._registered: Dict[int, ImageItem] = {}
        self.name = name
        self.automatically_merges_changes = True

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r} pending={len(self._pending)}>"

    def __enter__(self) -> "ManagedContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def store(self) -> "ItemStore":
        return self._store

    @property
    def is_usable(self) -> bool:
        """``False`` when the context has no connection (inert store or closed)."""

        return self._conn is not None

    @property
    def has_changes(self) -> bool:
        with self._lock:
            return bool(self._pending)

    def inserted_objects(self) -> List[ImageItem]:
        with self._lock:
            return list(self._pending)

    def registered_objects(self) -> List[ImageItem]:
        with self._lock:
            return list(self._registered.values())

    def perform_and_wait(self, block: Callable[[], T]) -> T:
        """Run *block* while holding the context lock and return its result."""

        with self._lock:
            return block()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def fetch(self, request: FetchRequest) -> List[ImageItem]:
        """Return stored items matching *request* plus matching pending inserts.

        Raises:
            sqlite3.Error: If the query fails
        """

        with self._lock:
            items: List[ImageItem] = []
            if self._conn is not None:
                query, params = build_select(request)
                for row in self._conn.execute(query, params):
                    items.append(self._register(ImageItem.from_row(row)))
            items.extend(item for item in self._pending if request.matches(item))
            if request.newest_first:
                items.sort(key=ImageItem.sort_key)
            if request.limit is not None:
                items = items[: request.limit]
            return items

    def count(self) -> int:
        with self._lock:
            stored = 0
            if self._conn is not None:
                stored = self._conn.execute(COUNT_ALL).fetchone()[0]
            return stored + len(self._pending)

    def object_with_id(self, object_id: int) -> Optional[ImageItem]:
        """Return the item for *object_id*, from the cache when registered."""

        with self._lock:
            cached = self._registered.get(object_id)
            if cached is not None:
                return cached
            results = self.fetch(FetchRequest.by_object_ids([object_id]))
            return results[0] if results else None

    def _register(self, item: ImageItem) -> ImageItem:
        assert item.object_id is not None
        existing = self._registered.get(item.object_id)
        if existing is not None:
            return existing
        self._registered[item.object_id] = item
        return item

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def insert_object(self, record: ImageRecord) -> ImageItem:
        """Create a pending item from *record*; it is stored on :meth:`save`."""

        item = ImageItem.from_record(record)
        with self._lock:
            self._pending.append(item)
        return item

    def save(self) -> ChangeSet:
        """Commit pending inserts in one transaction and notify the store.

        Raises:
            sqlite3.Error: If the commit fails; pending inserts are kept and
                the transaction is rolled back, as for any other error
        """

        with self._lock:
            if not self._pending:
                return ChangeSet()
            if self._conn is None:
                logger.error(
                    "Dropping %d pending items in %s: store is not loaded",
                    len(self._pending),
                    self.name,
                )
                self._pending.clear()
                return ChangeSet()

            conn = self._conn
            inserted: List[int] = []
            conn.execute("BEGIN IMMEDIATE")
            try:
                for item in self._pending:
                    cursor = conn.execute(
                        INSERT_ITEM,
                        (item.identifier, item.title, item.datetime, item.views, item.link),
                    )
                    inserted.append(int(cursor.lastrowid))
                conn.execute("COMMIT")
            except BaseException:
                if conn.in_transaction:
                    conn.rollback()
                raise

            for item, object_id in zip(self._pending, inserted):
                item.object_id = object_id
                self._registered[object_id] = item
            self._pending.clear()
            change_set = ChangeSet(inserted=tuple(inserted))

        logger.debug("%s saved %d items", self.name, len(change_set.inserted))
        self._store.notify_did_save(self, change_set)
        return change_set

    def execute_delete_all(self) -> ChangeSet:
        """Delete every stored item directly in the database.

        Like a batch request this bypasses the context: registered items of
        other contexts stay cached until those contexts are reset or merge the
        returned change set.

        Raises:
            sqlite3.Error: If the delete fails
        """

        with self._lock:
            if self._conn is None:
                raise sqlite3.OperationalError("store is not loaded")
            conn = self._conn
            conn.execute("BEGIN IMMEDIATE")
            try:
                deleted = tuple(int(row[0]) for row in conn.execute(SELECT_ALL_IDS))
                conn.execute(DELETE_ALL)
                conn.execute("COMMIT")
            except BaseException:
                if conn.in_transaction:
                    conn.rollback()
                raise
            change_set = ChangeSet(deleted=deleted)

        logger.info("Deleted %d image items", len(deleted))
        self._store.notify_did_save(self, change_set)
        return change_set

    def rollback(self) -> None:
        """Discard pending inserts."""

        with self._lock:
            self._pending.clear()

    def reset(self) -> None:
        """Discard pending inserts and forget every registered item."""

        with self._lock:
            self._pending.clear()
            self._registered.clear()

    def merge_changes(self, change_set: ChangeSet, *, from_self: bool = False) -> None:
        """Forget registered items that *change_set* deleted."""

        with self._lock:
            for object_id in change_set.deleted:
                self._registered.pop(object_id, None)

    def close(self) -> None:
        """Drop unsaved work and hand the connection back."""

        with self._lock:
            self._pending.clear()
            self._registered.clear()
            conn, self._conn = self._conn, None
        if conn is not None and self._release is not None:
            self._release(conn)


class ViewContextSignals(QObject):
    """Signals emitted by :class:`ViewContext` on the GUI thread."""

    objectsDidChange = Signal(object)
    """Emitted with the merged :class:`ChangeSet` after another commit."""

    didReset = Signal()
    """Emitted after :meth:`ViewContext.reset` dropped every cached item."""

    _invoke = Signal(object)

    def __init__(self, context: "ViewContext", parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._context = context
        self._invoke.connect(self._run, Qt.ConnectionType.QueuedConnection)

    @Slot(object)
    def _run(self, block: Callable[[], object]) -> None:
        try:
            block()
        except Exception:
            logger.exception("Block queued on the view context failed")

    @Slot(object, object)
    def _on_did_save(self, origin: ManagedContext, change_set: ChangeSet) -> None:
        self._context.merge_changes(change_set, from_self=origin is self._context)


class ViewContext(ManagedContext):
    """Long-lived context bound to the GUI thread.

    Blocks passed to :meth:`perform` run later on the GUI thread, in the order
    they were queued.  Commits of other contexts are merged on that thread too.
    """

    def __init__(
        self,
        store: "ItemStore",
        connection: Optional[sqlite3.Connection],
        *,
        name: str = "view",
        release: Optional[Callable[[sqlite3.Connection], None]] = None,
    ) -> None:
        super().__init__(store, connection, name=name, release=release)
        self.signals = ViewContextSignals(self)

    def perform(self, block: Callable[[], object]) -> None:
        """Queue *block* to run on the GUI thread."""

        self.signals._invoke.emit(block)

    def merge_changes(self, change_set: ChangeSet, *, from_self: bool = False) -> None:
        if change_set.is_empty():
            return
        if not (from_self or self.automatically_merges_changes):
            return
        super().merge_changes(change_set)
        self.signals.objectsDidChange.emit(change_set)

    def reset(self) -> None:
        super().reset()
        self.signals.didReset.emit()
