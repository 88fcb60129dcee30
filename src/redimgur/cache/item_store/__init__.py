"""Image item storage package.

- `store`: the :class:`ItemStore` handle (file lifecycle, worker pool, saving)
- `context`: read/write sessions; one long-lived view context for the GUI and
  short-lived background contexts for imports and deletes
- `connection_pool`: pooled SQLite connections for background contexts
- `migrations`: schema initialization
- `queries`: fetch requests and SQL construction

Usage:
    store = ItemStore(data_dir)
    with store.new_background_context() as context:
        context.insert_object(record)
        store.save_context(context)
    items = store.view_context.fetch(FetchRequest.feed())
"""
from .context import ManagedContext, ViewContext, ViewContextSignals
from .queries import FetchRequest
from .store import ItemStore, ItemStoreSignals

__all__ = [
    "FetchRequest",
    "ItemStore",
    "ItemStoreSignals",
    "ManagedContext",
    "ViewContext",
    "ViewContextSignals",
]
