"""Background workers for store writes."""

from .delete_worker import DeleteAllSignals, DeleteAllWorker
from .import_worker import ImportSignals, ImportWorker

__all__ = [
    "DeleteAllSignals",
    "DeleteAllWorker",
    "ImportSignals",
    "ImportWorker",
]
