"""Value types for stored image items."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class ImageRecord:
    """Validated image data ready to be inserted into a context."""

    identifier: str
    title: Optional[str]
    datetime: float
    views: int
    link: Optional[str]
    type: Optional[str] = None


@dataclass(eq=False)
class ImageItem:
    """An image item registered in a store context.

    ``object_id`` is the store's primary key.  It stays ``None`` while the item
    only exists as a pending insert and is assigned when the owning context
    saves.  Items are only meaningful inside the context that produced them;
    pass ``object_id`` or ``identifier`` to other contexts instead.
    """

    identifier: Optional[str]
    title: Optional[str]
    datetime: float
    views: int
    link: Optional[str]
    object_id: Optional[int] = None

    @classmethod
    def from_record(cls, record: ImageRecord) -> "ImageItem":
        return cls(
            identifier=record.identifier,
            title=record.title,
            datetime=float(record.datetime),
            views=int(record.views),
            link=record.link,
        )

    @classmethod
    def from_row(cls, row: Any) -> "ImageItem":
        return cls(
            identifier=row["identifier"],
            title=row["title"],
            datetime=float(row["datetime"]),
            views=int(row["views"]),
            link=row["link"],
            object_id=int(row["pk"]),
        )

    def sort_key(self) -> Tuple[float, str]:
        """Key ordering items newest first, ties broken by identifier."""

        return (-self.datetime, self.identifier or "")

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.identifier,
            "title": self.title,
            "datetime": self.datetime,
            "views": self.views,
            "link": self.link,
        }


@dataclass(frozen=True)
class ChangeSet:
    """Object ids touched by a single commit."""

    inserted: Tuple[int, ...] = field(default_factory=tuple)
    deleted: Tuple[int, ...] = field(default_factory=tuple)

    def is_empty(self) -> bool:
        return not self.inserted and not self.deleted
