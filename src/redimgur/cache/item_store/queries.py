"""Fetch requests and the SQL built from them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from .migrations import TABLE_NAME

_COLUMNS = "pk, identifier, title, datetime, views, link"


@dataclass(frozen=True)
class FetchRequest:
    """Describe which image items to fetch and in which order.

    ``None`` filters match everything.  ``newest_first`` orders by
    ``datetime`` descending with ``identifier`` as the tiebreaker.
    """

    identifier: Optional[str] = None
    object_ids: Optional[Tuple[int, ...]] = None
    newest_first: bool = False
    limit: Optional[int] = None

    @classmethod
    def feed(cls) -> "FetchRequest":
        return cls(newest_first=True)

    @classmethod
    def by_identifier(cls, identifier: str) -> "FetchRequest":
        return cls(identifier=identifier)

    @classmethod
    def by_object_ids(cls, object_ids: Sequence[int]) -> "FetchRequest":
        return cls(object_ids=tuple(object_ids))

    def matches(self, item) -> bool:
        """Evaluate the filters against an in-memory item."""

        if self.identifier is not None and item.identifier != self.identifier:
            return False
        if self.object_ids is not None and item.object_id not in self.object_ids:
            return False
        return True


def build_select(request: FetchRequest) -> Tuple[str, List[Any]]:
    """Return the ``SELECT`` statement and parameters for *request*."""

    clauses: List[str] = []
    params: List[Any] = []

    if request.identifier is not None:
        clauses.append("identifier = ?")
        params.append(request.identifier)
    if request.object_ids is not None:
        if not request.object_ids:
            clauses.append("0")
        else:
            placeholders = ", ".join("?" for _ in request.object_ids)
            clauses.append(f"pk IN ({placeholders})")
            params.extend(request.object_ids)

    query = f"SELECT {_COLUMNS} FROM {TABLE_NAME}"
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    if request.newest_first:
        query += " ORDER BY datetime DESC, identifier ASC"
    else:
        query += " ORDER BY pk ASC"
    if request.limit is not None:
        query += " LIMIT ?"
        params.append(int(request.limit))
    return query, params


INSERT_ITEM = (
    f"INSERT INTO {TABLE_NAME} (identifier, title, datetime, views, link) "
    "VALUES (?, ?, ?, ?, ?)"
)
SELECT_ALL_IDS = f"SELECT pk FROM {TABLE_NAME}"
DELETE_ALL = f"DELETE FROM {TABLE_NAME}"
COUNT_ALL = f"SELECT COUNT(*) FROM {TABLE_NAME}"
