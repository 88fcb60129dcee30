"""Custom item data roles of the feed model."""

from __future__ import annotations

from enum import IntEnum
from typing import Dict

from PySide6.QtCore import Qt


class Roles(IntEnum):
    IDENTIFIER = int(Qt.ItemDataRole.UserRole) + 1
    TITLE = int(Qt.ItemDataRole.UserRole) + 2
    DATETIME = int(Qt.ItemDataRole.UserRole) + 3
    VIEWS = int(Qt.ItemDataRole.UserRole) + 4
    LINK = int(Qt.ItemDataRole.UserRole) + 5
    OBJECT_ID = int(Qt.ItemDataRole.UserRole) + 6


def role_names(base: Dict[int, bytes]) -> Dict[int, bytes]:
    """Return *base* extended with the QML names of :class:`Roles`."""

    names = dict(base)
    names.update(
        {
            int(Roles.IDENTIFIER): b"identifier",
            int(Roles.TITLE): b"title",
            int(Roles.DATETIME): b"datetime",
            int(Roles.VIEWS): b"views",
            int(Roles.LINK): b"link",
            int(Roles.OBJECT_ID): b"objectId",
        }
    )
    return names
