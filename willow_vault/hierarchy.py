"""Storage hierarchy: category order and table dispatch.

building > room > shelving_unit > shelf > container > item

Every non-building entity points at exactly one parent in the category directly
above it. The rank doubles as the `table_weight` used to order listings.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class Category(str, Enum):
    """The six fixed entity kinds, in hierarchy order"""

    BUILDING = "building"
    ROOM = "room"
    SHELVING_UNIT = "shelving_unit"
    SHELF = "shelf"
    CONTAINER = "container"
    ITEM = "item"

    @property
    def rank(self) -> int:
        """1 for buildings up to 6 for items"""
        return _ORDER.index(self) + 1

    @property
    def table(self) -> str:
        return _TABLES[self]

    @property
    def is_root(self) -> bool:
        return self is Category.BUILDING

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Category"]:
        """Lenient lookup: unknown or blank tags give None"""
        if not value:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


_ORDER: tuple[Category, ...] = (
    Category.BUILDING,
    Category.ROOM,
    Category.SHELVING_UNIT,
    Category.SHELF,
    Category.CONTAINER,
    Category.ITEM,
)

_TABLES: dict[Category, str] = {
    Category.BUILDING: "buildings",
    Category.ROOM: "rooms",
    Category.SHELVING_UNIT: "shelving_units",
    Category.SHELF: "shelves",
    Category.CONTAINER: "containers",
    Category.ITEM: "items",
}

# Longest possible walk: item -> container -> shelf -> shelving_unit -> room -> building
MAX_DEPTH = len(_ORDER) - 1


def select_categories(filters: tuple[str, ...] | list[str]) -> tuple[Category, ...]:
    """
    Resolve filter tokens to the categories a listing should include.

    Empty filters select everything. Tokens that name no category are ignored,
    so a filter made only of unknown tokens selects nothing.
    """
    if not filters:
        return _ORDER
    wanted = {Category.parse(token) for token in filters}
    return tuple(c for c in _ORDER if c in wanted)
