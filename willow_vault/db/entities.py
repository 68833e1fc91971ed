"""Domain entities - backend-agnostic data models"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from ..hierarchy import Category


def _utcnow() -> datetime:
    """Return current UTC time as naive datetime (for DB compatibility)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass
class ListingRow:
    """
    One catalog row projected into the shape shared by all six tables.

    `address` is only meaningful for buildings; `parent_id`/`parent_category`
    are 0/"" for buildings.
    """
    table_weight: int
    category: Category
    id: int
    name: str = ""
    notes: str = ""
    address: str = ""
    parent_id: int = 0
    parent_category: str = ""
    created_at: datetime = field(default_factory=_utcnow)


@dataclass
class EntityNode:
    """A single entity fetched by point lookup (one hop of an ancestor walk)"""
    category: Category
    id: int
    name: str = ""
    notes: str = ""
    address: str = ""
    parent_id: int = 0
    parent_category: str = ""

    def to_listing_row(self) -> ListingRow:
        return ListingRow(
            table_weight=self.category.rank,
            category=self.category,
            id=self.id,
            name=self.name,
            notes=self.notes,
            address=self.address,
            parent_id=self.parent_id,
            parent_category=self.parent_category,
        )
