"""Error taxonomy for the catalog read path"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .db.entities import EntityNode, ListingRow


class VaultError(Exception):
    """Base class for catalog errors"""


class InvalidParameter(VaultError):
    """Client sent a malformed or out-of-range query parameter"""

    MALFORMED = "malformed"
    OUT_OF_RANGE = "out_of_range"
    UNKNOWN = "unknown"

    def __init__(self, field: str, reason: str, value: Optional[str] = None):
        self.field = field
        self.reason = reason
        self.value = value
        if reason == self.OUT_OF_RANGE:
            message = f"{field} must be a non-negative integer within the paging range"
        elif reason == self.UNKNOWN:
            message = f"unknown {field} {value!r}"
        else:
            message = f"{field} must be an integer, got {value!r}"
        super().__init__(message)


class CacheUnavailable(VaultError):
    """Cache store failed for a reason other than a plain miss"""


class QueryFailed(VaultError):
    """Backing store failed while serving a read"""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"{operation} failed")


class AncestorNotFound(VaultError):
    """
    An entity's parent chain is broken before reaching its building.

    `chain` holds the ancestors resolved before the break, immediate parent first.
    """

    def __init__(self, row: "ListingRow", chain: list["EntityNode"], missing: str):
        self.row = row
        self.chain = chain
        self.missing = missing
        super().__init__(
            f"{row.category.value} {row.id}: ancestor {missing} not found"
        )


class EncodingError(VaultError):
    """Cache key or payload could not be serialized"""


class EntityNotFound(VaultError):
    def __init__(self, category: str, entity_id: int):
        self.category = category
        self.entity_id = entity_id
        super().__init__(f"{category} {entity_id} not found")
