"""Ancestor resolution: walking a row's parent chain up to its building.

Each hop is a point lookup in the table of the parent's category. The walk is a
bounded loop rather than recursion: categories strictly decrease in rank on
every hop, so at most MAX_DEPTH lookups are ever issued.
"""

from __future__ import annotations

from .db.entities import EntityNode, ListingRow
from .db.repositories.base import EntityRepository
from .errors import AncestorNotFound
from .hierarchy import MAX_DEPTH, Category


LOCATION_SEPARATOR = ", "


async def resolve_ancestors(
    repo: EntityRepository,
    user_id: str,
    row: ListingRow,
) -> list[EntityNode]:
    """
    Resolve the ancestors of a row, immediate parent first, building last.

    Buildings have no ancestors and return an empty chain without any lookup.

    Raises:
        AncestorNotFound: a parent is missing or soft-deleted, or the stored
            parent category is unknown or not above the child. The exception
            carries the part of the chain resolved before the break.
        QueryFailed: the backing store failed during a lookup.
    """
    chain: list[EntityNode] = []
    if row.category.is_root:
        return chain

    child_category = row.category
    raw_parent = row.parent_category
    parent_category = Category.parse(raw_parent)
    parent_id = row.parent_id

    for _ in range(MAX_DEPTH):
        if parent_category is None or parent_category.rank >= child_category.rank:
            raise AncestorNotFound(row, chain, f"{raw_parent or '?'} {parent_id}")

        node = await repo.get_node(parent_category, user_id, parent_id)
        if node is None:
            raise AncestorNotFound(row, chain, f"{parent_category.value} {parent_id}")

        chain.append(node)
        if node.category.is_root:
            return chain

        child_category = node.category
        parent_id = node.parent_id
        raw_parent = node.parent_category
        parent_category = Category.parse(raw_parent)

    raise AncestorNotFound(row, chain, "building")


def render_location(chain: list[EntityNode]) -> str:
    """Human-readable location, most specific ancestor first"""
    return LOCATION_SEPARATOR.join(node.name for node in chain)
