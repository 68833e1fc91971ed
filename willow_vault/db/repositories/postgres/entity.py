"""PostgreSQL implementation of EntityRepository"""

from __future__ import annotations

import operator
from functools import reduce
from typing import Optional, Sequence

from sqlalchemy import (
    BigInteger,
    Integer,
    Select,
    String,
    Text,
    func,
    literal_column,
    or_,
    select,
    union_all,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ....errors import QueryFailed
from ....hierarchy import Category, select_categories
from ....observability import log_with_context
from ...entities import EntityNode, ListingRow
from ...models import MODEL_BY_CATEGORY, CatalogMixin
from ..base import EntityRepository


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _live_filter(model: type[CatalogMixin], user_id: str, search: str) -> list:
    """Owner scope, soft-delete exclusion and optional search, same for every table"""
    clauses = [model.user_id == user_id, model.deleted_at.is_(None)]
    if search:
        pattern = f"%{_escape_like(search)}%"
        clauses.append(
            or_(
                model.name.ilike(pattern, escape="\\"),
                model.notes.ilike(pattern, escape="\\"),
            )
        )
    return clauses


def build_listing_branch(category: Category, user_id: str, search: str, ceiling: int) -> Select:
    """
    Project one table into the listing shape.

    Each branch is ordered by creation time and capped at `ceiling`, the most
    rows the outer page could take from it.
    """
    model = MODEL_BY_CATEGORY[category]
    if category.is_root:
        address = model.address
        parent_id = literal_column("0", BigInteger)
        parent_category = literal_column("''", String)
    else:
        address = literal_column("''", Text)
        parent_id = model.parent_id
        parent_category = model.parent_category

    page = (
        select(
            literal_column(str(category.rank), Integer).label("table_weight"),
            model.created_at.label("created_at"),
            literal_column(f"'{category.value}'", String).label("category"),
            model.id.label("id"),
            model.name.label("name"),
            model.notes.label("notes"),
            address.label("address"),
            parent_id.label("parent_id"),
            parent_category.label("parent_category"),
        )
        .where(*_live_filter(model, user_id, search))
        .order_by(model.created_at.asc(), model.id.asc())
        .limit(ceiling)
        .subquery(f"{category.table}_page")
    )
    return select(page)


def build_listing_query(
    user_id: str,
    offset: int,
    limit: int,
    search: str,
    filters: Sequence[str],
) -> Optional[Select]:
    """UNION ALL of every selected table, ordered by rank, then paginated"""
    categories = select_categories(tuple(filters))
    if not categories:
        return None

    ceiling = offset + limit
    branches = [build_listing_branch(c, user_id, search, ceiling) for c in categories]
    combined = (union_all(*branches) if len(branches) > 1 else branches[0]).subquery("entities")

    return (
        select(combined)
        .order_by(combined.c.table_weight, combined.c.created_at, combined.c.id)
        .offset(offset)
        .limit(limit)
    )


def build_count_query(user_id: str, search: str, filters: Sequence[str]) -> Optional[Select]:
    """Sum of one COUNT(*) subquery per selected table"""
    categories = select_categories(tuple(filters))
    if not categories:
        return None

    counts = []
    for category in categories:
        model = MODEL_BY_CATEGORY[category]
        counts.append(
            select(func.count())
            .select_from(model)
            .where(*_live_filter(model, user_id, search))
            .scalar_subquery()
        )
    return select(reduce(operator.add, counts).label("entity_count"))


class PostgresEntityRepository(EntityRepository):
    """PostgreSQL implementation using SQLAlchemy"""

    def __init__(self, session: AsyncSession):
        self._session = session

    def _row_to_entity(self, row) -> ListingRow:
        """Convert a union row to a listing row"""
        return ListingRow(
            table_weight=row["table_weight"],
            category=Category(row["category"]),
            id=row["id"],
            name=row["name"],
            notes=row["notes"] or "",
            address=row["address"] or "",
            parent_id=row["parent_id"] or 0,
            parent_category=row["parent_category"] or "",
            created_at=row["created_at"],
        )

    def _model_to_node(self, category: Category, model: CatalogMixin) -> EntityNode:
        """Convert SQLAlchemy model to domain entity"""
        return EntityNode(
            category=category,
            id=model.id,
            name=model.name,
            notes=model.notes or "",
            address=getattr(model, "address", "") or "",
            parent_id=getattr(model, "parent_id", 0) or 0,
            parent_category=getattr(model, "parent_category", "") or "",
        )

    async def list_entities(
        self,
        user_id: str,
        offset: int = 0,
        limit: int = 20,
        search: str = "",
        filters: Sequence[str] = (),
    ) -> list[ListingRow]:
        """Run the aggregated listing query"""
        query = build_listing_query(user_id, offset, limit, search, filters)
        if query is None:
            return []

        try:
            result = await self._session.execute(query)
        except SQLAlchemyError as e:
            log_with_context(user=user_id, operation="list_entities").error(
                f"Listing query failed: {e}", exc_info=True
            )
            raise QueryFailed("list_entities") from e
        return [self._row_to_entity(row) for row in result.mappings().all()]

    async def count_entities(
        self,
        user_id: str,
        search: str = "",
        filters: Sequence[str] = (),
    ) -> int:
        """Run the summed count query"""
        query = build_count_query(user_id, search, filters)
        if query is None:
            return 0

        try:
            result = await self._session.execute(query)
        except SQLAlchemyError as e:
            log_with_context(user=user_id, operation="count_entities").error(
                f"Count query failed: {e}", exc_info=True
            )
            raise QueryFailed("count_entities") from e
        return int(result.scalar_one() or 0)

    async def get_node(
        self,
        category: Category,
        user_id: str,
        entity_id: int,
    ) -> Optional[EntityNode]:
        """Get a live entity of the given category by ID"""
        model = MODEL_BY_CATEGORY[category]
        query = (
            select(model)
            .where(*_live_filter(model, user_id, ""))
            .where(model.id == entity_id)
            .order_by(model.id)
            .limit(1)
        )
        try:
            result = await self._session.execute(query)
        except SQLAlchemyError as e:
            log_with_context(user=user_id, category=category.value, id=entity_id).error(
                f"Point lookup failed: {e}", exc_info=True
            )
            raise QueryFailed("get_node") from e
        found = result.scalar_one_or_none()
        return self._model_to_node(category, found) if found else None
