"""Abstract repository interfaces - backend agnostic"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from ...hierarchy import Category
from ..entities import EntityNode, ListingRow


class EntityRepository(ABC):
    """Read access to the six catalog tables, always scoped to one owner"""

    @abstractmethod
    async def list_entities(
        self,
        user_id: str,
        offset: int = 0,
        limit: int = 20,
        search: str = "",
        filters: Sequence[str] = (),
    ) -> list[ListingRow]:
        """
        One page of live rows across all selected categories, ordered by
        category rank and then creation time.
        """
        ...

    @abstractmethod
    async def count_entities(
        self,
        user_id: str,
        search: str = "",
        filters: Sequence[str] = (),
    ) -> int:
        """Number of live rows matching search/filters, ignoring pagination"""
        ...

    @abstractmethod
    async def get_node(
        self,
        category: Category,
        user_id: str,
        entity_id: int,
    ) -> Optional[EntityNode]:
        """Point lookup of a live entity by owner and id"""
        ...


class UnitOfWork(ABC):
    """Unit of work pattern for session management"""

    entities: EntityRepository

    @abstractmethod
    async def __aenter__(self) -> "UnitOfWork":
        ...

    @abstractmethod
    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        ...

    @abstractmethod
    async def ping(self) -> None:
        """Round-trip to the backing store"""
        ...

    @abstractmethod
    async def rollback(self) -> None:
        """Release the read transaction"""
        ...
