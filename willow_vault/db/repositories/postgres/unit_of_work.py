"""PostgreSQL Unit of Work implementation"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ..base import UnitOfWork
from .entity import PostgresEntityRepository


class PostgresUnitOfWork(UnitOfWork):
    """PostgreSQL implementation of Unit of Work pattern"""

    def __init__(self, session: AsyncSession):
        self._session = session
        self.entities = PostgresEntityRepository(session)

    async def __aenter__(self) -> "PostgresUnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        # Read-only: nothing to commit, always release the transaction
        await self.rollback()

    async def ping(self) -> None:
        await self._session.execute(text("SELECT 1"))

    async def rollback(self) -> None:
        """Rollback the transaction"""
        await self._session.rollback()
