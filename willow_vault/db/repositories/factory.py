"""Unit of work factory"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from .base import UnitOfWork


@asynccontextmanager
async def get_unit_of_work() -> AsyncGenerator[UnitOfWork, None]:
    """
    Get a read-only Unit of Work bound to a fresh session.

    Usage:
        async with get_unit_of_work() as uow:
            rows = await uow.entities.list_entities(user_id)
    """
    from ..database import async_session_factory
    from .postgres import PostgresUnitOfWork

    async with async_session_factory() as session:
        async with PostgresUnitOfWork(session) as uow:
            yield uow
