"""PostgreSQL repository implementations"""

from .entity import PostgresEntityRepository
from .unit_of_work import PostgresUnitOfWork

__all__ = [
    "PostgresEntityRepository",
    "PostgresUnitOfWork",
]
