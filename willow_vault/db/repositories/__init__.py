"""Repository pattern for database abstraction"""

from .base import EntityRepository, UnitOfWork

__all__ = [
    "EntityRepository",
    "UnitOfWork",
]
