"""SQLAlchemy models for the storage catalog"""

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column

from ..hierarchy import Category


# SQLite only autoincrements INTEGER primary keys
IdType = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    """Base class for all models"""
    pass


class CatalogMixin:
    """Columns shared by every catalog table"""

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )
    # Soft-delete marker, NULL while the entity is live
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)

    @declared_attr.directive
    def __table_args__(cls):
        return (
            Index(f"idx_{cls.__tablename__}_user_created", "user_id", "created_at"),
        )


class ChildMixin(CatalogMixin):
    """Catalog rows that hang below another entity"""

    parent_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    parent_category: Mapped[str] = mapped_column(String(32), nullable=False)


class Building(CatalogMixin, Base):
    """Root of a user's storage tree"""
    __tablename__ = Category.BUILDING.table

    address: Mapped[str] = mapped_column(Text, nullable=False, default="")


class Room(ChildMixin, Base):
    __tablename__ = Category.ROOM.table


class ShelvingUnit(ChildMixin, Base):
    __tablename__ = Category.SHELVING_UNIT.table


class Shelf(ChildMixin, Base):
    __tablename__ = Category.SHELF.table


class Container(ChildMixin, Base):
    __tablename__ = Category.CONTAINER.table


class Item(ChildMixin, Base):
    __tablename__ = Category.ITEM.table


MODEL_BY_CATEGORY: dict[Category, type[CatalogMixin]] = {
    Category.BUILDING: Building,
    Category.ROOM: Room,
    Category.SHELVING_UNIT: ShelvingUnit,
    Category.SHELF: Shelf,
    Category.CONTAINER: Container,
    Category.ITEM: Item,
}
