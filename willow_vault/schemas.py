"""Response schemas"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


T = TypeVar("T")


class EntityOut(BaseModel):
    """One catalog entity as shown in listings"""
    id: int
    name: str
    category: str
    location: str = ""
    notes: str = ""


class EntitiesPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_count: int = Field(alias="totalCount")
    entities: list[EntityOut]


class Envelope(BaseModel, Generic[T]):
    """Standard response wrapper"""
    message: str = "success"
    data: Optional[T] = None


# Cached listing payloads are the bare entity list
entity_list_adapter = TypeAdapter(list[EntityOut])
