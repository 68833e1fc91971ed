"""Structured cache keys.

Keys are small records with a fixed field order. `encode_key` is the only place
that turns one into a string, so identical queries always hit the same entry
and two users can never share one.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from ..errors import EncodingError
from ..params import ListingParams


LIST_ENTITIES = "GetAllEntities"
COUNT_ENTITIES = "CountEntities"


@dataclass(frozen=True)
class CacheKey:
    """Owner + operation prefix shared by every key"""
    user: str
    function: str

    def to_dict(self) -> dict:
        return {"User": self.user, "Function": self.function}


@dataclass(frozen=True)
class EntitiesCacheKey:
    cache_key: CacheKey
    offset: str
    limit: str
    search: str
    filters: tuple[str, ...]

    def to_dict(self) -> dict:
        return {
            "CacheKey": self.cache_key.to_dict(),
            "Offset": self.offset,
            "Limit": self.limit,
            "Search": self.search,
            "Filters": list(self.filters),
        }


@dataclass(frozen=True)
class CountCacheKey:
    """Count key, independent of pagination"""
    cache_key: CacheKey
    search: str
    filters: tuple[str, ...]

    def to_dict(self) -> dict:
        return {
            "CacheKey": self.cache_key.to_dict(),
            "Search": self.search,
            "Filters": list(self.filters),
        }


def encode_key(key) -> str:
    """Canonical string form of a structured key"""
    try:
        return json.dumps(key.to_dict(), separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise EncodingError(f"cannot encode cache key: {e}") from e


def entities_key(user: str, params: ListingParams) -> EntitiesCacheKey:
    return EntitiesCacheKey(
        cache_key=CacheKey(user=user, function=LIST_ENTITIES),
        offset=params.raw_offset,
        limit=params.raw_limit,
        search=params.search,
        filters=params.filters,
    )


def count_key(user: str, params: ListingParams) -> CountCacheKey:
    return CountCacheKey(
        cache_key=CacheKey(user=user, function=COUNT_ENTITIES),
        search=params.search,
        filters=params.filters,
    )
