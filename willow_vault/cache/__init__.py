"""Cache keys and cache-aside store"""

from .keys import (
    CacheKey,
    EntitiesCacheKey,
    CountCacheKey,
    encode_key,
    entities_key,
    count_key,
)
from .store import CacheStore, RedisCacheStore, create_cache_store

__all__ = [
    "CacheKey",
    "EntitiesCacheKey",
    "CountCacheKey",
    "encode_key",
    "entities_key",
    "count_key",
    "CacheStore",
    "RedisCacheStore",
    "create_cache_store",
]
