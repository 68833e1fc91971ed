"""Entity listing: cache-aside aggregation and response assembly.

Flow for one request:
    keys -> cache lookup -> (miss) union query + ancestor walks -> write back
    keys -> cache lookup -> (miss) count query -> write back

The listing and the count are cached separately, so a page change reuses the
cached total. Cache failures never fail a request: lookups degrade to misses
and write-backs are best-effort.
"""

from __future__ import annotations

from typing import Optional

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from .ancestry import render_location, resolve_ancestors
from .cache.keys import count_key, encode_key, entities_key
from .cache.store import CacheStore
from .db.config import settings
from .db.entities import ListingRow
from .db.repositories.base import EntityRepository, UnitOfWork
from .errors import AncestorNotFound, CacheUnavailable, EncodingError, EntityNotFound, InvalidParameter
from .hierarchy import Category
from .observability import log_with_context, metrics, track_latency
from .params import ListingParams
from .schemas import EntitiesPage, EntityOut, entity_list_adapter


# ============ Cache-aside helpers ============

async def _cache_get(cache: CacheStore, unit: str, key: str, user_id: str) -> Optional[str]:
    """Lookup that treats an unreachable cache as a miss"""
    try:
        value = await cache.get(key)
    except CacheUnavailable as e:
        metrics.record_cache(unit, "errors")
        log_with_context(user=user_id, key=key).warning(
            f"Cache lookup failed, reading from database: {e}"
        )
        return None

    metrics.record_cache(unit, "hits" if value is not None else "misses")
    return value


async def _cache_set(
    cache: CacheStore, unit: str, key: str, value: str, ttl_seconds: int, user_id: str
) -> None:
    try:
        await cache.set(key, value, ttl_seconds)
    except CacheUnavailable as e:
        metrics.record_cache(unit, "errors")
        log_with_context(user=user_id, key=key).warning(f"Cache write-back failed: {e}")


# ============ Assembly ============

async def describe_row(repo: EntityRepository, user_id: str, row: ListingRow) -> EntityOut:
    """
    Render one listing row with its location.

    Buildings show their address. Other rows show their ancestor chain; a broken
    chain is logged and rendered with whatever part resolved.
    """
    if row.category.is_root:
        location = row.address
    else:
        try:
            chain = await resolve_ancestors(repo, user_id, row)
        except AncestorNotFound as e:
            metrics.increment("ancestor_failures")
            log_with_context(user=user_id, category=row.category.value, id=row.id).warning(str(e))
            chain = e.chain
        location = render_location(chain)

    return EntityOut(
        id=row.id,
        name=row.name,
        category=row.category.value,
        location=location,
        notes=row.notes,
    )


async def _load_entities(
    uow: UnitOfWork,
    cache: CacheStore,
    user_id: str,
    params: ListingParams,
    ttl_seconds: int,
) -> list[EntityOut]:
    key = encode_key(entities_key(user_id, params))

    cached = await _cache_get(cache, "listing", key, user_id)
    if cached is not None:
        try:
            return entity_list_adapter.validate_json(cached)
        except ValidationError:
            log_with_context(user=user_id, key=key).warning("Discarding undecodable cached listing")

    rows = await uow.entities.list_entities(
        user_id,
        offset=params.offset,
        limit=params.limit,
        search=params.search,
        filters=params.filters,
    )
    entities = [await describe_row(uow.entities, user_id, row) for row in rows]

    try:
        payload = entity_list_adapter.dump_json(entities).decode()
    except PydanticSerializationError as e:
        raise EncodingError(f"cannot encode listing: {e}") from e
    await _cache_set(cache, "listing", key, payload, ttl_seconds, user_id)
    return entities


async def _load_count(
    uow: UnitOfWork,
    cache: CacheStore,
    user_id: str,
    params: ListingParams,
    ttl_seconds: int,
) -> int:
    key = encode_key(count_key(user_id, params))

    cached = await _cache_get(cache, "count", key, user_id)
    if cached is not None:
        try:
            return int(cached)
        except ValueError:
            log_with_context(user=user_id, key=key).warning("Discarding undecodable cached count")

    total = await uow.entities.count_entities(
        user_id,
        search=params.search,
        filters=params.filters,
    )
    await _cache_set(cache, "count", key, str(total), ttl_seconds, user_id)
    return total


@track_latency("list")
async def list_entities(
    uow: UnitOfWork,
    cache: CacheStore,
    user_id: str,
    params: ListingParams,
    ttl_seconds: Optional[int] = None,
) -> EntitiesPage:
    """
    One page of a user's catalog plus the total number of matching entities.

    Args:
        uow: Unit of work for backing-store reads
        cache: Shared cache store
        user_id: Verified owner identity; every read and key is scoped to it
        params: Validated pagination/search/filter
        ttl_seconds: Cache lifetime (defaults to settings.cache_ttl_seconds)

    Raises:
        QueryFailed: listing, count or ancestor lookup failed
        EncodingError: key or payload serialization failed
    """
    ttl = settings.cache_ttl_seconds if ttl_seconds is None else ttl_seconds

    entities = await _load_entities(uow, cache, user_id, params, ttl)
    total = await _load_count(uow, cache, user_id, params, ttl)
    return EntitiesPage(total_count=total, entities=entities)


@track_latency("get")
async def get_entity(uow: UnitOfWork, user_id: str, category: str, entity_id: int) -> EntityOut:
    """Single entity with its location, read straight from the backing store"""
    parsed = Category.parse(category)
    if parsed is None:
        raise InvalidParameter("category", InvalidParameter.UNKNOWN, category)

    node = await uow.entities.get_node(parsed, user_id, entity_id)
    if node is None:
        raise EntityNotFound(parsed.value, entity_id)
    return await describe_row(uow.entities, user_id, node.to_listing_row())
