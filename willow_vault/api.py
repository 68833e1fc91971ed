"""FastAPI endpoints for the storage catalog read path"""

from typing import AsyncGenerator, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .cache.store import CacheStore, create_cache_store
from .db.config import settings
from .db.database import close_db
from .db.repositories.base import UnitOfWork
from .db.repositories.factory import get_unit_of_work
from .errors import EncodingError, EntityNotFound, InvalidParameter, QueryFailed
from .listing import get_entity, list_entities
from .observability import get_health_status, log_with_context, logger, metrics
from .params import parse_listing_params
from .schemas import EntitiesPage, EntityOut, Envelope


app = FastAPI(
    title="Willow Vault Catalog API",
    description="Listing and search over a user's storage hierarchy",
    version="0.1.0",
)


# ============ Lifecycle ============

@app.on_event("startup")
async def startup():
    app.state.cache = create_cache_store(settings)


@app.on_event("shutdown")
async def shutdown():
    cache: Optional[CacheStore] = getattr(app.state, "cache", None)
    if cache is not None:
        await cache.close()
    await close_db()


# ============ Dependencies ============

async def get_uow() -> AsyncGenerator[UnitOfWork, None]:
    async with get_unit_of_work() as uow:
        yield uow


def get_cache(request: Request) -> CacheStore:
    return request.app.state.cache


def get_current_user(
    request: Request,
    x_authenticated_user: Optional[str] = Header(default=None),
) -> str:
    """
    Owner identity of the request.

    Verified upstream: either the JWT middleware left its claims on
    request.state, or the gateway forwarded the username header.
    """
    claims = getattr(request.state, "user_claims", None) or {}
    user = claims.get("username") or x_authenticated_user
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


# ============ Error handlers ============

def _error(status_code: int, message: str, field: Optional[str] = None) -> JSONResponse:
    content = {"message": message, "data": None}
    if field:
        content["field"] = field
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(InvalidParameter)
async def invalid_parameter_handler(request: Request, exc: InvalidParameter):
    return _error(400, str(exc), field=exc.field)


@app.exception_handler(EntityNotFound)
async def entity_not_found_handler(request: Request, exc: EntityNotFound):
    return _error(404, str(exc))


@app.exception_handler(QueryFailed)
async def query_failed_handler(request: Request, exc: QueryFailed):
    metrics.increment("error_count")
    return _error(500, "Error retrieving entities")


@app.exception_handler(EncodingError)
async def encoding_error_handler(request: Request, exc: EncodingError):
    metrics.increment("error_count")
    logger.error(f"Encoding failed: {exc}", exc_info=exc)
    return _error(500, "Error encoding response")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed path or query values get the same envelope as InvalidParameter"""
    first = next(iter(exc.errors()), {})
    loc = first.get("loc") or ()
    field = str(loc[-1]) if loc else None
    message = first.get("msg", "invalid request")
    return _error(400, f"{field}: {message}" if field else message, field=field)


# ============ Endpoints ============

@app.get("/v1/entities", response_model=Envelope[EntitiesPage])
async def list_entities_endpoint(
    offset: Optional[str] = None,
    limit: Optional[str] = None,
    search: Optional[str] = None,
    filter: Optional[str] = None,
    user: str = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
    cache: CacheStore = Depends(get_cache),
):
    """
    List a user's entities across all categories, buildings first.

    offset/limit are validated here rather than by FastAPI so malformed values
    get the catalog's own error envelope.
    """
    params = parse_listing_params(offset, limit, search, filter)
    log_with_context(user=user, offset=params.offset, limit=params.limit).debug("Listing entities")
    page = await list_entities(uow, cache, user, params)
    return Envelope[EntitiesPage](data=page)


@app.get("/v1/entities/{category}/{entity_id}", response_model=Envelope[EntityOut])
async def get_entity_endpoint(
    category: str,
    entity_id: int,
    user: str = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
):
    """Get one entity with its resolved location"""
    entity = await get_entity(uow, user, category, entity_id)
    return Envelope[EntityOut](data=entity)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok", "version": app.version}


@app.get("/health/detailed")
async def detailed_health(
    uow: UnitOfWork = Depends(get_uow),
    cache: CacheStore = Depends(get_cache),
):
    """Get detailed health status"""
    return await get_health_status(uow, cache)


@app.get("/metrics")
async def metrics_endpoint():
    """Get application metrics"""
    return metrics.to_dict()


@app.post("/metrics/reset")
async def reset_metrics():
    """Reset all metrics"""
    metrics.reset()
    return {"status": "reset"}
