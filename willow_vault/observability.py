"""Observability - Structured logging, metrics and health"""

import asyncio
import json
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import wraps
from typing import Callable, Optional

from .db.config import settings


# ============ Structured Logging ============

class JSONFormatter(logging.Formatter):
    """One JSON object per record; context from log_with_context is merged in"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(getattr(record, "context", {}))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(level: str = "INFO", json_format: bool = True) -> logging.Logger:
    """
    Configure the `willow_vault` logger.

    Args:
        level: Log level name; unknown names fall back to INFO
        json_format: JSON lines when True, plain text otherwise

    Returns:
        Configured logger
    """
    log = logging.getLogger("willow_vault")
    log.setLevel(getattr(logging, level.upper(), logging.INFO))
    log.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(
        JSONFormatter() if json_format
        else logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
    )
    log.addHandler(handler)
    return log


logger = setup_logging(settings.log_level, settings.log_json)


class _ContextAdapter(logging.LoggerAdapter):
    def process(self, msg, kwargs):
        extra = kwargs.setdefault("extra", {})
        extra["context"] = {**self.extra, **extra.get("context", {})}
        return msg, kwargs


def log_with_context(**context) -> logging.LoggerAdapter:
    """Logger that attaches context (user, key, category, id...) to every record"""
    return _ContextAdapter(logger, context)


# ============ Metrics ============

COUNTERS = ("list_count", "get_count", "error_count", "ancestor_failures")
TRACKED_OPERATIONS = ("list", "get")
CACHE_UNITS = ("listing", "count")
LATENCY_WINDOW = 1000


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    errors: int = 0

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0

    def to_dict(self) -> dict:
        return {
            "hit_rate": round(self.hit_rate, 3),
            "hits": self.hits,
            "misses": self.misses,
            "errors": self.errors,
        }


def _empty_latencies() -> dict[str, deque]:
    return {op: deque(maxlen=LATENCY_WINDOW) for op in TRACKED_OPERATIONS}


@dataclass
class Metrics:
    """
    In-memory metrics for one process.

    Counters are read as attributes (`metrics.error_count`). Cache outcomes are
    kept per cache unit, since listings and counts are cached independently;
    `cache_hits` and friends are totals over both.
    """

    counters: dict[str, int] = field(default_factory=lambda: dict.fromkeys(COUNTERS, 0))
    latencies: dict[str, deque] = field(default_factory=_empty_latencies)
    cache: dict[str, CacheStats] = field(
        default_factory=lambda: {unit: CacheStats() for unit in CACHE_UNITS}
    )

    def __getattr__(self, name: str) -> int:
        counters = self.__dict__.get("counters", {})
        if name in counters:
            return counters[name]
        raise AttributeError(name)

    def increment(self, name: str, value: int = 1) -> None:
        if name in self.counters:
            self.counters[name] += value

    def record_latency(self, operation: str, latency_ms: float) -> None:
        window = self.latencies.get(operation)
        if window is not None:
            window.append(latency_ms)

    def record_cache(self, unit: str, outcome: str) -> None:
        """Count one lookup outcome ("hits", "misses" or "errors") for a cache unit"""
        stats = self.cache.setdefault(unit, CacheStats())
        setattr(stats, outcome, getattr(stats, outcome) + 1)

    @property
    def cache_hits(self) -> int:
        return sum(s.hits for s in self.cache.values())

    @property
    def cache_misses(self) -> int:
        return sum(s.misses for s in self.cache.values())

    @property
    def cache_errors(self) -> int:
        return sum(s.errors for s in self.cache.values())

    def get_percentile(self, operation: str, percentile: float) -> Optional[float]:
        samples = sorted(self.latencies.get(operation, ()))
        if not samples:
            return None
        idx = int(len(samples) * percentile / 100)
        return samples[min(idx, len(samples) - 1)]

    def to_dict(self) -> dict:
        total = CacheStats(self.cache_hits, self.cache_misses, self.cache_errors)
        return {
            "counters": dict(self.counters),
            "latencies": {
                f"{op}_p{p}": self.get_percentile(op, p)
                for op in TRACKED_OPERATIONS
                for p in (50, 95, 99)
            },
            "cache": {
                **total.to_dict(),
                "units": {unit: stats.to_dict() for unit, stats in self.cache.items()},
            },
        }

    def reset(self) -> None:
        self.counters = dict.fromkeys(COUNTERS, 0)
        self.latencies = _empty_latencies()
        self.cache = {unit: CacheStats() for unit in CACHE_UNITS}


metrics = Metrics()


def track_latency(operation: str):
    """Count calls to an async operation and record how long each took"""
    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                metrics.record_latency(operation, (time.perf_counter() - start) * 1000)
                metrics.increment(f"{operation}_count")

        return wrapper

    return decorator


# ============ Health Check ============

async def _timed_check(probe) -> dict:
    start = time.perf_counter()
    await asyncio.wait_for(probe(), timeout=settings.health_check_timeout)
    return {"status": "ok", "latency_ms": round((time.perf_counter() - start) * 1000, 2)}


async def get_health_status(uow, cache) -> dict:
    """
    Probe the backing store and the cache.

    A dead database makes the service unhealthy. A dead cache only degrades it,
    since listings still work without one.
    """
    status = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {},
    }

    try:
        status["checks"]["database"] = await _timed_check(uow.ping)
    except Exception as e:
        status["checks"]["database"] = {"status": "error", "message": str(e) or type(e).__name__}
        status["status"] = "unhealthy"

    try:
        status["checks"]["cache"] = await _timed_check(cache.ping)
    except Exception as e:
        status["checks"]["cache"] = {"status": "error", "message": str(e) or type(e).__name__}
        if status["status"] == "healthy":
            status["status"] = "degraded"

    status["cache"] = metrics.to_dict()["cache"]
    return status
