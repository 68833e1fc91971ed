"""Validation of listing query parameters (offset, limit, search, filter)"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from .errors import InvalidParameter
from .observability import logger


DEFAULT_OFFSET = "0"
DEFAULT_LIMIT = "20"

# Largest BIGINT; offset + limit becomes a per-table LIMIT in SQL
MAX_PAGE_VALUE = 2**63 - 1

_DECIMAL = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class ListingParams:
    """Validated pagination/search/filter input for one listing request"""
    offset: int = 0
    limit: int = 20
    search: str = ""
    filters: tuple[str, ...] = ()

    @property
    def raw_offset(self) -> str:
        """Canonical string form used in cache keys"""
        return str(self.offset)

    @property
    def raw_limit(self) -> str:
        return str(self.limit)


def _parse_non_negative(field: str, raw: str) -> int:
    if not raw.isascii() or not _DECIMAL.fullmatch(raw):
        logger.warning(f"Invalid {field}: {raw!r} is not an integer")
        raise InvalidParameter(field, InvalidParameter.MALFORMED, raw)
    value = int(raw)
    if value < 0 or value > MAX_PAGE_VALUE:
        logger.warning(f"Invalid {field}: {value} is out of range")
        raise InvalidParameter(field, InvalidParameter.OUT_OF_RANGE, raw)
    return value


def parse_listing_params(
    offset: Optional[str] = None,
    limit: Optional[str] = None,
    search: Optional[str] = None,
    filter: Optional[str] = None,
) -> ListingParams:
    """
    Parse raw query-string values into ListingParams.

    Missing or empty offset/limit fall back to "0"/"20". Offset is checked
    before limit and the first failure is raised as InvalidParameter.
    Filter tokens keep their order since the cache key depends on it.
    """
    offset_value = _parse_non_negative("offset", offset or DEFAULT_OFFSET)
    limit_value = _parse_non_negative("limit", limit or DEFAULT_LIMIT)
    if offset_value + limit_value > MAX_PAGE_VALUE:
        logger.warning(f"Invalid limit: offset + limit exceeds {MAX_PAGE_VALUE}")
        raise InvalidParameter("limit", InvalidParameter.OUT_OF_RANGE, limit)
    filters = tuple(filter.split(",")) if filter else ()

    return ListingParams(
        offset=offset_value,
        limit=limit_value,
        search=search or "",
        filters=filters,
    )
