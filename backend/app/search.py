"""Filter, sort and paginate business listings.

Everything here is a pure function of its inputs: callers pass a snapshot of the
listings and get a fresh result back; nothing is cached or mutated.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from .contracts import (
    Business,
    BusinessFilters,
    Coordinates,
    Pagination,
    SearchRequest,
    SearchResult,
)
from .settings import settings

EARTH_RADIUS_KM = 6371.0


def haversine_km(a: Coordinates, b: Coordinates) -> float:
    """Great-circle distance between two points in km."""
    dlat = math.radians(b.lat - a.lat)
    dlon = math.radians(b.lng - a.lng)
    h = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(dlon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def clamp_paging(page: int | None, limit: int | None) -> tuple[int, int]:
    """Display-facing paging: bad values are corrected rather than rejected."""
    page = page if page and page >= 1 else 1
    if limit is None or limit <= 0:
        limit = settings.SEARCH_DEFAULT_LIMIT
    limit = min(limit, settings.SEARCH_MAX_LIMIT)
    return page, limit


def _matches_query(business: Business, needle: str) -> bool:
    haystacks = (business.name, business.description or "", business.address)
    return any(needle in text.lower() for text in haystacks)


def _distance(business: Business, origin: Coordinates) -> float | None:
    if business.coordinates is None:
        return None
    return haversine_km(origin, business.coordinates)


def matches(business: Business, request: SearchRequest) -> bool:
    """True when an active listing satisfies every predicate present in the request."""
    if not business.is_active:
        return False
    query = (request.query or "").strip().lower()
    if query and not _matches_query(business, query):
        return False
    if request.category_ids and business.category_id not in request.category_ids:
        return False
    if request.rating > 0 and business.rating < request.rating:
        return False
    if request.price_ranges and business.price_range not in request.price_ranges:
        return False
    if request.featured and not business.is_featured:
        return False
    if request.verified and not business.is_verified:
        return False
    origin = request.reference_point
    if origin is not None and request.radius:
        distance = _distance(business, origin)
        if distance is None or distance > request.radius:
            return False
    return True


def sort_businesses(items: list[Business], request: SearchRequest) -> list[Business]:
    # sorted() is stable, so ties keep store insertion order
    sort_by = request.sort_by
    origin = request.reference_point
    if sort_by == "distance" and origin is not None:

        def by_distance(business: Business) -> tuple[bool, float]:
            distance = _distance(business, origin)
            return (distance is None, distance or 0.0)

        return sorted(items, key=by_distance)
    if sort_by == "rating":
        return sorted(items, key=lambda b: (-b.rating, -b.review_count))
    if sort_by == "reviews":
        return sorted(items, key=lambda b: -b.review_count)
    if sort_by == "name":
        return sorted(items, key=lambda b: b.name.casefold())
    if sort_by == "date":
        return sorted(items, key=lambda b: b.date_added, reverse=True)
    return sorted(items, key=lambda b: (not b.is_featured, -b.rating))


def search_businesses(request: SearchRequest, businesses: Iterable[Business]) -> SearchResult:
    """Apply the request's predicates, order the survivors and cut out one page."""
    filtered = [business for business in businesses if matches(business, request)]
    ordered = sort_businesses(filtered, request)
    page, limit = clamp_paging(request.page, request.limit)
    total = len(ordered)
    total_pages = math.ceil(total / limit) if total else 0
    start = (page - 1) * limit
    return SearchResult(
        items=ordered[start : start + limit],
        pagination=Pagination(page=page, limit=limit, total=total, total_pages=total_pages),
    )


def filter_businesses(filters: BusinessFilters, businesses: Iterable[Business]) -> list[Business]:
    """Unpaginated listing filter; the category matches by id or display label."""
    wanted = str(filters.category or "").strip().lower()
    result: list[Business] = []
    for business in businesses:
        if filters.category and not (
            business.category_id.lower() == wanted or business.category.lower() == wanted
        ):
            continue
        if filters.status and business.status != filters.status:
            continue
        if filters.featured is not None and business.is_featured != filters.featured:
            continue
        result.append(business)
    if filters.limit:
        result = result[: filters.limit]
    return result


__all__ = [
    "clamp_paging",
    "filter_businesses",
    "haversine_km",
    "matches",
    "search_businesses",
    "sort_businesses",
]
