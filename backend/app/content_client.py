"""Directory content read from the WordPress REST API, with the built-in sample as fallback.

Callers only ever see canonical ``Business`` / ``Category`` records: whether they came
from the remote service or from the fallback is visible through logs and the
``content_requests_total{source=...}`` metric, never through the return value.
"""

from __future__ import annotations

import html
import logging
import re
import time
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any, Protocol, TypeVar
from uuid import uuid4

import httpx
from pydantic import ValidationError as ModelValidationError

from .circuit_breaker import CircuitBreaker
from .contracts import (
    Business,
    BusinessCreate,
    BusinessFilters,
    Category,
    DayHours,
    SearchRequest,
    SearchResult,
    utcnow,
)
from .errors import RemoteTimeoutError, RemoteUnavailableError
from .metrics import content_request_duration_seconds, record_content_source
from .search import clamp_paging, filter_businesses, search_businesses
from .seed import sample_businesses, sample_categories
from .settings import settings
from .validators import slugify

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TAG_RE = re.compile(r"<[^>]*>")
_HOURS_RANGE_RE = re.compile(r"^\s*(.+?)\s*[-–]\s*(.+?)\s*$")
PRICE_RANGES = ("$", "$$", "$$$", "$$$$")
DEFAULT_CATEGORY_ID = "1"
DEFAULT_CATEGORY_ICON = "🏷️"


# ---------------------------------------------------------------------------
# WordPress payload normalization
# ---------------------------------------------------------------------------


def strip_html(value: Any) -> str:
    if not value:
        return ""
    return " ".join(html.unescape(_TAG_RE.sub("", str(value))).split())


def _rendered(field: Any) -> str:
    if isinstance(field, dict):
        return strip_html(field.get("rendered"))
    return strip_html(field)


def _as_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_wp_datetime(value: Any) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        # WordPress "date" is site-local without offset; treat as UTC
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _normalize_hours(raw: Any) -> dict[str, DayHours]:
    if not isinstance(raw, dict):
        return {}
    hours: dict[str, DayHours] = {}
    for day, value in raw.items():
        key = str(day).strip().lower()
        if isinstance(value, dict):
            hours[key] = DayHours(**value)
            continue
        text = str(value or "").strip()
        if not text or text.lower() == "closed":
            hours[key] = DayHours(closed=True)
            continue
        match = _HOURS_RANGE_RE.match(text)
        if match:
            hours[key] = DayHours(open=match.group(1), close=match.group(2))
    return hours


def normalize_category(raw: dict[str, Any], position: int = 0) -> Category:
    """Map a ``/wp/v2/categories`` entry onto a ``Category``."""
    try:
        name = strip_html(raw.get("name"))
        return Category(
            id=str(raw["id"]),
            name=name,
            slug=str(raw.get("slug") or slugify(name, fallback="category")),
            icon=str((raw.get("meta") or {}).get("icon") or DEFAULT_CATEGORY_ICON),
            description=strip_html(raw.get("description")) or None,
            parent_id=str(raw["parent"]) if raw.get("parent") else None,
            count=int(_as_float(raw.get("count")) or 0),
            sort_order=position,
        )
    except (KeyError, TypeError, ModelValidationError) as exc:
        raise RemoteUnavailableError(f"invalid category payload: {exc}") from exc


def normalize_business(raw: dict[str, Any]) -> Business:
    """Map a ``/wp/v2/businesses`` post (with ACF fields) onto a ``Business``."""
    try:
        acf = raw.get("acf") or {}
        name = _rendered(raw.get("title"))
        categories = raw.get("categories") or []
        lat = _as_float(acf.get("latitude"))
        lng = _as_float(acf.get("longitude"))
        status = "active" if raw.get("status") == "publish" else "pending"
        added = _parse_wp_datetime(raw.get("date")) or utcnow()
        modified = _parse_wp_datetime(raw.get("modified")) or added
        price_range = acf.get("price_range")
        photos = [str(photo) for photo in acf.get("photos") or [] if photo]
        rating = min(max(_as_float(acf.get("rating")) or 0.0, 0.0), 5.0)
        return Business(
            id=str(raw["id"]),
            name=name,
            slug=str(raw.get("slug") or slugify(name)),
            category_id=str(categories[0]) if categories else DEFAULT_CATEGORY_ID,
            category=str(acf.get("category_name") or "Uncategorized"),
            description=_rendered(raw.get("content")) or None,
            short_description=_rendered(raw.get("excerpt")) or None,
            address=str(acf.get("address") or ""),
            coordinates={"lat": lat, "lng": lng} if lat is not None and lng is not None else None,
            phone=acf.get("phone") or None,
            email=acf.get("email") or None,
            website=acf.get("website") or None,
            price_range=price_range if price_range in PRICE_RANGES else "$",
            rating=rating,
            review_count=int(_as_float(acf.get("review_count")) or 0),
            image_url=photos[0] if photos else "",
            images=photos,
            is_active=status == "active",
            is_featured=bool(acf.get("featured")),
            is_verified=bool(acf.get("verified")),
            status=status,
            business_hours=_normalize_hours(acf.get("hours")),
            custom_fields=dict(acf.get("custom_fields") or {}),
            date_added=added,
            last_updated=max(modified, added),
        )
    except (KeyError, TypeError, ValueError, ModelValidationError) as exc:
        raise RemoteUnavailableError(f"invalid business payload: {exc}") from exc


def _valid_rows(
    kind: str,
    rows: list[dict[str, Any]],
    normalize: Callable[[int, dict[str, Any]], T],
) -> list[T]:
    """Normalize rows one by one, dropping malformed ones; an all-bad page counts as a failure."""
    records: list[T] = []
    for position, row in enumerate(rows):
        try:
            records.append(normalize(position, row))
        except RemoteUnavailableError as exc:
            logger.warning("Skipping malformed %s row id=%s: %s", kind, row.get("id"), exc)
    if not records:
        raise RemoteUnavailableError(f"no valid {kind} rows in remote payload")
    return records


def _business_row(_position: int, row: dict[str, Any]) -> Business:
    return normalize_business(row)


def _submission_body(payload: BusinessCreate) -> dict[str, Any]:
    coordinates = payload.coordinates
    category_id = str(payload.category_id or "")
    return {
        "title": payload.name,
        "content": payload.description or "",
        "status": "draft",  # held for moderation
        # WordPress only takes numeric term ids; local slugs travel as the label
        "categories": [int(category_id)] if category_id.isdigit() else [],
        "acf": {
            "category_name": payload.category or category_id or None,
            "address": payload.address,
            "phone": payload.phone,
            "website": payload.website,
            "email": payload.email,
            "latitude": coordinates.lat if coordinates else None,
            "longitude": coordinates.lng if coordinates else None,
            "hours": {
                day: hours.model_dump() for day, hours in payload.business_hours.items()
            },
            "photos": payload.images,
            "price_range": payload.price_range,
            "custom_fields": payload.custom_fields,
        },
    }


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


class FetchStrategy(Protocol):
    name: str

    async def categories(self) -> list[Category]: ...

    async def businesses(self, filters: BusinessFilters) -> list[Business]: ...

    async def search_candidates(self, request: SearchRequest) -> list[Business]: ...

    async def submit(self, payload: BusinessCreate) -> Business: ...


class RemoteContentStrategy:
    """WordPress REST API strategy. Every failure surfaces as ``RemoteUnavailableError``."""

    name = "remote"

    def __init__(
        self,
        base_url: str | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        read_timeout: float | None = None,
        write_timeout: float | None = None,
    ) -> None:
        self.base_url = (base_url or settings.content_api_base).rstrip("/")
        self._transport = transport
        self.read_timeout = read_timeout or settings.CONTENT_API_READ_TIMEOUT_SECONDS
        self.write_timeout = write_timeout or settings.CONTENT_API_WRITE_TIMEOUT_SECONDS

    async def _request(
        self,
        method: str,
        path: str,
        *,
        timeout: float,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        started = time.perf_counter()
        # one client per call keeps the strategy usable from any event loop
        async with httpx.AsyncClient(
            base_url=self.base_url,
            transport=self._transport,
            timeout=httpx.Timeout(timeout),
        ) as client:
            try:
                resp = await client.request(method, path, params=params, json=json)
                resp.raise_for_status()
            except httpx.TimeoutException as exc:
                raise RemoteTimeoutError(f"{method} {path} timed out after {timeout:g}s") from exc
            except httpx.HTTPStatusError as exc:
                raise RemoteUnavailableError(
                    f"{method} {path} returned {exc.response.status_code}"
                ) from exc
            except httpx.HTTPError as exc:
                raise RemoteUnavailableError(f"{method} {path} failed: {exc}") from exc
            finally:
                content_request_duration_seconds.labels(operation=f"{method} {path}").observe(
                    time.perf_counter() - started
                )
        try:
            return resp.json()
        except ValueError as exc:
            raise RemoteUnavailableError(f"{method} {path} returned invalid JSON") from exc

    async def _get_list(self, path: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        payload = await self._request("GET", path, params=params, timeout=self.read_timeout)
        if not isinstance(payload, list) or not payload:
            raise RemoteUnavailableError(f"GET {path} returned an empty or non-list payload")
        return [entry for entry in payload if isinstance(entry, dict)]

    async def categories(self) -> list[Category]:
        rows = await self._get_list("/wp/v2/categories", {"per_page": 100})
        return _valid_rows(
            "category", rows, lambda position, row: normalize_category(row, position)
        )

    async def businesses(self, filters: BusinessFilters) -> list[Business]:
        params: dict[str, Any] = {}
        if filters.category:
            params["categories"] = filters.category
        if filters.status == "active":
            params["status"] = "publish"
        if filters.limit:
            params["per_page"] = filters.limit
        rows = await self._get_list("/wp/v2/businesses", params)
        return filter_businesses(filters, _valid_rows("business", rows, _business_row))

    async def search_candidates(self, request: SearchRequest) -> list[Business]:
        params: dict[str, Any] = {"per_page": 100}
        if request.query:
            params["search"] = request.query
        if request.category_ids:
            params["categories"] = ",".join(sorted(request.category_ids))
        rows = await self._get_list("/wp/v2/businesses", params)
        return _valid_rows("business", rows, _business_row)

    async def submit(self, payload: BusinessCreate) -> Business:
        created = await self._request(
            "POST",
            "/wp/v2/businesses",
            json=_submission_body(payload),
            timeout=self.write_timeout,
        )
        if not isinstance(created, dict):
            raise RemoteUnavailableError("POST /wp/v2/businesses returned a non-object payload")
        return normalize_business(created)


class LocalFallbackStrategy:
    """The built-in sample directory; each call works on fresh copies."""

    name = "fallback"

    async def categories(self) -> list[Category]:
        return sample_categories()

    async def businesses(self, filters: BusinessFilters) -> list[Business]:
        return filter_businesses(filters, sample_businesses())

    async def search_candidates(self, request: SearchRequest) -> list[Business]:
        return sample_businesses()

    async def submit(self, payload: BusinessCreate) -> Business:
        now = utcnow()
        name = payload.name or ""
        fields = payload.model_dump(exclude_none=True, exclude={"category"})
        fields.setdefault("category_id", DEFAULT_CATEGORY_ID)
        fields.setdefault("address", "")
        return Business(
            **fields,
            id=uuid4().hex,
            slug=slugify(name),
            category=payload.category or "Uncategorized",
            status="pending",
            is_active=False,
            date_added=now,
            last_updated=now,
        )


# ---------------------------------------------------------------------------
# Supervisor
# ---------------------------------------------------------------------------


class ContentClient:
    """Tries the remote strategy once per call and serves the fallback on any failure."""

    def __init__(
        self,
        remote: FetchStrategy | None = None,
        fallback: FetchStrategy | None = None,
        breaker: CircuitBreaker | None = None,
        enabled: bool | None = None,
    ) -> None:
        self.remote = remote or RemoteContentStrategy()
        self.fallback = fallback or LocalFallbackStrategy()
        self.breaker = breaker or CircuitBreaker(
            "content_api",
            failure_threshold=settings.CONTENT_API_FAILURE_THRESHOLD,
            cooldown_seconds=settings.CONTENT_API_COOLDOWN_SECONDS,
            failure_exceptions=(RemoteUnavailableError,),
        )
        self.enabled = settings.CONTENT_API_ENABLED if enabled is None else enabled

    async def _run(
        self, operation: str, call: Callable[[FetchStrategy], Awaitable[T]]
    ) -> T:
        if self.enabled:
            try:
                result = await self.breaker.call(call, self.remote)
            except RemoteUnavailableError as exc:
                reason = str(exc)
            else:
                record_content_source(operation, self.remote.name)
                return result
        else:
            reason = "remote content disabled"
        logger.warning("content_fallback operation=%s reason=%s", operation, reason)
        record_content_source(operation, self.fallback.name)
        return await call(self.fallback)

    async def get_categories(self) -> list[Category]:
        return await self._run("get_categories", lambda strategy: strategy.categories())

    async def get_businesses(self, filters: BusinessFilters | None = None) -> list[Business]:
        filters = filters or BusinessFilters()
        return await self._run("get_businesses", lambda strategy: strategy.businesses(filters))

    async def search_businesses(self, request: SearchRequest) -> SearchResult:
        page, limit = clamp_paging(request.page, request.limit)
        request = request.model_copy(update={"page": page, "limit": limit})
        candidates = await self._run(
            "search_businesses", lambda strategy: strategy.search_candidates(request)
        )
        return search_businesses(request, candidates)

    async def submit_business(self, payload: BusinessCreate) -> Business:
        return await self._run("submit_business", lambda strategy: strategy.submit(payload))


__all__ = [
    "ContentClient",
    "FetchStrategy",
    "LocalFallbackStrategy",
    "RemoteContentStrategy",
    "normalize_business",
    "normalize_category",
    "strip_html",
]
