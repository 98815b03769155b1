from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar
from uuid import uuid4

from pydantic import ValidationError as ModelValidationError

from .analytics import AnalyticsRecorder
from .contracts import (
    AnalyticsEvent,
    Business,
    BusinessCreate,
    BusinessUpdate,
    Category,
    EventType,
    utcnow,
)
from .custom_fields import coerce_custom_fields
from .errors import ValidationError
from .metrics import directory_mutations_total
from .mirror import mirror_business
from .storage import Directory
from .validators import (
    normalize_address,
    normalize_display_name,
    normalize_email,
    normalize_phone,
    normalize_url,
    slugify,
)

logger = logging.getLogger(__name__)

V = TypeVar("V")

# fields owned by the service; clients can never write them through an update
_PROTECTED_FIELDS = {"id", "slug", "rating", "review_count", "view_count", "date_added"}
_DEFAULTED_FIELDS = (
    "price_range",
    "image_url",
    "images",
    "is_featured",
    "is_verified",
    "is_premium",
    "business_hours",
    "custom_fields",
)


def _checked(field: str, normalizer: Callable[[Any], V], value: Any) -> V:
    try:
        return normalizer(value)
    except ValueError as exc:
        raise ValidationError(str(exc), field=field) from None


class MutationGateway:
    """Create, update and soft-delete listings in the live directory."""

    def __init__(
        self,
        directory: Directory,
        analytics: AnalyticsRecorder,
        mirror: Callable[[Business], Any] | None = mirror_business,
    ) -> None:
        self.directory = directory
        self.analytics = analytics
        self._mirror = mirror

    # -------- validation helpers --------
    def resolve_category(self, ref: str | None) -> Category:
        if not ref or not str(ref).strip():
            raise ValidationError("category is required", field="category_id")
        category = self.directory.resolve_category(ref)
        if category is None:
            raise ValidationError(f"Unknown category '{ref}'", field="category_id")
        return category

    def unique_slug(self, name: str) -> str:
        base = slugify(name)
        taken = self.directory.business_slugs()
        slug, suffix = base, 2
        while slug in taken:
            slug = f"{base}-{suffix}"
            suffix += 1
        return slug

    def validate_submission(self, payload: BusinessCreate) -> dict[str, Any]:
        """Check the minimum listing fields and return them cleaned."""
        if payload.name is None or not payload.name.strip():
            raise ValidationError("name is required", field="name")
        if payload.address is None or not payload.address.strip():
            raise ValidationError("address is required", field="address")
        category = self.resolve_category(payload.category_id or payload.category)
        return {
            "name": _checked("name", normalize_display_name, payload.name),
            "address": _checked("address", normalize_address, payload.address),
            "category_id": category.id,
            "category": category.name,
            "phone": _checked("phone", normalize_phone, payload.phone),
            "email": _checked("email", normalize_email, payload.email),
            "website": _checked("website", normalize_url, payload.website),
            "custom_fields": coerce_custom_fields(payload.custom_fields).as_plain(),
        }

    # -------- side effects --------
    async def _after(self, business: Business, event_type: EventType, **metadata: Any) -> None:
        directory_mutations_total.labels(operation=event_type).inc()
        self.analytics.emit(
            AnalyticsEvent(
                entity_type="business",
                entity_id=business.id,
                event_type=event_type,
                user_id=metadata.pop("user_id", None),
                metadata=metadata or None,
            )
        )
        if self._mirror is not None:
            await self._mirror(business)

    # -------- mutations --------
    async def create(self, payload: BusinessCreate) -> Business:
        cleaned = self.validate_submission(payload)
        now = utcnow()
        extras = payload.model_dump(
            exclude_none=True, exclude={*cleaned.keys(), "price_range", "image_url"}
        )
        business = Business(
            **extras,
            **cleaned,
            id=self._next_id(),
            slug=self.unique_slug(cleaned["name"]),
            price_range=payload.price_range or "$",
            image_url=payload.image_url or (payload.images[0] if payload.images else ""),
            rating=0.0,
            review_count=0,
            view_count=0,
            is_active=True,
            is_featured=False,
            is_verified=False,
            is_premium=False,
            status="active",
            date_added=now,
            last_updated=now,
        )
        self.directory.businesses.put(business.id, business)
        logger.info("Business created id=%s slug=%s", business.id, business.slug)
        await self._after(business, "create")
        return business

    async def update(self, business_id: str, changes: BusinessUpdate) -> Business:
        current = self.directory.businesses.get(business_id)
        supplied = {
            key: value
            for key, value in changes.model_dump(exclude_unset=True).items()
            if key not in _PROTECTED_FIELDS
        }
        for required in ("name", "address", "category_id"):
            if required in supplied and supplied[required] is None:
                raise ValidationError(f"{required} cannot be blank", field=required)
        # null on a defaulted field means "leave as is"
        for key in _DEFAULTED_FIELDS:
            if key in supplied and supplied[key] is None:
                del supplied[key]
        if "name" in supplied:
            supplied["name"] = _checked("name", normalize_display_name, supplied["name"])
        if "address" in supplied:
            supplied["address"] = _checked("address", normalize_address, supplied["address"])
        if "category_id" in supplied:
            category = self.resolve_category(supplied["category_id"])
            supplied["category_id"] = category.id
            supplied["category"] = category.name
        if "phone" in supplied:
            supplied["phone"] = _checked("phone", normalize_phone, supplied["phone"])
        if "email" in supplied:
            supplied["email"] = _checked("email", normalize_email, supplied["email"])
        if "website" in supplied:
            supplied["website"] = _checked("website", normalize_url, supplied["website"])
        if "custom_fields" in supplied:
            supplied["custom_fields"] = coerce_custom_fields(supplied["custom_fields"]).as_plain()

        merged = {**current.model_dump(), **supplied, "last_updated": utcnow()}
        try:
            business = Business.model_validate(merged)
        except ModelValidationError as exc:
            first = exc.errors()[0]
            field = str(first["loc"][0]) if first["loc"] else None
            raise ValidationError(first["msg"], field=field) from None
        self.directory.businesses.put(business_id, business)
        await self._after(business, "update", fields=sorted(supplied))
        return business

    async def soft_delete(self, business_id: str) -> Business:
        business = self.directory.businesses.deactivate(
            business_id, status="inactive", last_updated=utcnow()
        )
        logger.info("Business soft-deleted id=%s", business_id)
        await self._after(business, "delete")
        return business

    async def claim(self, business_id: str, user_id: str) -> Business:
        current = self.directory.businesses.get(business_id)
        if current.claimed_by and current.claimed_by != user_id:
            raise ValidationError("Business has already been claimed", field="user_id")
        now = utcnow()
        business = current.model_copy(
            update={
                "claimed_by": user_id,
                "claimed_at": current.claimed_at or now,
                "owner_id": current.owner_id or user_id,
                "last_updated": now,
            }
        )
        self.directory.businesses.put(business_id, business)
        await self._after(business, "claim", user_id=user_id)
        return business

    async def record_view(self, business_id: str) -> Business:
        current = self.directory.businesses.get(business_id)
        business = current.model_copy(update={"view_count": current.view_count + 1})
        self.directory.businesses.put(business_id, business)
        self.analytics.emit(
            AnalyticsEvent(entity_type="business", entity_id=business_id, event_type="view")
        )
        return business

    async def apply_review_stats(self, business_id: str, rating: float, count: int) -> Business:
        """Store recomputed review aggregates on a listing."""
        current = self.directory.businesses.get(business_id)
        business = current.model_copy(
            update={"rating": rating, "review_count": count, "last_updated": utcnow()}
        )
        self.directory.businesses.put(business_id, business)
        if self._mirror is not None:
            await self._mirror(business)
        return business

    def _next_id(self) -> str:
        # reviews and saved rows outlive the in-memory directory, so ids are never reused
        candidate = uuid4().hex
        while candidate in self.directory.businesses:
            candidate = uuid4().hex
        return candidate


__all__ = ["MutationGateway"]
