from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator, model_validator

from .validators import normalize_tags

PriceRange = Literal["$", "$$", "$$$", "$$$$"]
BusinessStatus = Literal["active", "pending", "inactive"]
SortBy = Literal["rating", "reviews", "name", "distance", "date"]
EntityType = Literal["business", "blog", "category", "user"]
EventType = Literal[
    "view",
    "click",
    "share",
    "save",
    "search",
    "contact",
    "create",
    "update",
    "delete",
    "claim",
]
UserRole = Literal["user", "business_owner", "admin", "moderator"]

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

T = TypeVar("T")


def utcnow() -> datetime:
    return datetime.now(UTC)


# --- Shared value objects ---
class Coordinates(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class DayHours(BaseModel):
    open: str = "09:00"
    close: str = "17:00"
    closed: bool = False


class SocialMedia(BaseModel):
    facebook: str | None = None
    instagram: str | None = None
    twitter: str | None = None
    linkedin: str | None = None


def _check_weekdays(value: dict[str, DayHours]) -> dict[str, DayHours]:
    normalised: dict[str, DayHours] = {}
    for day, hours in (value or {}).items():
        key = str(day).strip().lower()
        if key not in WEEKDAYS:
            raise ValueError(f"unknown weekday '{day}'")
        normalised[key] = hours
    return normalised


# --- Directory entities ---
class Category(BaseModel):
    id: str
    name: str
    slug: str
    icon: str = ""
    description: str | None = None
    parent_id: str | None = None
    # denormalized; the service replaces it with a live count on read
    count: int = Field(default=0, ge=0)
    is_active: bool = True
    sort_order: int = 0


class Business(BaseModel):
    id: str
    name: str
    slug: str
    category_id: str
    category: str = "Uncategorized"
    description: str | None = None
    short_description: str | None = None
    address: str
    coordinates: Coordinates | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    price_range: PriceRange = "$"
    rating: float = Field(default=0.0, ge=0, le=5)
    review_count: int = Field(default=0, ge=0)
    view_count: int = Field(default=0, ge=0)
    image_url: str = ""
    images: list[str] = Field(default_factory=list)
    is_active: bool = True
    is_featured: bool = False
    is_verified: bool = False
    is_premium: bool = False
    status: BusinessStatus = "active"
    business_hours: dict[str, DayHours] = Field(default_factory=dict)
    social_media: SocialMedia | None = None
    custom_fields: dict[str, Any] = Field(default_factory=dict)
    owner_id: str | None = None
    claimed_by: str | None = None
    claimed_at: datetime | None = None
    date_added: datetime = Field(default_factory=utcnow)
    last_updated: datetime = Field(default_factory=utcnow)

    @field_validator("business_hours")
    @classmethod
    def _hours(cls, value: dict[str, DayHours]) -> dict[str, DayHours]:
        return _check_weekdays(value)

    @model_validator(mode="after")
    def _timestamps_ordered(self) -> Business:
        if self.last_updated < self.date_added:
            raise ValueError("last_updated must not precede date_added")
        return self


class ReviewReply(BaseModel):
    content: str
    author_name: str
    date_created: datetime = Field(default_factory=utcnow)


class Review(BaseModel):
    id: str
    business_id: str
    user_id: str
    user_name: str | None = None
    rating: int = Field(ge=1, le=5)
    title: str | None = None
    content: str
    images: list[str] = Field(default_factory=list)
    is_verified: bool = False
    is_helpful: int = Field(default=0, ge=0)
    response: ReviewReply | None = None
    date_created: datetime
    date_updated: datetime | None = None


class BlogPost(BaseModel):
    id: str
    title: str
    slug: str
    excerpt: str
    content: str = ""
    featured_image: str = ""
    author: str
    category: str
    tags: list[str] = Field(default_factory=list)
    business_id: str | None = None
    business_name: str | None = None
    read_time: str = ""
    is_published: bool = False
    is_featured: bool = False
    view_count: int = Field(default=0, ge=0)
    publish_date: datetime = Field(default_factory=utcnow)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, value):  # type: ignore[override]
        return normalize_tags(value)


class User(BaseModel):
    id: str
    email: str
    name: str
    role: UserRole = "user"
    is_active: bool = True


# --- Search ---
class SearchRequest(BaseModel):
    query: str | None = None
    category_ids: set[str] = Field(default_factory=set)
    price_ranges: set[PriceRange] = Field(default_factory=set)
    rating: float = Field(default=0.0, ge=0, le=5)
    radius: float | None = Field(default=None, ge=0)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    featured: bool = False
    verified: bool = False
    sort_by: SortBy | None = None
    # out-of-range paging is clamped by the engine, not rejected
    page: int = 1
    limit: int | None = None

    @property
    def reference_point(self) -> Coordinates | None:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinates(lat=self.latitude, lng=self.longitude)


class BusinessFilters(BaseModel):
    category: str | None = None
    status: BusinessStatus | None = None
    featured: bool | None = None
    limit: int | None = Field(default=None, ge=1)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class SearchResult(BaseModel):
    items: list[Business] = Field(default_factory=list)
    pagination: Pagination


# --- Mutation payloads ---
class BusinessCreate(BaseModel):
    """Submission payload; required fields are enforced by the mutation gateway."""

    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    category_id: str | None = None
    category: str | None = None
    address: str | None = None
    description: str | None = None
    short_description: str | None = None
    coordinates: Coordinates | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    price_range: PriceRange | None = None
    image_url: str | None = None
    images: list[str] = Field(default_factory=list)
    business_hours: dict[str, DayHours] = Field(default_factory=dict)
    social_media: SocialMedia | None = None
    custom_fields: dict[str, Any] = Field(default_factory=dict)
    owner_id: str | None = None

    @field_validator("business_hours")
    @classmethod
    def _hours(cls, value: dict[str, DayHours]) -> dict[str, DayHours]:
        return _check_weekdays(value)


class BusinessUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    category_id: str | None = None
    description: str | None = None
    short_description: str | None = None
    address: str | None = None
    coordinates: Coordinates | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    price_range: PriceRange | None = None
    image_url: str | None = None
    images: list[str] | None = None
    is_featured: bool | None = None
    is_verified: bool | None = None
    is_premium: bool | None = None
    business_hours: dict[str, DayHours] | None = None
    social_media: SocialMedia | None = None
    custom_fields: dict[str, Any] | None = None

    @field_validator("business_hours")
    @classmethod
    def _hours(cls, value: dict[str, DayHours] | None) -> dict[str, DayHours] | None:
        return None if value is None else _check_weekdays(value)


class ReviewCreate(BaseModel):
    user_id: str
    user_name: str | None = None
    rating: int
    title: str | None = None
    content: str
    images: list[str] = Field(default_factory=list)


class ReviewUpdate(BaseModel):
    rating: int | None = None
    title: str | None = None
    content: str | None = None
    images: list[str] | None = None


class ReviewReplyCreate(BaseModel):
    content: str = Field(min_length=1, max_length=2000)
    author_name: str = Field(min_length=1, max_length=120)


class ClaimRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=128)


# --- Analytics ---
class AnalyticsEvent(BaseModel):
    entity_type: EntityType
    entity_id: str
    event_type: EventType
    timestamp: datetime = Field(default_factory=utcnow)
    user_id: str | None = None
    metadata: dict[str, Any] | None = None


# --- Response envelope ---
class ApiResponse(BaseModel, Generic[T]):
    success: bool
    data: T | None = None
    error: str | None = None
    field: str | None = None
    message: str | None = None
    pagination: Pagination | None = None
    # HTTP status the API layer answers with; not part of the body
    _status_code: int = PrivateAttr(default=200)

    @property
    def status_code(self) -> int:
        return self._status_code

    @classmethod
    def ok(
        cls,
        data: Any = None,
        *,
        message: str | None = None,
        pagination: Pagination | None = None,
        status_code: int = 200,
    ) -> ApiResponse:
        envelope = cls(success=True, data=data, message=message, pagination=pagination)
        envelope._status_code = status_code
        return envelope

    @classmethod
    def fail(
        cls, error: str, *, field: str | None = None, status_code: int = 400
    ) -> ApiResponse:
        envelope = cls(success=False, error=error, field=field)
        envelope._status_code = status_code
        return envelope
