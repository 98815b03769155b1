"""Data-access facade used by the HTTP layer.

Reads that the directory answers with plain records (categories, listings, search)
return them directly. Mutations and lookups that can fail for expected reasons
return an ``ApiResponse`` envelope instead of raising: ``NotFoundError`` becomes a
404 envelope and ``ValidationError`` a 422 envelope tagged with the offending field.
"""

from __future__ import annotations

import functools
import logging
import math
from collections.abc import Awaitable, Callable
from typing import Any, ParamSpec

from .analytics import AnalyticsRecorder
from .content_client import ContentClient
from .contracts import (
    AnalyticsEvent,
    ApiResponse,
    Business,
    BusinessCreate,
    BusinessFilters,
    BusinessUpdate,
    Category,
    EntityType,
    Pagination,
    ReviewCreate,
    ReviewReplyCreate,
    ReviewUpdate,
    SearchRequest,
    SearchResult,
)
from .custom_fields import definitions_for_display
from .errors import NotFoundError, ValidationError
from .metrics import search_results_count
from .mirror import mirror_directory
from .mutations import MutationGateway
from .reviews import ReviewService
from .saved import SavedBusinesses
from .search import clamp_paging, search_businesses
from .storage import Directory

logger = logging.getLogger(__name__)

P = ParamSpec("P")

FEATURED_DEFAULT_LIMIT = 6


def enveloped(
    func: Callable[P, Awaitable[Any]],
) -> Callable[P, Awaitable[ApiResponse]]:
    """Turn expected directory failures into error envelopes."""

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> ApiResponse:
        try:
            result = await func(*args, **kwargs)
        except NotFoundError as exc:
            return ApiResponse.fail(str(exc), status_code=404)
        except ValidationError as exc:
            logger.info("Rejected %s: %s (field=%s)", func.__name__, exc, exc.field)
            return ApiResponse.fail(str(exc), field=exc.field, status_code=422)
        if isinstance(result, ApiResponse):
            return result
        return ApiResponse.ok(result)

    return wrapper


class DirectoryService:
    def __init__(
        self,
        directory: Directory | None = None,
        content: ContentClient | None = None,
        analytics: AnalyticsRecorder | None = None,
    ) -> None:
        self.directory = directory or Directory()
        self.content = content or ContentClient()
        self.analytics = analytics or AnalyticsRecorder()
        self.mutations = MutationGateway(self.directory, self.analytics)
        self.reviews = ReviewService(self.mutations)
        self.saved = SavedBusinesses(self.directory, self.analytics)

    async def bootstrap(self) -> bool:
        """Mirror the live directory into SQL; the service keeps working if this fails."""
        return await mirror_directory(self.directory)

    def reset(self) -> None:
        self.directory.reset()

    # -------- categories --------
    def _with_live_count(self, category: Category) -> Category:
        if category.id not in self.directory.categories:
            return category
        return category.model_copy(update={"count": self.directory.active_count(category.id)})

    async def get_categories(self) -> list[Category]:
        categories = await self.content.get_categories()
        return [self._with_live_count(category) for category in categories]

    @enveloped
    async def get_category(self, ref: str) -> Category:
        category = self.directory.resolve_category(ref)
        if category is None:
            raise NotFoundError("Category", ref)
        return self._with_live_count(category)

    @enveloped
    async def get_businesses_by_category(
        self, ref: str, page: int = 1, limit: int | None = None
    ) -> ApiResponse:
        category = self.directory.resolve_category(ref)
        if category is None:
            raise NotFoundError("Category", ref)
        result = await self.search_businesses(
            SearchRequest(category_ids={category.id}, page=page, limit=limit)
        )
        return ApiResponse.ok(result.items, pagination=result.pagination)

    # -------- listings --------
    async def get_businesses(self, filters: BusinessFilters | None = None) -> list[Business]:
        return await self.content.get_businesses(filters)

    async def search_businesses(self, request: SearchRequest) -> SearchResult:
        result = search_businesses(request, self.directory.businesses.list())
        search_results_count.observe(result.pagination.total)
        return result

    async def search_remote(self, request: SearchRequest) -> SearchResult:
        return await self.content.search_businesses(request)

    async def get_featured_businesses(self, limit: int = FEATURED_DEFAULT_LIMIT) -> list[Business]:
        result = await self.search_businesses(
            SearchRequest(featured=True, sort_by="rating", limit=limit)
        )
        return result.items

    async def get_business_by_id(self, business_id: str) -> Business | None:
        """Any listing, active or not; counts as a view."""
        if business_id not in self.directory.businesses:
            return None
        return await self.mutations.record_view(business_id)

    @enveloped
    async def submit_business(self, payload: BusinessCreate) -> ApiResponse:
        cleaned = self.mutations.validate_submission(payload)
        submission = payload.model_copy(update=cleaned)
        business = await self.content.submit_business(submission)
        return ApiResponse.ok(
            business, message="Business submitted for review", status_code=201
        )

    @enveloped
    async def create_business(self, payload: BusinessCreate) -> ApiResponse:
        business = await self.mutations.create(payload)
        return ApiResponse.ok(business, message="Business created", status_code=201)

    @enveloped
    async def update_business(self, business_id: str, changes: BusinessUpdate) -> Business:
        return await self.mutations.update(business_id, changes)

    @enveloped
    async def soft_delete_business(self, business_id: str) -> ApiResponse:
        business = await self.mutations.soft_delete(business_id)
        return ApiResponse.ok(business, message="Business deactivated")

    @enveloped
    async def claim_business(self, business_id: str, user_id: str) -> Business:
        return await self.mutations.claim(business_id, user_id)

    # -------- reviews --------
    @enveloped
    async def get_reviews(self, business_id: str, limit: int = 50, offset: int = 0):
        return await self.reviews.for_business(business_id, limit=limit, offset=offset)

    @enveloped
    async def create_review(self, business_id: str, payload: ReviewCreate) -> ApiResponse:
        review = await self.reviews.create(business_id, payload)
        return ApiResponse.ok(review, message="Review created", status_code=201)

    @enveloped
    async def update_review(self, review_id: str, changes: ReviewUpdate):
        return await self.reviews.update(review_id, changes)

    @enveloped
    async def delete_review(self, review_id: str) -> ApiResponse:
        review = await self.reviews.delete(review_id)
        return ApiResponse.ok(review, message="Review deleted")

    @enveloped
    async def mark_review_helpful(self, review_id: str):
        return await self.reviews.mark_helpful(review_id)

    @enveloped
    async def respond_to_review(self, review_id: str, reply: ReviewReplyCreate):
        return await self.reviews.respond(review_id, reply)

    # -------- blog --------
    @enveloped
    async def get_blog_posts(
        self, page: int = 1, limit: int | None = None, category: str | None = None
    ) -> ApiResponse:
        wanted = (category or "").strip().lower()
        posts = [
            post
            for post in self.directory.blog_posts.list()
            if post.is_published and (not wanted or post.category.lower() == wanted)
        ]
        posts.sort(key=lambda post: post.publish_date, reverse=True)
        page, limit = clamp_paging(page, limit)
        total = len(posts)
        start = (page - 1) * limit
        pagination = Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit) if total else 0,
        )
        return ApiResponse.ok(posts[start : start + limit], pagination=pagination)

    @enveloped
    async def get_blog_post_by_slug(self, slug: str):
        post = self.directory.blog_post_by_slug(slug)
        if post is None or not post.is_published:
            raise NotFoundError("Blog post", slug)
        post = self.directory.blog_posts.put(
            post.id, post.model_copy(update={"view_count": post.view_count + 1})
        )
        self.analytics.emit(
            AnalyticsEvent(entity_type="blog", entity_id=post.id, event_type="view")
        )
        return post

    # -------- analytics --------
    @enveloped
    async def track_event(self, event: AnalyticsEvent) -> ApiResponse:
        recorded = await self.analytics.record(event)
        return ApiResponse.ok({"recorded": recorded}, status_code=202)

    @enveloped
    async def get_analytics(self, entity_type: EntityType, entity_id: str):
        return await self.analytics.summary(entity_type, entity_id)

    # -------- saved businesses --------
    @enveloped
    async def save_business(self, user_id: str, business_id: str) -> ApiResponse:
        business = await self.saved.save(user_id, business_id)
        return ApiResponse.ok(business, message="Business saved", status_code=201)

    @enveloped
    async def unsave_business(self, user_id: str, business_id: str) -> ApiResponse:
        await self.saved.unsave(user_id, business_id)
        return ApiResponse.ok(message="Business removed from saved list")

    @enveloped
    async def list_saved(self, user_id: str):
        return await self.saved.list_saved(user_id)

    # -------- misc --------
    @enveloped
    async def get_custom_field_definitions(self):
        return definitions_for_display()

    @enveloped
    async def get_directory_stats(self) -> dict[str, Any]:
        active = [business for business in self.directory.businesses.list() if business.is_active]
        rated = [business.rating for business in active if business.rating > 0]
        average = sum(rated) / len(rated) if rated else 0.0
        return {
            "total_businesses": len(active),
            "total_categories": sum(1 for c in self.directory.categories.list() if c.is_active),
            "total_reviews": sum(business.review_count for business in active),
            "average_rating": f"{average:.1f}",
        }


service = DirectoryService()


__all__ = ["DirectoryService", "enveloped", "service"]
