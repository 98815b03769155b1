"""Reads served by the remote content service, or by the built-in sample when it is down."""

from __future__ import annotations

from fastapi import APIRouter

from ...contracts import SearchRequest
from ...service import service
from ..types import CategoryIds, Limit, Page, PriceRanges, RatingFloor, SearchText, SortParam
from ..utils import ok, split_multi

router = APIRouter(tags=["content"])


@router.get("/content/search")
async def search_content(
    q: SearchText = None,
    category: CategoryIds = None,
    price: PriceRanges = None,
    rating: RatingFloor = 0.0,
    featured: bool = False,
    verified: bool = False,
    sort_by: SortParam = None,
    page: Page = 1,
    limit: Limit = None,
):
    request = SearchRequest(
        query=q,
        category_ids=split_multi(category),
        price_ranges=set(price or ()),
        rating=rating,
        featured=featured,
        verified=verified,
        sort_by=sort_by,
        page=page,
        limit=limit,
    )
    result = await service.search_remote(request)
    return ok(result.items, pagination=result.pagination)
