from __future__ import annotations

from fastapi import APIRouter, Query

from ...contracts import (
    BusinessCreate,
    BusinessFilters,
    BusinessUpdate,
    ClaimRequest,
    SearchRequest,
)
from ...service import service
from ..types import (
    CategoryIds,
    Latitude,
    Limit,
    Longitude,
    Page,
    PriceRanges,
    RadiusKm,
    RatingFloor,
    SearchText,
    SortParam,
    StatusFilter,
)
from ..utils import envelope_response, not_found, ok, split_multi

router = APIRouter(tags=["businesses"])


@router.get("/businesses")
async def list_businesses(
    category: str | None = None,
    status: StatusFilter = None,
    featured: bool | None = None,
    limit: int | None = Query(None, ge=1),
):
    filters = BusinessFilters(category=category, status=status, featured=featured, limit=limit)
    return ok(await service.get_businesses(filters))


@router.get("/businesses/search")
async def search_businesses(
    q: SearchText = None,
    category: CategoryIds = None,
    price: PriceRanges = None,
    rating: RatingFloor = 0.0,
    radius: RadiusKm = None,
    lat: Latitude = None,
    lng: Longitude = None,
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
        radius=radius,
        latitude=lat,
        longitude=lng,
        featured=featured,
        verified=verified,
        sort_by=sort_by,
        page=page,
        limit=limit,
    )
    result = await service.search_businesses(request)
    return ok(result.items, pagination=result.pagination)


@router.get("/businesses/featured")
async def featured_businesses(limit: int = Query(6, ge=1, le=50)):
    return ok(await service.get_featured_businesses(limit))


@router.post("/businesses/submit")
async def submit_business(payload: BusinessCreate):
    return envelope_response(await service.submit_business(payload))


@router.post("/businesses")
async def create_business(payload: BusinessCreate):
    return envelope_response(await service.create_business(payload))


@router.get("/businesses/{business_id}")
async def get_business(business_id: str):
    business = await service.get_business_by_id(business_id)
    if business is None:
        return not_found("Business")
    return ok(business)


@router.patch("/businesses/{business_id}")
async def update_business(business_id: str, changes: BusinessUpdate):
    return envelope_response(await service.update_business(business_id, changes))


@router.delete("/businesses/{business_id}")
async def delete_business(business_id: str):
    return envelope_response(await service.soft_delete_business(business_id))


@router.post("/businesses/{business_id}/claim")
async def claim_business(business_id: str, payload: ClaimRequest):
    return envelope_response(await service.claim_business(business_id, payload.user_id))
