from __future__ import annotations

from fastapi import APIRouter, Query

from ...contracts import ReviewCreate, ReviewReplyCreate, ReviewUpdate
from ...service import service
from ..utils import envelope_response

router = APIRouter(tags=["reviews"])


@router.get("/businesses/{business_id}/reviews")
async def list_reviews(
    business_id: str,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    return envelope_response(await service.get_reviews(business_id, limit=limit, offset=offset))


@router.post("/businesses/{business_id}/reviews")
async def create_review(business_id: str, payload: ReviewCreate):
    return envelope_response(await service.create_review(business_id, payload))


@router.patch("/reviews/{review_id}")
async def update_review(review_id: str, changes: ReviewUpdate):
    return envelope_response(await service.update_review(review_id, changes))


@router.delete("/reviews/{review_id}")
async def delete_review(review_id: str):
    return envelope_response(await service.delete_review(review_id))


@router.post("/reviews/{review_id}/helpful")
async def mark_helpful(review_id: str):
    return envelope_response(await service.mark_review_helpful(review_id))


@router.post("/reviews/{review_id}/response")
async def respond(review_id: str, reply: ReviewReplyCreate):
    return envelope_response(await service.respond_to_review(review_id, reply))
