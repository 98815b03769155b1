from __future__ import annotations

from fastapi import APIRouter

from ...service import service
from ..types import Limit, Page
from ..utils import envelope_response, ok

router = APIRouter(tags=["categories"])


@router.get("/categories")
async def list_categories():
    return ok(await service.get_categories())


@router.get("/categories/{ref}")
async def get_category(ref: str):
    return envelope_response(await service.get_category(ref))


@router.get("/categories/{ref}/businesses")
async def category_businesses(ref: str, page: Page = 1, limit: Limit = None):
    return envelope_response(await service.get_businesses_by_category(ref, page=page, limit=limit))
