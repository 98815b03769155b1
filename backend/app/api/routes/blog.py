from __future__ import annotations

from fastapi import APIRouter

from ...service import service
from ..types import Limit, Page
from ..utils import envelope_response

router = APIRouter(tags=["blog"])


@router.get("/blog")
async def list_blog_posts(page: Page = 1, limit: Limit = None, category: str | None = None):
    return envelope_response(
        await service.get_blog_posts(page=page, limit=limit, category=category)
    )


@router.get("/blog/{slug}")
async def get_blog_post(slug: str):
    return envelope_response(await service.get_blog_post_by_slug(slug))
