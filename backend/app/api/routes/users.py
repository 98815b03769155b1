from __future__ import annotations

from fastapi import APIRouter

from ...service import service
from ..utils import envelope_response

router = APIRouter(tags=["users"])


@router.get("/users/{user_id}/saved")
async def list_saved(user_id: str):
    return envelope_response(await service.list_saved(user_id))


@router.post("/users/{user_id}/saved/{business_id}")
async def save_business(user_id: str, business_id: str):
    return envelope_response(await service.save_business(user_id, business_id))


@router.delete("/users/{user_id}/saved/{business_id}")
async def unsave_business(user_id: str, business_id: str):
    return envelope_response(await service.unsave_business(user_id, business_id))
