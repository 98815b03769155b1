from __future__ import annotations

from fastapi import APIRouter

from ...service import service
from ..utils import envelope_response

router = APIRouter(tags=["directory"])


@router.get("/stats")
async def directory_stats():
    return envelope_response(await service.get_directory_stats())


@router.get("/custom-fields")
async def custom_field_definitions():
    return envelope_response(await service.get_custom_field_definitions())
