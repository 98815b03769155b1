from __future__ import annotations

from fastapi import APIRouter

from ...contracts import AnalyticsEvent, EntityType
from ...service import service
from ..utils import envelope_response

router = APIRouter(tags=["analytics"])


@router.post("/analytics/events")
async def track_event(event: AnalyticsEvent):
    return envelope_response(await service.track_event(event))


@router.get("/analytics/{entity_type}/{entity_id}")
async def entity_analytics(entity_type: EntityType, entity_id: str):
    return envelope_response(await service.get_analytics(entity_type, entity_id))
