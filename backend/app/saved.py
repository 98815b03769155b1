from __future__ import annotations

import logging

from sqlalchemy import delete, select

from .analytics import AnalyticsRecorder
from .contracts import AnalyticsEvent, Business
from .db.core import get_session
from .db.models import SavedBusinessRecord
from .errors import NotFoundError, ValidationError
from .storage import Directory

logger = logging.getLogger(__name__)


class SavedBusinesses:
    """Per-user bookmarks. Saving twice is a no-op; listings are resolved from the live store."""

    def __init__(self, directory: Directory, analytics: AnalyticsRecorder) -> None:
        self.directory = directory
        self.analytics = analytics

    @staticmethod
    def _user(user_id: str) -> str:
        cleaned = (user_id or "").strip()
        if not cleaned:
            raise ValidationError("user_id is required", field="user_id")
        return cleaned

    async def save(self, user_id: str, business_id: str) -> Business:
        user_id = self._user(user_id)
        business = self.directory.businesses.get(business_id)
        async with get_session() as session:
            existing = await session.execute(
                select(SavedBusinessRecord.id)
                .where(SavedBusinessRecord.user_id == user_id)
                .where(SavedBusinessRecord.business_id == business.id)
            )
            if existing.scalar_one_or_none() is None:
                session.add(SavedBusinessRecord(user_id=user_id, business_id=business.id))
                await session.commit()
                self.analytics.emit(
                    AnalyticsEvent(
                        entity_type="business",
                        entity_id=business.id,
                        event_type="save",
                        user_id=user_id,
                    )
                )
        return business

    async def unsave(self, user_id: str, business_id: str) -> bool:
        user_id = self._user(user_id)
        async with get_session() as session:
            result = await session.execute(
                delete(SavedBusinessRecord)
                .where(SavedBusinessRecord.user_id == user_id)
                .where(SavedBusinessRecord.business_id == str(business_id))
            )
            await session.commit()
        if not result.rowcount:
            raise NotFoundError("Saved business", business_id)
        return True

    async def list_saved(self, user_id: str) -> list[Business]:
        user_id = self._user(user_id)
        async with get_session() as session:
            rows = await session.execute(
                select(SavedBusinessRecord.business_id)
                .where(SavedBusinessRecord.user_id == user_id)
                .order_by(SavedBusinessRecord.created_at.desc(), SavedBusinessRecord.id.desc())
            )
            business_ids = [str(value) for value in rows.scalars().all()]
        saved: list[Business] = []
        for business_id in business_ids:
            business = self.directory.businesses.find(business_id)
            if business is None:
                # store was reset since the bookmark was made
                logger.debug("Skipping saved business %s missing from directory", business_id)
                continue
            saved.append(business)
        return saved


__all__ = ["SavedBusinesses"]
