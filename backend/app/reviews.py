from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import func, select

from .contracts import Review, ReviewCreate, ReviewReply, ReviewReplyCreate, ReviewUpdate, utcnow
from .db.core import get_session
from .db.models import ReviewRecord
from .errors import NotFoundError, ValidationError
from .mutations import MutationGateway

logger = logging.getLogger(__name__)


def _aware(value: datetime | None) -> datetime | None:
    # sqlite hands back naive datetimes; everything stored is UTC
    if value is None:
        return None
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def _record_to_review(record: ReviewRecord) -> Review:
    return Review(
        id=record.id,
        business_id=record.business_id,
        user_id=record.user_id,
        user_name=record.user_name,
        rating=record.rating,
        title=record.title,
        content=record.content,
        images=list(record.images or []),
        is_verified=bool(record.is_verified),
        is_helpful=int(record.is_helpful or 0),
        response=ReviewReply.model_validate(record.response) if record.response else None,
        date_created=_aware(record.created_at) or utcnow(),
        date_updated=_aware(record.updated_at),
    )


def _check_rating(rating: Any) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValidationError("rating must be an integer between 1 and 5", field="rating")
    return rating


def _check_content(content: str | None) -> str:
    cleaned = (content or "").strip()
    if not cleaned:
        raise ValidationError("content is required", field="content")
    return cleaned


class ReviewService:
    """
    Reviews live in SQL. After every create, update or delete the parent listing's
    ``rating`` (mean, 2 dp) and ``review_count`` are recomputed and written back.
    """

    def __init__(self, gateway: MutationGateway) -> None:
        self.gateway = gateway

    @property
    def directory(self):
        return self.gateway.directory

    async def _refresh_stats(self, business_id: str) -> tuple[float, int]:
        async with get_session() as session:
            stmt = select(func.count(ReviewRecord.id), func.avg(ReviewRecord.rating)).where(
                ReviewRecord.business_id == business_id
            )
            count, average = (await session.execute(stmt)).one_or_none() or (0, None)
        count = int(count or 0)
        rating = round(float(average), 2) if count and average is not None else 0.0
        if business_id in self.directory.businesses:
            await self.gateway.apply_review_stats(business_id, rating, count)
        return rating, count

    async def create(self, business_id: str, payload: ReviewCreate) -> Review:
        self.directory.businesses.get(business_id)
        rating = _check_rating(payload.rating)
        content = _check_content(payload.content)
        user_id = (payload.user_id or "").strip()
        if not user_id:
            raise ValidationError("user_id is required", field="user_id")
        user = self.directory.users.find(user_id)
        async with get_session() as session:
            record = ReviewRecord(
                business_id=business_id,
                user_id=user_id,
                user_name=payload.user_name or (user.name if user else None),
                rating=rating,
                title=(payload.title or "").strip() or None,
                content=content,
                images=list(payload.images),
                created_at=utcnow(),
            )
            session.add(record)
            await session.commit()
            await session.refresh(record)
        logger.info("Review %s created for business %s", record.id, business_id)
        await self._refresh_stats(business_id)
        return _record_to_review(record)

    async def for_business(
        self, business_id: str, limit: int = 50, offset: int = 0
    ) -> list[Review]:
        self.directory.businesses.get(business_id)
        async with get_session() as session:
            stmt = (
                select(ReviewRecord)
                .where(ReviewRecord.business_id == business_id)
                .order_by(ReviewRecord.created_at.desc())
                .limit(max(1, min(limit, 100)))
                .offset(max(0, offset))
            )
            result = await session.execute(stmt)
            return [_record_to_review(r) for r in result.scalars().all()]

    async def get(self, review_id: str) -> Review:
        async with get_session() as session:
            record = await session.get(ReviewRecord, str(review_id))
        if record is None:
            raise NotFoundError("Review", review_id)
        return _record_to_review(record)

    async def update(self, review_id: str, changes: ReviewUpdate) -> Review:
        supplied = changes.model_dump(exclude_unset=True)
        async with get_session() as session:
            record = await session.get(ReviewRecord, str(review_id))
            if record is None:
                raise NotFoundError("Review", review_id)
            if "rating" in supplied:
                record.rating = _check_rating(supplied["rating"])
            if "content" in supplied:
                record.content = _check_content(supplied["content"])
            if "title" in supplied:
                record.title = (supplied["title"] or "").strip() or None
            if supplied.get("images") is not None:
                record.images = list(supplied["images"])
            record.updated_at = utcnow()
            await session.commit()
            await session.refresh(record)
        await self._refresh_stats(record.business_id)
        return _record_to_review(record)

    async def delete(self, review_id: str) -> Review:
        async with get_session() as session:
            record = await session.get(ReviewRecord, str(review_id))
            if record is None:
                raise NotFoundError("Review", review_id)
            removed = _record_to_review(record)
            await session.delete(record)
            await session.commit()
        logger.info("Review %s deleted", review_id)
        await self._refresh_stats(removed.business_id)
        return removed

    async def mark_helpful(self, review_id: str) -> Review:
        async with get_session() as session:
            record = await session.get(ReviewRecord, str(review_id))
            if record is None:
                raise NotFoundError("Review", review_id)
            record.is_helpful = int(record.is_helpful or 0) + 1
            await session.commit()
            await session.refresh(record)
        return _record_to_review(record)

    async def respond(self, review_id: str, reply: ReviewReplyCreate) -> Review:
        """Attach (or replace) the owner's public response."""
        async with get_session() as session:
            record = await session.get(ReviewRecord, str(review_id))
            if record is None:
                raise NotFoundError("Review", review_id)
            response = ReviewReply(content=reply.content.strip(), author_name=reply.author_name)
            record.response = response.model_dump(mode="json")
            await session.commit()
            await session.refresh(record)
        return _record_to_review(record)


__all__ = ["ReviewService"]
