"""Copy the in-memory directory into SQL so reviews, saves and analytics can join against it."""

from __future__ import annotations

import logging

from .contracts import Business
from .custom_fields import DEFINITIONS
from .db.core import get_session
from .db.models import (
    BlogPostRecord,
    BusinessRecord,
    CategoryRecord,
    CustomFieldRecord,
    UserRecord,
)
from .metrics import db_operations_total
from .storage import Directory

logger = logging.getLogger(__name__)


def _apply_business(record: BusinessRecord, business: Business) -> None:
    record.slug = business.slug
    record.name = business.name
    record.category_id = business.category_id
    record.status = business.status
    record.is_active = business.is_active
    record.rating = business.rating
    record.review_count = business.review_count
    record.payload = business.model_dump(mode="json")


async def mirror_business(business: Business) -> bool:
    """Upsert one listing; failures are logged and reported as ``False``."""
    try:
        async with get_session() as session:
            record = await session.get(BusinessRecord, business.id)
            if record is None:
                record = BusinessRecord(id=business.id)
                session.add(record)
            _apply_business(record, business)
            await session.commit()
    except Exception:
        logger.exception("Failed to mirror business %s into SQL store", business.id)
        db_operations_total.labels(operation="mirror_business", status="error").inc()
        return False
    db_operations_total.labels(operation="mirror_business", status="ok").inc()
    return True


async def mirror_directory(directory: Directory) -> bool:
    """Upsert every category, listing, blog post, user and custom-field definition."""
    try:
        async with get_session() as session:
            for category in directory.categories.list():
                record = await session.get(CategoryRecord, category.id)
                if record is None:
                    record = CategoryRecord(id=category.id)
                    session.add(record)
                record.slug = category.slug
                record.name = category.name
                record.icon = category.icon
                record.description = category.description
                record.parent_id = category.parent_id
                record.is_active = category.is_active
                record.sort_order = category.sort_order

            for business in directory.businesses.list():
                record = await session.get(BusinessRecord, business.id)
                if record is None:
                    record = BusinessRecord(id=business.id)
                    session.add(record)
                _apply_business(record, business)

            for post in directory.blog_posts.list():
                record = await session.get(BlogPostRecord, post.id)
                if record is None:
                    record = BlogPostRecord(id=post.id)
                    session.add(record)
                record.slug = post.slug
                record.title = post.title
                record.business_id = post.business_id
                record.is_published = post.is_published
                record.payload = post.model_dump(mode="json")

            for user in directory.users.list():
                record = await session.get(UserRecord, user.id)
                if record is None:
                    record = UserRecord(id=user.id)
                    session.add(record)
                record.email = user.email
                record.name = user.name
                record.role = user.role
                record.is_active = user.is_active

            for definition in DEFINITIONS:
                record = await session.get(CustomFieldRecord, definition.id)
                if record is None:
                    record = CustomFieldRecord(id=definition.id)
                    session.add(record)
                record.key = definition.key
                record.name = definition.name
                record.type = definition.type
                record.definition = definition.model_dump(mode="json")

            await session.commit()
    except Exception:
        logger.exception("Failed to mirror directory into SQL store; continuing in memory")
        db_operations_total.labels(operation="mirror_directory", status="error").inc()
        return False
    db_operations_total.labels(operation="mirror_directory", status="ok").inc()
    logger.info(
        "Mirrored directory into SQL store: %d businesses, %d categories",
        len(directory.businesses),
        len(directory.categories),
    )
    return True


__all__ = ["mirror_business", "mirror_directory"]
