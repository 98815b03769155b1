from __future__ import annotations

import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)

from .core import Base


class CategoryRecord(Base):
    __tablename__ = "categories"

    id = Column(String(64), primary_key=True)
    slug = Column(String(128), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    icon = Column(String(32), nullable=True)
    description = Column(Text, nullable=True)
    parent_id = Column(String(64), ForeignKey("categories.id"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default=text("1"))
    sort_order = Column(Integer, nullable=False, default=0, server_default=text("0"))


class BusinessRecord(Base):
    """SQL mirror of a listing; the full record lives in ``payload``."""

    __tablename__ = "businesses"

    id = Column(String(64), primary_key=True)
    slug = Column(String(160), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    category_id = Column(String(64), ForeignKey("categories.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="active", server_default=text("'active'"))
    is_active = Column(Boolean, nullable=False, default=True, server_default=text("1"))
    rating = Column(Float, nullable=False, default=0.0, server_default=text("0"))
    review_count = Column(Integer, nullable=False, default=0, server_default=text("0"))
    payload = Column(JSON, nullable=False, server_default=text("'{}'"))
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("rating >= 0 AND rating <= 5", name="ck_business_rating"),
        CheckConstraint("review_count >= 0", name="ck_business_review_count"),
    )


class ReviewRecord(Base):
    __tablename__ = "reviews"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    business_id = Column(
        String(64), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(String(128), nullable=False, index=True)
    user_name = Column(String(255), nullable=True)
    rating = Column(Integer, nullable=False)
    title = Column(String(255), nullable=True)
    content = Column(Text, nullable=False)
    images = Column(JSON, nullable=False, default=list, server_default=text("'[]'"))
    is_verified = Column(Boolean, nullable=False, default=False, server_default=text("0"))
    is_helpful = Column(Integer, nullable=False, default=0, server_default=text("0"))
    response = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (CheckConstraint("rating >= 1 AND rating <= 5", name="ck_review_rating"),)


class BlogPostRecord(Base):
    __tablename__ = "blog_posts"

    id = Column(String(64), primary_key=True)
    slug = Column(String(160), nullable=False, unique=True, index=True)
    title = Column(String(255), nullable=False)
    business_id = Column(String(64), ForeignKey("businesses.id"), nullable=True)
    is_published = Column(Boolean, nullable=False, default=False, server_default=text("0"))
    payload = Column(JSON, nullable=False, server_default=text("'{}'"))


class UserRecord(Base):
    __tablename__ = "users"

    id = Column(String(128), primary_key=True)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default="user", server_default=text("'user'"))
    is_active = Column(Boolean, nullable=False, default=True, server_default=text("1"))
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class AnalyticsRecord(Base):
    __tablename__ = "analytics"

    id = Column(Integer, primary_key=True, autoincrement=True)
    entity_type = Column(String(32), nullable=False)
    entity_id = Column(String(64), nullable=False)
    event_type = Column(String(32), nullable=False)
    user_id = Column(String(128), nullable=True)
    # "metadata" is reserved on declarative classes
    event_metadata = Column("metadata", JSON, nullable=True)
    occurred_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (Index("ix_analytics_entity", "entity_type", "entity_id"),)


class SavedBusinessRecord(Base):
    __tablename__ = "saved_businesses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(128), nullable=False, index=True)
    business_id = Column(
        String(64), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False
    )
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (UniqueConstraint("user_id", "business_id", name="uq_saved_business"),)


class CustomFieldRecord(Base):
    __tablename__ = "custom_fields"

    id = Column(String(64), primary_key=True)
    key = Column(String(64), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False)
    definition = Column(JSON, nullable=False, server_default=text("'{}'"))
