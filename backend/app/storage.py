from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Generic, TypeVar

from pydantic import BaseModel

from .contracts import BlogPost, Business, Category, User
from .errors import NotFoundError
from .seed import sample_blog_posts, sample_businesses, sample_categories, sample_users

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=BaseModel)


class EntityStore(Generic[E]):
    """
    Insertion-ordered records keyed by id. Lookups other than by id are full scans;
    the directory holds tens to low thousands of listings.
    """

    def __init__(self, kind: str, entities: Iterable[E] = ()) -> None:
        self.kind = kind
        self._records: dict[str, E] = {}
        for entity in entities:
            self.put(entity.id, entity)  # type: ignore[attr-defined]

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, entity_id: object) -> bool:
        return str(entity_id) in self._records

    def get(self, entity_id: str) -> E:
        record = self._records.get(str(entity_id))
        if record is None:
            raise NotFoundError(self.kind, entity_id)
        return record

    def find(self, entity_id: str) -> E | None:
        return self._records.get(str(entity_id))

    def find_by(self, predicate: Callable[[E], bool]) -> E | None:
        for record in self._records.values():
            if predicate(record):
                return record
        return None

    def list(self) -> list[E]:
        return list(self._records.values())

    def put(self, entity_id: str, entity: E) -> E:
        # replacing an existing id keeps its original insertion slot
        self._records[str(entity_id)] = entity
        return entity

    def deactivate(self, entity_id: str, **changes: object) -> E:
        current = self.get(entity_id)
        if not hasattr(current, "is_active"):
            raise TypeError(f"{self.kind} records cannot be deactivated")
        updated = current.model_copy(update={"is_active": False, **changes})
        return self.put(entity_id, updated)


class Directory:
    """The live directory: one store per entity kind, seeded from the sample data."""

    def __init__(
        self,
        businesses: Iterable[Business] | None = None,
        categories: Iterable[Category] | None = None,
        blog_posts: Iterable[BlogPost] | None = None,
        users: Iterable[User] | None = None,
    ) -> None:
        self.businesses: EntityStore[Business]
        self.categories: EntityStore[Category]
        self.blog_posts: EntityStore[BlogPost]
        self.users: EntityStore[User]
        self.load(businesses, categories, blog_posts, users)

    def load(
        self,
        businesses: Iterable[Business] | None = None,
        categories: Iterable[Category] | None = None,
        blog_posts: Iterable[BlogPost] | None = None,
        users: Iterable[User] | None = None,
    ) -> None:
        self.businesses = EntityStore(
            "Business", sample_businesses() if businesses is None else businesses
        )
        self.categories = EntityStore(
            "Category", sample_categories() if categories is None else categories
        )
        self.blog_posts = EntityStore(
            "Blog post", sample_blog_posts() if blog_posts is None else blog_posts
        )
        self.users = EntityStore("User", sample_users() if users is None else users)
        logger.debug(
            "Directory loaded: %d businesses, %d categories, %d blog posts",
            len(self.businesses),
            len(self.categories),
            len(self.blog_posts),
        )

    def reset(self) -> None:
        """Reload the sample data, discarding every in-memory change."""
        self.load()

    # -------- categories --------
    def ordered_categories(self) -> list[Category]:
        indexed = list(enumerate(self.categories.list()))
        indexed.sort(key=lambda pair: (pair[1].sort_order, pair[0]))
        return [category for _, category in indexed]

    def resolve_category(self, ref: str | None) -> Category | None:
        """Find a category by id, slug or (case-insensitive) display name."""
        if not ref:
            return None
        key = str(ref).strip()
        direct = self.categories.find(key)
        if direct is not None:
            return direct
        lowered = key.lower()
        return self.categories.find_by(
            lambda category: category.slug == lowered or category.name.lower() == lowered
        )

    # -------- businesses --------
    def business_slugs(self) -> set[str]:
        return {business.slug for business in self.businesses.list()}

    def active_count(self, category_id: str) -> int:
        return sum(
            1
            for business in self.businesses.list()
            if business.is_active and business.category_id == category_id
        )

    # -------- blog --------
    def blog_post_by_slug(self, slug: str) -> BlogPost | None:
        lowered = str(slug).strip().lower()
        return self.blog_posts.find_by(lambda post: post.slug == lowered)


__all__ = ["Directory", "EntityStore"]
