"""Shared input sanitizers for directory payloads."""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterable

NAME_MAX_LENGTH = 120
ADDRESS_MAX_LENGTH = 255
TAG_MAX = 20
TAG_MAX_LENGTH = 40
PHONE_PATTERN = re.compile(r"^[0-9+()\-\.\s]{6,32}$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
URL_PATTERN = re.compile(r"^https?://[^\s/$.?#][^\s]*$", re.IGNORECASE)
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def _squash_whitespace(text: str) -> str:
    return " ".join(text.split())


def slugify(value: str, *, fallback: str = "listing") -> str:
    """Lowercase, fold accents, collapse non-alphanumeric runs into single hyphens."""
    folded = unicodedata.normalize("NFKD", value or "").encode("ascii", "ignore").decode("ascii")
    slug = _NON_ALNUM.sub("-", folded.lower()).strip("-")
    return slug or fallback


def normalize_display_name(value: str, *, field: str = "name") -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field} must be a string")
    cleaned = _squash_whitespace(value.strip())
    if not cleaned:
        raise ValueError(f"{field} cannot be blank")
    if len(cleaned) > NAME_MAX_LENGTH:
        raise ValueError(f"{field} must be <= {NAME_MAX_LENGTH} characters")
    return cleaned


def normalize_address(value: str) -> str:
    cleaned = _squash_whitespace((value or "").strip())
    if not cleaned:
        raise ValueError("address cannot be blank")
    if len(cleaned) > ADDRESS_MAX_LENGTH:
        raise ValueError(f"address must be <= {ADDRESS_MAX_LENGTH} characters")
    return cleaned


def normalize_phone(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    if not cleaned:
        return None
    if not PHONE_PATTERN.fullmatch(cleaned):
        raise ValueError(
            "phone must contain digits, spaces, '.', '-', '()' or '+' and be 6-32 characters"
        )
    return cleaned


def normalize_email(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip().lower()
    if not cleaned:
        return None
    if not EMAIL_PATTERN.fullmatch(cleaned):
        raise ValueError("email must look like name@example.com")
    return cleaned


def normalize_url(value: str | None, *, field: str = "website") -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    if not cleaned:
        return None
    if not URL_PATTERN.fullmatch(cleaned):
        raise ValueError(f"{field} must be an http(s) URL")
    return cleaned


def normalize_tags(
    items: Iterable[str] | None,
    *,
    max_items: int = TAG_MAX,
    max_length: int = TAG_MAX_LENGTH,
) -> list[str]:
    """Trim, de-duplicate (case-insensitively) and bound a tag list, keeping first-seen order."""
    if not items:
        return []
    cleaned: list[str] = []
    seen: set[str] = set()
    for raw in items:
        if not isinstance(raw, str):
            continue
        entry = _squash_whitespace(raw.strip())
        if not entry or entry.lower() in seen:
            continue
        if len(entry) > max_length:
            raise ValueError(f"tag '{entry[:20]}...' must be <= {max_length} characters")
        seen.add(entry.lower())
        cleaned.append(entry)
        if len(cleaned) > max_items:
            raise ValueError(f"tags accepts at most {max_items} entries")
    return cleaned


__all__ = [
    "ADDRESS_MAX_LENGTH",
    "NAME_MAX_LENGTH",
    "normalize_address",
    "normalize_display_name",
    "normalize_email",
    "normalize_phone",
    "normalize_tags",
    "normalize_url",
    "slugify",
]
