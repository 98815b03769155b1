"""Error taxonomy for the directory data layer."""

from __future__ import annotations


class DirectoryError(Exception):
    """Base class for expected directory failures."""


class NotFoundError(DirectoryError):
    def __init__(self, kind: str, entity_id: str) -> None:
        self.kind = kind
        self.entity_id = str(entity_id)
        super().__init__(f"{kind} not found")


class ValidationError(DirectoryError):
    def __init__(self, message: str, *, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class RemoteUnavailableError(DirectoryError):
    """The remote content service failed; absorbed by the fallback path."""


class RemoteTimeoutError(RemoteUnavailableError):
    """The remote content service did not answer before its timeout."""


__all__ = [
    "DirectoryError",
    "NotFoundError",
    "RemoteTimeoutError",
    "RemoteUnavailableError",
    "ValidationError",
]
