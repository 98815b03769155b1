from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Literal, Protocol, get_args

from .errors import ValidationError
from .settings import settings

logger = logging.getLogger(__name__)

Theme = Literal["light", "dark", "system"]
THEMES: tuple[str, ...] = get_args(Theme)
THEME_KEY = "theme"


class KeyValueStore(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...


class InMemoryKeyValueStore:
    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any | None:
        return self._values.get(key)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value


class JsonFileKeyValueStore:
    """A flat JSON object on disk, rewritten atomically on every ``set``."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError):
            logger.warning("Ignoring unreadable preferences file %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Any | None:
        return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".prefs-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2, sort_keys=True)
            os.replace(tmp, self.path)
        except OSError:
            Path(tmp).unlink(missing_ok=True)
            raise


class ThemePreferences:
    """
    Theme selection passed explicitly to whatever renders the directory.

    The stored value is read once at construction. ``set_theme`` applies the change
    in memory and writes through to the store only when the value actually changes.
    """

    def __init__(self, store: KeyValueStore, default: str | None = None) -> None:
        self.store = store
        self.default = default or settings.THEME_DEFAULT
        stored = store.get(THEME_KEY)
        if stored in THEMES:
            self._theme = str(stored)
        else:
            if stored is not None:
                logger.warning("Ignoring unknown stored theme %r", stored)
            self._theme = self.default

    @property
    def theme(self) -> str:
        return self._theme

    def set_theme(self, theme: str) -> str:
        value = (theme or "").strip().lower()
        if value not in THEMES:
            raise ValidationError(
                f"theme must be one of: {', '.join(THEMES)}", field="theme"
            )
        if value != self._theme:
            self._theme = value
            self.store.set(THEME_KEY, value)
        return self._theme

    def as_dict(self) -> dict[str, Any]:
        return {"theme": self._theme, "available": list(THEMES)}


def load_theme_preferences() -> ThemePreferences:
    return ThemePreferences(JsonFileKeyValueStore(settings.preferences_path))


__all__ = [
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "THEMES",
    "ThemePreferences",
    "load_theme_preferences",
]
