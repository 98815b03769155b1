from __future__ import annotations

import json

import pytest
from backend.app.errors import ValidationError
from backend.app.preferences import (
    THEMES,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    ThemePreferences,
)


class CountingStore(InMemoryKeyValueStore):
    def __init__(self, initial=None):
        super().__init__(initial)
        self.writes = 0

    def set(self, key, value):
        self.writes += 1
        super().set(key, value)


def test_default_theme_when_nothing_stored():
    prefs = ThemePreferences(InMemoryKeyValueStore(), default="light")
    assert prefs.theme == "light"
    assert prefs.as_dict() == {"theme": "light", "available": list(THEMES)}


def test_stored_theme_is_loaded():
    prefs = ThemePreferences(InMemoryKeyValueStore({"theme": "dark"}), default="light")
    assert prefs.theme == "dark"


def test_unknown_stored_theme_falls_back_to_default():
    prefs = ThemePreferences(InMemoryKeyValueStore({"theme": "neon"}), default="system")
    assert prefs.theme == "system"


def test_store_written_only_on_change():
    store = CountingStore()
    prefs = ThemePreferences(store, default="light")
    prefs.set_theme("light")
    assert store.writes == 0
    assert prefs.set_theme(" DARK ") == "dark"
    prefs.set_theme("dark")
    assert store.writes == 1
    assert store.get("theme") == "dark"


def test_invalid_theme_is_rejected():
    store = CountingStore()
    prefs = ThemePreferences(store, default="light")
    with pytest.raises(ValidationError) as excinfo:
        prefs.set_theme("sepia")
    assert excinfo.value.field == "theme"
    assert prefs.theme == "light"
    assert store.writes == 0


def test_json_file_store_persists_across_instances(tmp_path):
    path = tmp_path / "prefs" / "preferences.json"
    ThemePreferences(JsonFileKeyValueStore(path), default="light").set_theme("dark")

    assert json.loads(path.read_text(encoding="utf-8")) == {"theme": "dark"}
    reloaded = ThemePreferences(JsonFileKeyValueStore(path), default="light")
    assert reloaded.theme == "dark"
    assert list(path.parent.glob(".prefs-*")) == []


def test_json_file_store_keeps_other_keys(tmp_path):
    path = tmp_path / "preferences.json"
    path.write_text(json.dumps({"locale": "en-AU"}), encoding="utf-8")
    store = JsonFileKeyValueStore(path)
    store.set("theme", "system")
    assert json.loads(path.read_text(encoding="utf-8")) == {"locale": "en-AU", "theme": "system"}


def test_unreadable_file_is_ignored(tmp_path):
    path = tmp_path / "preferences.json"
    path.write_text("{not json", encoding="utf-8")
    prefs = ThemePreferences(JsonFileKeyValueStore(path), default="light")
    assert prefs.theme == "light"
    prefs.set_theme("dark")
    assert JsonFileKeyValueStore(path).get("theme") == "dark"
