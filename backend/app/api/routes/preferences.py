from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ...contracts import ApiResponse
from ...errors import ValidationError
from ...preferences import ThemePreferences, load_theme_preferences
from ..utils import envelope_response, ok

router = APIRouter(tags=["preferences"])

_theme_preferences: ThemePreferences | None = None


def get_theme_preferences() -> ThemePreferences:
    """Loaded on first use, then shared by every request."""
    global _theme_preferences
    if _theme_preferences is None:
        _theme_preferences = load_theme_preferences()
    return _theme_preferences


class ThemeUpdate(BaseModel):
    theme: str


@router.get("/preferences/theme")
def read_theme(prefs: ThemePreferences = Depends(get_theme_preferences)):
    return ok(prefs.as_dict())


@router.put("/preferences/theme")
def update_theme(
    payload: ThemeUpdate, prefs: ThemePreferences = Depends(get_theme_preferences)
):
    try:
        prefs.set_theme(payload.theme)
    except ValidationError as exc:
        return envelope_response(ApiResponse.fail(str(exc), field=exc.field, status_code=422))
    return ok(prefs.as_dict(), message="Theme updated")
