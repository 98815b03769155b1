"""Typed niche-specific attributes carried on each business listing."""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

from .errors import ValidationError

FieldKind = Literal["text", "select", "multiselect", "number", "boolean"]

_TRUTHY = {"true", "1", "yes", "on"}
_FALSY = {"false", "0", "no", "off"}


class CustomFieldDefinition(BaseModel):
    id: str
    name: str
    key: str
    type: FieldKind
    required: bool = False
    options: list[str] = Field(default_factory=list)
    min: float | None = None
    max: float | None = None
    is_searchable: bool = False
    is_filterable: bool = False
    display_order: int = 0


class TextValue(BaseModel):
    kind: Literal["text"] = "text"
    value: str


class SelectValue(BaseModel):
    kind: Literal["select"] = "select"
    value: str


class MultiSelectValue(BaseModel):
    kind: Literal["multiselect"] = "multiselect"
    value: list[str]


class NumberValue(BaseModel):
    kind: Literal["number"] = "number"
    value: float


class BooleanValue(BaseModel):
    kind: Literal["boolean"] = "boolean"
    value: bool


CustomFieldValue = Annotated[
    TextValue | SelectValue | MultiSelectValue | NumberValue | BooleanValue,
    Field(discriminator="kind"),
]


class TypedCustomFields(BaseModel):
    known: dict[str, CustomFieldValue] = Field(default_factory=dict)
    # keys without a definition pass through untouched
    extra: dict[str, Any] = Field(default_factory=dict)

    def as_plain(self) -> dict[str, Any]:
        plain: dict[str, Any] = {key: entry.value for key, entry in self.known.items()}
        for key, value in self.extra.items():
            plain.setdefault(key, value)
        return plain


DEFINITIONS: list[CustomFieldDefinition] = [
    CustomFieldDefinition(
        id="1",
        name="Cuisine Type",
        key="cuisineType",
        type="select",
        options=[
            "Italian",
            "Chinese",
            "Japanese",
            "Mexican",
            "Indian",
            "Thai",
            "French",
            "American",
        ],
        is_searchable=True,
        is_filterable=True,
        display_order=1,
    ),
    CustomFieldDefinition(
        id="2",
        name="Average Meal Price",
        key="averageMealPrice",
        type="number",
        min=5,
        max=200,
        is_filterable=True,
        display_order=2,
    ),
    CustomFieldDefinition(
        id="3",
        name="Booking Required",
        key="bookingRequired",
        type="boolean",
        is_filterable=True,
        display_order=3,
    ),
    CustomFieldDefinition(
        id="4",
        name="Dietary Options",
        key="dietaryOptions",
        type="multiselect",
        options=["Vegetarian", "Vegan", "Gluten-Free", "Halal", "Kosher", "Dairy-Free"],
        is_filterable=True,
        display_order=4,
    ),
]


def _fail(definition: CustomFieldDefinition, message: str) -> ValidationError:
    return ValidationError(f"{definition.name} {message}", field=f"custom_fields.{definition.key}")


def _coerce_number(definition: CustomFieldDefinition, raw: Any) -> NumberValue:
    if isinstance(raw, bool):
        raise _fail(definition, "must be a number")
    try:
        number = float(raw)
    except (TypeError, ValueError):
        raise _fail(definition, "must be a number") from None
    if definition.min is not None and number < definition.min:
        raise _fail(definition, f"must be >= {definition.min:g}")
    if definition.max is not None and number > definition.max:
        raise _fail(definition, f"must be <= {definition.max:g}")
    return NumberValue(value=number)


def _coerce_boolean(definition: CustomFieldDefinition, raw: Any) -> BooleanValue:
    if isinstance(raw, bool):
        return BooleanValue(value=raw)
    text = str(raw).strip().lower()
    if text in _TRUTHY:
        return BooleanValue(value=True)
    if text in _FALSY:
        return BooleanValue(value=False)
    raise _fail(definition, "must be true or false")


def _coerce_choice(definition: CustomFieldDefinition, raw: Any) -> str:
    choice = str(raw).strip()
    if definition.options and choice not in definition.options:
        raise _fail(definition, f"must be one of: {', '.join(definition.options)}")
    return choice


def coerce_value(definition: CustomFieldDefinition, raw: Any) -> CustomFieldValue:
    """Convert a raw submitted value into the typed value for its definition."""
    if definition.type == "number":
        return _coerce_number(definition, raw)
    if definition.type == "boolean":
        return _coerce_boolean(definition, raw)
    if definition.type == "select":
        return SelectValue(value=_coerce_choice(definition, raw))
    if definition.type == "multiselect":
        items = [raw] if isinstance(raw, str) else raw
        if not isinstance(items, list | tuple | set):
            raise _fail(definition, "must be a list of options")
        chosen: list[str] = []
        for item in items:
            choice = _coerce_choice(definition, item)
            if choice not in chosen:
                chosen.append(choice)
        return MultiSelectValue(value=chosen)
    return TextValue(value=str(raw).strip())


def coerce_custom_fields(
    raw: dict[str, Any] | None,
    definitions: list[CustomFieldDefinition] | None = None,
) -> TypedCustomFields:
    """Split a raw custom-field map into typed known values and untyped extras.

    Raises ``ValidationError`` when a defined field carries a value of the wrong type,
    an unknown option, or a number outside its range, and when a required field is
    missing. ``None`` values are treated as absent.
    """
    defs = {definition.key: definition for definition in (definitions or DEFINITIONS)}
    typed = TypedCustomFields()
    for key, value in (raw or {}).items():
        if value is None:
            continue
        definition = defs.get(key)
        if definition is None:
            typed.extra[key] = value
            continue
        typed.known[key] = coerce_value(definition, value)
    for definition in defs.values():
        if definition.required and definition.key not in typed.known:
            raise _fail(definition, "is required")
    return typed


def definitions_for_display() -> list[CustomFieldDefinition]:
    return sorted(DEFINITIONS, key=lambda definition: definition.display_order)


__all__ = [
    "DEFINITIONS",
    "BooleanValue",
    "CustomFieldDefinition",
    "CustomFieldValue",
    "MultiSelectValue",
    "NumberValue",
    "SelectValue",
    "TextValue",
    "TypedCustomFields",
    "coerce_custom_fields",
    "coerce_value",
    "definitions_for_display",
]
