"""Unit model: the polymorphic content records kept in a storage.

Units are plain dictionaries tagged by their ``type`` key. The set of tags is
closed, and every place that needs per-type behavior (equality here, records in
``unitstore.codec``) switches over it exhaustively.
"""

from __future__ import annotations

import uuid
from typing import Any, Literal, TypedDict, Union

from unitstore.errors import InvalidUnitError

UnitType = Literal["unit", "plain-text", "markdown-text", "code-text", "todo", "list"]

TYPE_UNIT: UnitType = "unit"
TYPE_TEXT_PLAIN: UnitType = "plain-text"
TYPE_TEXT_MARKDOWN: UnitType = "markdown-text"
TYPE_TEXT_CODE: UnitType = "code-text"
TYPE_TODO: UnitType = "todo"
TYPE_LIST: UnitType = "list"

UNIT_TYPES: tuple[UnitType, ...] = (
    TYPE_UNIT,
    TYPE_TEXT_PLAIN,
    TYPE_TEXT_MARKDOWN,
    TYPE_TEXT_CODE,
    TYPE_TODO,
    TYPE_LIST,
)

TEXT_TYPES: tuple[UnitType, ...] = (TYPE_TEXT_PLAIN, TYPE_TEXT_MARKDOWN)


class Unit(TypedDict):
    """Fields shared by every unit variant.

    Attributes:
        id: Identifier, unique within a storage once saved.
        type: One of UNIT_TYPES.
        title: Human readable title, may be empty.
    """

    id: str
    type: UnitType
    title: str


class TextUnit(Unit):
    """Plain or markdown text unit."""

    data: str


class CodeUnit(TextUnit):
    """Source code unit with its language tag."""

    language: str


class TodoItem(TypedDict):
    """Single entry of a todo unit.

    Attributes:
        data: The task description.
        done: Whether the task is finished.
    """

    data: str
    done: bool


class TodoUnit(Unit):
    """Unit holding an ordered list of todo items."""

    items: list[TodoItem]


class ListUnit(Unit):
    """Composite unit holding an ordered list of child units."""

    items: list[AnyUnit]


AnyUnit = Union[Unit, TextUnit, CodeUnit, TodoUnit, ListUnit]


def generate_unit_id() -> str:
    """Return a new random unit identifier."""
    return uuid.uuid4().hex


def _base(unit_type: UnitType, title: str, unit_id: str | None) -> dict[str, Any]:
    return {
        "id": unit_id if unit_id is not None else generate_unit_id(),
        "type": unit_type,
        "title": title,
    }


def new_unit(title: str = "", unit_id: str | None = None) -> Unit:
    """Create a plain unit with no payload."""
    return _base(TYPE_UNIT, title, unit_id)  # type: ignore[return-value]


def new_text_plain(title: str = "", data: str = "", unit_id: str | None = None) -> TextUnit:
    """Create a plain text unit."""
    unit = _base(TYPE_TEXT_PLAIN, title, unit_id)
    unit["data"] = data
    return unit  # type: ignore[return-value]


def new_text_markdown(
    title: str = "", data: str = "", unit_id: str | None = None
) -> TextUnit:
    """Create a markdown text unit."""
    unit = _base(TYPE_TEXT_MARKDOWN, title, unit_id)
    unit["data"] = data
    return unit  # type: ignore[return-value]


def new_text_code(
    title: str = "",
    data: str = "",
    language: str = "",
    unit_id: str | None = None,
) -> CodeUnit:
    """Create a source code unit."""
    unit = _base(TYPE_TEXT_CODE, title, unit_id)
    unit["data"] = data
    unit["language"] = language
    return unit  # type: ignore[return-value]


def new_todo_item(data: str = "", done: bool = False) -> TodoItem:
    """Create a single todo item."""
    return {"data": data, "done": done}


def new_todo(
    title: str = "",
    items: list[TodoItem] | None = None,
    unit_id: str | None = None,
) -> TodoUnit:
    """Create a todo unit, optionally with initial items."""
    unit = _base(TYPE_TODO, title, unit_id)
    unit["items"] = list(items) if items else []
    return unit  # type: ignore[return-value]


def new_list(
    title: str = "",
    items: list[AnyUnit] | None = None,
    unit_id: str | None = None,
) -> ListUnit:
    """Create a list unit, optionally with initial children."""
    unit = _base(TYPE_LIST, title, unit_id)
    unit["items"] = list(items) if items else []
    return unit  # type: ignore[return-value]


def unit_id(unit: AnyUnit) -> str:
    """Return the identifier of a unit."""
    return unit["id"]


def unit_type(unit: AnyUnit) -> UnitType:
    """Return the type tag of a unit."""
    return unit["type"]


def validate_unit_id(value: Any) -> str:
    """Check that value can be used as a unit identifier.

    Args:
        value: Candidate identifier.

    Returns:
        The identifier unchanged.

    Raises:
        InvalidUnitError: If value is not a non-empty string.
    """
    if not isinstance(value, str) or not value:
        raise InvalidUnitError(f"Unit id must be a non-empty string, got {value!r}")
    return value


def validate_unit(unit: Any) -> AnyUnit:
    """Check that unit is a well-formed unit that can be stored.

    Only the envelope is checked here (id and type tag). Payload fields are
    checked when the unit is converted to a record.

    Args:
        unit: Candidate unit, possibly None.

    Returns:
        The unit unchanged.

    Raises:
        InvalidUnitError: If unit is None, not a mapping, has an empty id or
            an unknown type tag.
    """
    if unit is None:
        raise InvalidUnitError("Unit must not be None")
    if not isinstance(unit, dict):
        raise InvalidUnitError(f"Unit must be a dict, got {type(unit).__name__}")
    validate_unit_id(unit.get("id"))
    if unit.get("type") not in UNIT_TYPES:
        raise InvalidUnitError(f"Unknown unit type: {unit.get('type')!r}")
    return unit  # type: ignore[return-value]


def _todo_items_equal(a: list[TodoItem], b: list[TodoItem]) -> bool:
    if len(a) != len(b):
        return False
    return all(
        x.get("data") == y.get("data") and bool(x.get("done")) == bool(y.get("done"))
        for x, y in zip(a, b)
    )


def units_equal(a: AnyUnit | None, b: AnyUnit | None) -> bool:
    """Compare two units structurally.

    Two units are equal when they share id, type tag, title and every field of
    their variant. List units compare their children pairwise and in order,
    recursively. Identity never matters: a loaded unit equals the unit it was
    saved from.

    Args:
        a: First unit or None.
        b: Second unit or None.

    Returns:
        True if both are None or both are structurally equal units.
    """
    if a is None or b is None:
        return a is None and b is None

    kind = a.get("type")
    if kind != b.get("type"):
        return False
    if a.get("id") != b.get("id") or a.get("title") != b.get("title"):
        return False

    if kind == TYPE_UNIT:
        return True
    elif kind in TEXT_TYPES:
        return a.get("data") == b.get("data")
    elif kind == TYPE_TEXT_CODE:
        return a.get("data") == b.get("data") and a.get("language") == b.get("language")
    elif kind == TYPE_TODO:
        return _todo_items_equal(a.get("items", []), b.get("items", []))
    elif kind == TYPE_LIST:
        left = a.get("items", [])
        right = b.get("items", [])
        if len(left) != len(right):
            return False
        return all(units_equal(x, y) for x, y in zip(left, right))
    else:
        return False
