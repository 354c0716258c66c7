"""Conversion between units and the records backends persist.

A record is a JSON-compatible dict. It mirrors the unit except for list units,
which keep only the ids of their children. Loading a list therefore resolves
each child from the same storage.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from unitstore.errors import InvalidUnitError, StorageBackendError, UnitNotFoundError
from unitstore.units import (
    TEXT_TYPES,
    TYPE_LIST,
    TYPE_TEXT_CODE,
    TYPE_TODO,
    TYPE_UNIT,
    AnyUnit,
    validate_unit,
)

Record = dict[str, Any]
RecordFetcher = Callable[[str], Optional[Record]]


def _require_str(unit: Any, key: str) -> str:
    value = unit.get(key, "")
    if not isinstance(value, str):
        raise InvalidUnitError(f"Unit field {key!r} must be a string, got {value!r}")
    return value


def _require_list(unit: Any) -> list[Any]:
    items = unit.get("items", [])
    if not isinstance(items, list):
        raise InvalidUnitError(f"Unit field 'items' must be a list, got {items!r}")
    return items


def _todo_item_record(item: Any) -> Record:
    """Copy a todo item, refusing values that would not load back unchanged."""
    if not isinstance(item, dict):
        raise InvalidUnitError(f"Todo item must be a dict, got {item!r}")
    data = item.get("data")
    done = item.get("done")
    if not isinstance(data, str):
        raise InvalidUnitError(f"Todo item 'data' must be a string, got {data!r}")
    if not isinstance(done, bool):
        raise InvalidUnitError(f"Todo item 'done' must be a bool, got {done!r}")
    return {"data": data, "done": done}


def unit_to_record(unit: AnyUnit) -> Record:
    """Convert a unit into a fresh record.

    Args:
        unit: A valid unit.

    Returns:
        A new dict sharing no mutable state with unit.

    Raises:
        InvalidUnitError: If the unit or one of its payload fields is malformed.
    """
    validate_unit(unit)
    kind = unit["type"]
    record: Record = {
        "id": unit["id"],
        "type": kind,
        "title": _require_str(unit, "title"),
    }

    if kind == TYPE_UNIT:
        pass
    elif kind in TEXT_TYPES:
        record["data"] = _require_str(unit, "data")
    elif kind == TYPE_TEXT_CODE:
        record["data"] = _require_str(unit, "data")
        record["language"] = _require_str(unit, "language")
    elif kind == TYPE_TODO:
        record["items"] = [_todo_item_record(item) for item in _require_list(unit)]
    elif kind == TYPE_LIST:
        record["items"] = [validate_unit(child)["id"] for child in _require_list(unit)]
    else:
        raise InvalidUnitError(f"Unknown unit type: {kind!r}")

    return record


def unit_from_record(record: Record, resolve: Callable[[str], AnyUnit]) -> AnyUnit:
    """Rebuild a unit from a stored record.

    Args:
        record: Record produced by unit_to_record.
        resolve: Returns the child unit for an id; used for list units only.

    Returns:
        A new unit.

    Raises:
        StorageBackendError: If the record is malformed.
    """
    try:
        kind = record["type"]
        unit: dict[str, Any] = {
            "id": str(record["id"]),
            "type": kind,
            "title": str(record["title"]),
        }

        if kind == TYPE_UNIT:
            pass
        elif kind in TEXT_TYPES:
            unit["data"] = str(record["data"])
        elif kind == TYPE_TEXT_CODE:
            unit["data"] = str(record["data"])
            unit["language"] = str(record["language"])
        elif kind == TYPE_TODO:
            unit["items"] = [
                {"data": str(item["data"]), "done": bool(item["done"])}
                for item in record["items"]
            ]
        elif kind == TYPE_LIST:
            unit["items"] = [resolve(str(child_id)) for child_id in record["items"]]
        else:
            raise StorageBackendError(f"Stored record has unknown unit type: {kind!r}")
    except (KeyError, TypeError) as error:
        raise StorageBackendError(f"Stored record is malformed: {error!r}") from error

    return unit  # type: ignore[return-value]


def load_unit_tree(unit_id: str, fetch_record: RecordFetcher) -> AnyUnit:
    """Load a unit and, for lists, every unit it references.

    Args:
        unit_id: Identifier of the unit to load.
        fetch_record: Returns the stored record for an id, or None if absent.

    Returns:
        The rebuilt unit.

    Raises:
        UnitNotFoundError: If unit_id itself is not stored.
        StorageBackendError: If a list references a missing unit, lists form
            a cycle, or a record is malformed.
    """

    def load(current_id: str, parents: tuple[str, ...]) -> AnyUnit:
        if current_id in parents:
            raise StorageBackendError(f"List {parents[-1]!r} contains itself via {current_id!r}")
        record = fetch_record(current_id)
        if record is None:
            if not parents:
                raise UnitNotFoundError(f"Unit not found: {current_id!r}")
            raise StorageBackendError(
                f"List {parents[-1]!r} references missing unit {current_id!r}"
            )
        chain = parents + (current_id,)
        return unit_from_record(record, lambda child_id: load(child_id, chain))

    return load(unit_id, ())
