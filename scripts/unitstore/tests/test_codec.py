"""Tests for unit record conversion and list resolution."""

from __future__ import annotations

import pytest

from unitstore.codec import load_unit_tree, unit_from_record, unit_to_record
from unitstore.errors import InvalidUnitError, StorageBackendError, UnitNotFoundError
from unitstore.units import (
    CodeUnit,
    ListUnit,
    TodoUnit,
    new_list,
    new_text_plain,
    new_todo,
    new_unit,
    units_equal,
)


def no_children(child_id: str):
    raise AssertionError(f"unexpected child lookup: {child_id}")


# =============================================================================
# TestUnitToRecord
# =============================================================================


class TestUnitToRecord:
    """Tests for unit_to_record."""

    def test_should_store_list_children_by_id(self, sample_list: ListUnit) -> None:
        """Verify list records reference children instead of embedding them."""
        record = unit_to_record(sample_list)
        assert record["items"] == [child["id"] for child in sample_list["items"]]

    def test_should_copy_todo_items(self, sample_todo: TodoUnit) -> None:
        """Verify records share no mutable state with the unit."""
        record = unit_to_record(sample_todo)
        sample_todo["items"][0]["data"] = "changed"
        assert record["items"][0]["data"] == "Data1"

    def test_should_keep_code_fields(self, sample_code: CodeUnit) -> None:
        """Verify code records carry data and language."""
        record = unit_to_record(sample_code)
        assert record == {
            "id": sample_code["id"],
            "type": "code-text",
            "title": "MyUnit",
            "data": "print('hi')",
            "language": "python",
        }

    def test_should_reject_none(self) -> None:
        """Verify None cannot be converted."""
        with pytest.raises(InvalidUnitError):
            unit_to_record(None)  # type: ignore[arg-type]

    def test_should_reject_non_string_payload(self) -> None:
        """Verify payload fields must be strings."""
        unit = new_text_plain("t", "d")
        unit["data"] = 42  # type: ignore[typeddict-item]
        with pytest.raises(InvalidUnitError, match="data"):
            unit_to_record(unit)

    def test_should_reject_malformed_todo_item(self, sample_todo: TodoUnit) -> None:
        """Verify todo items need data and done."""
        sample_todo["items"].append({"data": "x"})  # type: ignore[typeddict-item]
        with pytest.raises(InvalidUnitError):
            unit_to_record(sample_todo)

    @pytest.mark.parametrize(
        "item",
        [
            {"data": None, "done": False},
            {"data": 7, "done": False},
            {"data": "x", "done": "false"},
            {"data": "x", "done": 1},
            "x",
        ],
    )
    def test_should_reject_todo_item_of_wrong_type(self, item) -> None:
        """Verify todo items are refused instead of coerced into other values."""
        todo = new_todo("t", [item])
        with pytest.raises(InvalidUnitError, match="Todo item"):
            unit_to_record(todo)

    def test_should_reject_items_that_are_not_a_list(self) -> None:
        """Verify todo and list units need a list of items."""
        unit_list = new_list("l")
        unit_list["items"] = "abc"  # type: ignore[typeddict-item]
        with pytest.raises(InvalidUnitError, match="items"):
            unit_to_record(unit_list)

    def test_should_reject_invalid_list_child(self) -> None:
        """Verify a list cannot reference None."""
        unit_list = new_list("l")
        unit_list["items"].append(None)  # type: ignore[arg-type]
        with pytest.raises(InvalidUnitError):
            unit_to_record(unit_list)


# =============================================================================
# TestUnitFromRecord
# =============================================================================


class TestUnitFromRecord:
    """Tests for unit_from_record."""

    def test_should_rebuild_equal_unit(self, sample_todo: TodoUnit) -> None:
        """Verify conversion back yields an equal, distinct unit."""
        rebuilt = unit_from_record(unit_to_record(sample_todo), no_children)
        assert units_equal(sample_todo, rebuilt)
        assert rebuilt is not sample_todo

    def test_should_resolve_list_children(self, sample_list: ListUnit) -> None:
        """Verify resolve is called for each child id in order."""
        by_id = {child["id"]: child for child in sample_list["items"]}
        rebuilt = unit_from_record(unit_to_record(sample_list), by_id.__getitem__)
        assert units_equal(sample_list, rebuilt)

    def test_should_fail_on_missing_field(self) -> None:
        """Verify malformed records raise a backend error."""
        with pytest.raises(StorageBackendError, match="malformed"):
            unit_from_record({"id": "x", "type": "plain-text", "title": "t"}, no_children)

    def test_should_fail_on_unknown_type(self) -> None:
        """Verify unknown type tags in storage raise a backend error."""
        with pytest.raises(StorageBackendError, match="unknown unit type"):
            unit_from_record({"id": "x", "type": "video", "title": "t"}, no_children)


# =============================================================================
# TestLoadUnitTree
# =============================================================================


class TestLoadUnitTree:
    """Tests for load_unit_tree."""

    def test_should_raise_not_found_for_missing_root(self) -> None:
        """Verify a missing unit is reported as not found."""
        with pytest.raises(UnitNotFoundError):
            load_unit_tree("missing", {}.get)

    def test_should_load_nested_lists(self) -> None:
        """Verify lists of lists are resolved through the fetcher."""
        leaf = new_unit("leaf")
        inner = new_list("inner", [leaf])
        outer = new_list("outer", [inner, leaf])
        records = {u["id"]: unit_to_record(u) for u in (leaf, inner, outer)}

        assert units_equal(outer, load_unit_tree(outer["id"], records.get))

    def test_should_fail_on_dangling_child(self) -> None:
        """Verify a list pointing at a removed unit cannot be loaded."""
        child = new_unit()
        unit_list = new_list("l", [child])
        records = {unit_list["id"]: unit_to_record(unit_list)}

        with pytest.raises(StorageBackendError, match="references missing unit"):
            load_unit_tree(unit_list["id"], records.get)

    def test_should_fail_on_cycle(self) -> None:
        """Verify a list containing itself is reported instead of recursing forever."""
        unit_list = new_list("l", unit_id="loop")
        record = unit_to_record(unit_list)
        record["items"] = ["loop"]

        with pytest.raises(StorageBackendError, match="contains itself"):
            load_unit_tree("loop", {"loop": record}.get)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
