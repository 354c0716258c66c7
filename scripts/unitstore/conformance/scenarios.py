"""Catalogue of storage conformance scenarios.

Each scenario is a plain function of (context, create_storage,
load_from_config) registered in SCENARIOS in definition order. Scenarios never
depend on each other: every one builds its own storage instances through
create_storage.
"""

from __future__ import annotations

from typing import Callable, Optional

from unitstore.config import dump_config
from unitstore.conformance.context import (
    CreateFunc,
    LoadFromConfigFunc,
    Scenario,
    ScenarioContext,
    ScenarioFunc,
)
from unitstore.protocol import StorageBackend
from unitstore.units import (
    AnyUnit,
    generate_unit_id,
    new_list,
    new_text_code,
    new_text_markdown,
    new_text_plain,
    new_todo,
    new_todo_item,
    new_unit,
)

SCENARIOS: list[Scenario] = []

TITLE = "MyUnit"
DATA = "MyData"
LANGUAGE = "MyLang"


def scenario(title: str) -> Callable[[ScenarioFunc], ScenarioFunc]:
    """Register the decorated function as a scenario titled title."""

    def register(body: ScenarioFunc) -> ScenarioFunc:
        SCENARIOS.append(Scenario(title, body))
        return body

    return register


def simple_units() -> list[AnyUnit]:
    """Return one fresh unit of every non-list type."""
    todo = new_todo(TITLE, [new_todo_item("Data1", done=True), new_todo_item("Data2", done=False)])
    return [
        new_unit(TITLE),
        new_text_plain(TITLE, DATA),
        new_text_markdown(TITLE, DATA),
        new_text_code(TITLE, DATA, LANGUAGE),
        todo,
    ]


def _created(ctx: ScenarioContext, create_storage: CreateFunc) -> StorageBackend:
    storage = create_storage()
    ctx.no_error(storage.create)
    return storage


@scenario("Storage is not created initially when initialized first time with given arguments")
def _not_created_initially(
    ctx: ScenarioContext, create_storage: CreateFunc, load_from_config: Optional[LoadFromConfigFunc]
) -> None:
    ctx.false(create_storage().is_created(), "fresh storage reports it is created")


@scenario("Storage can be successfully created")
def _can_be_created(
    ctx: ScenarioContext, create_storage: CreateFunc, load_from_config: Optional[LoadFromConfigFunc]
) -> None:
    storage = create_storage()
    ctx.no_error(storage.create)
    ctx.true(storage.is_created(), "storage is not created after create()")


@scenario("Storage can not be used before it will be created")
def _unusable_before_create(
    ctx: ScenarioContext, create_storage: CreateFunc, load_from_config: Optional[LoadFromConfigFunc]
) -> None:
    storage = create_storage()
    unit = new_unit()
    ctx.error(storage.save_unit, unit)
    ctx.error(storage.remove_unit, unit)
    ctx.error(storage.load_unit, "123")


@scenario("Storage can be removed if not created before")
def _remove_without_create(
    ctx: ScenarioContext, create_storage: CreateFunc, load_from_config: Optional[LoadFromConfigFunc]
) -> None:
    ctx.no_error(create_storage().remove)


@scenario("Storage can be removed if was created before")
def _remove_after_create(
    ctx: ScenarioContext, create_storage: CreateFunc, load_from_config: Optional[LoadFromConfigFunc]
) -> None:
    storage = _created(ctx, create_storage)
    ctx.no_error(storage.remove)


@scenario("Storage is not created when removed")
def _not_created_when_removed(
    ctx: ScenarioContext, create_storage: CreateFunc, load_from_config: Optional[LoadFromConfigFunc]
) -> None:
    storage = _created(ctx, create_storage)
    ctx.no_error(storage.remove)
    ctx.false(create_storage().is_created(), "new storage reports it is created after removal")


@scenario("Storage can not be used after it was removed")
def _unusable_after_remove(
    ctx: ScenarioContext, create_storage: CreateFunc, load_from_config: Optional[LoadFromConfigFunc]
) -> None:
    unit = new_text_plain(TITLE, DATA)
    storage = _created(ctx, create_storage)
    ctx.no_error(storage.save_unit, unit)
    ctx.no_error(storage.remove)
    ctx.false(storage.is_created(), "storage reports it is created after remove()")
    ctx.error(storage.save_unit, unit)
    ctx.error(storage.load_unit, unit["id"])
    ctx.error(storage.remove_unit, unit)


@scenario("Storage can handle all supported simple unit types")
def _simple_unit_types(
    ctx: ScenarioContext, create_storage: CreateFunc, load_from_config: Optional[LoadFromConfigFunc]
) -> None:
    for unit in simple_units():
        with ctx.subtest(unit["type"]) as sub:
            storage = _created(sub, create_storage)
            sub.no_error(storage.save_unit, unit)
            loaded = sub.no_error(storage.load_unit, unit["id"])
            sub.units_equal(unit, loaded)
            sub.no_error(storage.remove_unit, loaded)
            sub.error(storage.load_unit, unit["id"])


@scenario("Storage can handle list unit")
def _list_unit(
    ctx: ScenarioContext, create_storage: CreateFunc, load_from_config: Optional[LoadFromConfigFunc]
) -> None:
    children = simple_units()
    unit_list = new_list(TITLE, children)

    storage = _created(ctx, create_storage)
    for child in children:
        ctx.no_error(storage.save_unit, child)
    ctx.no_error(storage.save_unit, unit_list)

    loaded = ctx.no_error(storage.load_unit, unit_list["id"])
    ctx.not_none(loaded)
    items = loaded.get("items", [])
    ctx.true(
        len(items) == len(children),
        f"list loaded with {len(items)} items, expected {len(children)}",
    )
    for expected, actual in zip(children, items):
        with ctx.subtest(expected["type"]) as sub:
            sub.units_equal(expected, actual)
    ctx.units_equal(unit_list, loaded)

    ctx.no_error(storage.remove_unit, loaded)
    ctx.error(storage.load_unit, unit_list["id"])


@scenario("Storage can handle nested list unit")
def _nested_list_unit(
    ctx: ScenarioContext, create_storage: CreateFunc, load_from_config: Optional[LoadFromConfigFunc]
) -> None:
    text = new_text_plain(TITLE, DATA)
    code = new_text_code(TITLE, DATA, LANGUAGE)
    inner = new_list("Inner", [text, code])
    leaf = new_unit(TITLE)
    outer = new_list("Outer", [inner, leaf])

    storage = _created(ctx, create_storage)
    for unit in (text, code, inner, leaf, outer):
        ctx.no_error(storage.save_unit, unit)

    loaded = ctx.no_error(storage.load_unit, outer["id"])
    ctx.units_equal(outer, loaded)

    ctx.no_error(storage.remove_unit, loaded)
    ctx.error(storage.load_unit, outer["id"])
    # Children are stored in their own right and outlive the list.
    ctx.units_equal(inner, ctx.no_error(storage.load_unit, inner["id"]))


@scenario("Saving a unit again replaces the stored unit")
def _save_replaces(
    ctx: ScenarioContext, create_storage: CreateFunc, load_from_config: Optional[LoadFromConfigFunc]
) -> None:
    original = new_text_plain(TITLE, DATA)
    updated = new_text_plain("Renamed", "Changed", unit_id=original["id"])

    storage = _created(ctx, create_storage)
    ctx.no_error(storage.save_unit, original)
    ctx.no_error(storage.save_unit, updated)
    ctx.units_equal(updated, ctx.no_error(storage.load_unit, original["id"]))


@scenario("Unit that was never saved cannot be loaded")
def _unknown_id_not_loaded(
    ctx: ScenarioContext, create_storage: CreateFunc, load_from_config: Optional[LoadFromConfigFunc]
) -> None:
    storage = _created(ctx, create_storage)
    ctx.error(storage.load_unit, generate_unit_id())


@scenario("Unit that was never saved cannot be removed")
def _unknown_unit_not_removed(
    ctx: ScenarioContext, create_storage: CreateFunc, load_from_config: Optional[LoadFromConfigFunc]
) -> None:
    storage = _created(ctx, create_storage)
    ctx.error(storage.remove_unit, new_unit(TITLE))


@scenario("Nil unit cannot be saved")
def _nil_not_saved(
    ctx: ScenarioContext, create_storage: CreateFunc, load_from_config: Optional[LoadFromConfigFunc]
) -> None:
    storage = _created(ctx, create_storage)
    ctx.error(storage.save_unit, None)


@scenario("Nil unit cannot be removed")
def _nil_not_removed(
    ctx: ScenarioContext, create_storage: CreateFunc, load_from_config: Optional[LoadFromConfigFunc]
) -> None:
    storage = _created(ctx, create_storage)
    ctx.error(storage.remove_unit, None)


@scenario("Empty ID cannot be used to load unit")
def _empty_id_not_loaded(
    ctx: ScenarioContext, create_storage: CreateFunc, load_from_config: Optional[LoadFromConfigFunc]
) -> None:
    storage = _created(ctx, create_storage)
    ctx.error(storage.load_unit, "")


@scenario("Storage config can be JSON serialized/deserialized")
def _config_round_trip(
    ctx: ScenarioContext, create_storage: CreateFunc, load_from_config: Optional[LoadFromConfigFunc]
) -> None:
    if load_from_config is None:
        ctx.skip("storage cannot be loaded from config")

    unit = new_text_plain(TITLE, DATA)
    storage = _created(ctx, create_storage)
    ctx.no_error(storage.save_unit, unit)

    config = ctx.no_error(dump_config, storage)
    ctx.true(config, "storage produced an empty config")

    restored = ctx.no_error(load_from_config, config)
    ctx.not_none(restored, "load_from_config returned None")

    loaded = ctx.no_error(restored.load_unit, unit["id"])
    ctx.not_none(loaded)
    ctx.units_equal(unit, loaded)
