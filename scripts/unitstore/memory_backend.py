"""In-memory storage backend.

Keeps records in a dict owned by the instance. Nothing is shared between
instances, so a fresh instance never sees data from an earlier one.
"""

from __future__ import annotations

from unitstore.codec import Record, load_unit_tree, unit_to_record
from unitstore.errors import StorageNotCreatedError, UnitNotFoundError
from unitstore.protocol import StorageConfig
from unitstore.units import AnyUnit, validate_unit, validate_unit_id


class InMemoryStorageBackend:
    """Storage backend that lives only as long as the instance.

    Example:
        backend = InMemoryStorageBackend()
        backend.create()
        backend.save_unit(unit)
        loaded = backend.load_unit(unit["id"])
    """

    def __init__(self) -> None:
        self._records: dict[str, Record] | None = None

    def create(self) -> None:
        if self._records is None:
            self._records = {}

    def is_created(self) -> bool:
        return self._records is not None

    def remove(self) -> None:
        self._records = None

    def _require_records(self) -> dict[str, Record]:
        if self._records is None:
            raise StorageNotCreatedError("In-memory storage is not created")
        return self._records

    def save_unit(self, unit: AnyUnit | None) -> None:
        records = self._require_records()
        record = unit_to_record(validate_unit(unit))
        records[record["id"]] = record

    def load_unit(self, unit_id: str) -> AnyUnit:
        records = self._require_records()
        validate_unit_id(unit_id)
        return load_unit_tree(unit_id, records.get)

    def remove_unit(self, unit: AnyUnit | None) -> None:
        records = self._require_records()
        target = validate_unit(unit)["id"]
        if records.pop(target, None) is None:
            raise UnitNotFoundError(f"Unit not found: {target!r}")

    def to_config(self) -> StorageConfig:
        return {"type": "memory"}
