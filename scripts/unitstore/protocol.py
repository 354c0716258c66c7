"""Protocol and type definitions for unit storage backends.

This module defines the contract every storage backend implements. The
conformance suite in ``unitstore.conformance`` drives a backend through exactly
these methods and nothing else.
"""

from __future__ import annotations

from typing import Protocol, TypedDict

from unitstore.units import AnyUnit


class StorageConfig(TypedDict, total=False):
    """Self-describing configuration of a backend instance.

    Attributes:
        type: Backend kind ("memory", "json" or "sqlite").
        path: Location of the backing data, for file based backends.
    """

    type: str
    path: str


class StorageBackend(Protocol):
    """Protocol for unit storage backends.

    A backend starts out not created. Unit operations are only valid once
    ``create`` has succeeded and until ``remove`` is called.
    """

    def create(self) -> None:
        """Create the backing storage.

        Raises:
            StorageBackendError: If the storage cannot be created.
        """
        ...

    def is_created(self) -> bool:
        """Return True if the backing storage exists. Has no side effects."""
        ...

    def remove(self) -> None:
        """Remove the backing storage and everything in it.

        Succeeds whether or not the storage was ever created.

        Raises:
            StorageBackendError: If existing storage cannot be deleted.
        """
        ...

    def save_unit(self, unit: AnyUnit | None) -> None:
        """Store a unit, replacing any unit saved under the same id.

        List units store references to their children, so children must be
        saved for the list to load back.

        Args:
            unit: The unit to store.

        Raises:
            StorageNotCreatedError: If the storage was not created.
            InvalidUnitError: If unit is None or malformed.
            StorageBackendError: If the unit cannot be written.
        """
        ...

    def load_unit(self, unit_id: str) -> AnyUnit:
        """Load the unit stored under unit_id.

        Args:
            unit_id: Identifier of the unit.

        Returns:
            A new unit structurally equal to the one saved.

        Raises:
            StorageNotCreatedError: If the storage was not created.
            InvalidUnitError: If unit_id is empty.
            UnitNotFoundError: If no unit is stored under unit_id.
            StorageBackendError: If the stored data is unreadable.
        """
        ...

    def remove_unit(self, unit: AnyUnit | None) -> None:
        """Delete a stored unit.

        Args:
            unit: The unit to delete; only its id is used.

        Raises:
            StorageNotCreatedError: If the storage was not created.
            InvalidUnitError: If unit is None or malformed.
            UnitNotFoundError: If the unit is not stored.
            StorageBackendError: If the unit cannot be deleted.
        """
        ...

    def to_config(self) -> StorageConfig:
        """Describe this instance so ``unitstore.config`` can rebuild it."""
        ...
