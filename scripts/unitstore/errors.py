"""Exception hierarchy for unit storage backends.

Every backend raises one of these so callers can tell storage failures apart
from programming errors. The conformance suite only checks that an error is
raised, so backends are free to pick the most precise class.
"""

from __future__ import annotations


class StorageError(Exception):
    """Base exception for all unit storage failures."""


class StorageNotCreatedError(StorageError):
    """Raised when a unit operation runs before the storage was created."""


class InvalidUnitError(StorageError, ValueError):
    """Raised for a missing unit, an empty identifier, or a malformed unit."""


class UnitNotFoundError(StorageError, LookupError):
    """Raised when no unit is stored under the requested identifier."""


class StorageBackendError(StorageError):
    """Raised for backend failures such as I/O errors or corrupt records."""


class StorageConfigError(StorageError, ValueError):
    """Raised for invalid storage configuration blobs or environment settings."""
