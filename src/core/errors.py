"""Strata exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class StrataError(Exception):
    """Base exception for all Strata failures."""


class StrataConfigError(StrataError):
    """Raised for invalid runtime configuration."""


class StrataSchemaError(StrataError):
    """Raised when a source schema cannot be parsed, resolved, or translated.

    Attributes:
        reason: Short machine-readable failure reason, e.g. ``NotARecord``.
    """

    def __init__(self, message: str, reason: str = "InvalidSchema") -> None:
        super().__init__(message)
        self.reason = reason


class StrataCoercionError(StrataError):
    """Raised when a raw value cannot be coerced to its column type.

    Attributes:
        field_name: Column whose value failed coercion.
        raw_value: Offending input value.
    """

    def __init__(self, field_name: str, raw_value: object, detail: str) -> None:
        super().__init__(
            f"Cannot coerce field '{field_name}' value {raw_value!r}: {detail}"
        )
        self.field_name = field_name
        self.raw_value = raw_value


class StrataIngestError(StrataError):
    """Raised for batch request parsing and ingest failures."""


class StrataStoreError(StrataError):
    """Raised for table store and versioning failures."""


class StrataCommitError(StrataStoreError):
    """Raised when a chunk commit to the table store fails.

    Attributes:
        index_range: Original request indices covered by the failed commit.
    """

    def __init__(self, message: str, index_range: tuple[int, int] | None = None) -> None:
        super().__init__(message)
        self.index_range = index_range


class StrataDependencyError(StrataError):
    """Raised when an optional runtime dependency is missing."""
