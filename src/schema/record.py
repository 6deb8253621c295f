"""Schema-described record capability.

This module defines the minimal record contract used by batch and
store logic, plus the generic field-map record implementation.
"""

from __future__ import annotations

from typing import Any, Protocol

from schema.target_schema import TargetSchema


class RecordEntity(Protocol):
    """Capability every ingestible record type implements."""

    def get_schema(self) -> TargetSchema:
        """Return the column schema describing this record."""

    def get_field(self, name: str) -> Any:
        """Return a field value, ``None`` when unset."""

    def set_field(self, name: str, value: Any) -> None:
        """Assign a field value."""


class GenericRecord:
    """Field-map record whose columns are described by a target schema."""

    def __init__(self, schema: TargetSchema) -> None:
        self._schema = schema
        self._values: dict[str, Any] = {name: None for name in schema.field_names()}

    def get_schema(self) -> TargetSchema:
        return self._schema

    def get_field(self, name: str) -> Any:
        return self._values.get(name)

    def set_field(self, name: str, value: Any) -> None:
        if name not in self._values:
            raise KeyError(f"Field '{name}' is not part of the record schema")
        self._values[name] = value

    def to_row(self) -> dict[str, Any]:
        """Return column values in schema order."""
        return dict(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GenericRecord):
            return NotImplemented
        return self._schema == other._schema and self._values == other._values

    def __repr__(self) -> str:
        return f"GenericRecord({self._values!r})"


def record_to_row(record: RecordEntity) -> dict[str, Any]:
    """Read every schema column from any record entity.

    Args:
        record: Record implementing the entity capability.

    Returns:
        Column-name to value mapping in schema order.
    """
    return {name: record.get_field(name) for name in record.get_schema().field_names()}
