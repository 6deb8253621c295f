"""Target column schema model.

This module defines the flat, strictly-typed column schema that the
table store accepts, including collection column types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

PrimitiveTypeName = Literal["string", "int32", "int64", "float32", "float64", "bool", "binary"]


@dataclass(frozen=True)
class PrimitiveType:
    """Scalar column type."""

    name: PrimitiveTypeName


@dataclass(frozen=True)
class ArrayType:
    """List column type."""

    element_type: "DataType"
    element_nullable: bool


@dataclass(frozen=True)
class MapType:
    """Map column type with string keys."""

    value_type: "DataType"
    value_nullable: bool
    key_type: PrimitiveType = PrimitiveType("string")


DataType = Union[PrimitiveType, ArrayType, MapType]

STRING = PrimitiveType("string")
INT32 = PrimitiveType("int32")
INT64 = PrimitiveType("int64")
FLOAT32 = PrimitiveType("float32")
FLOAT64 = PrimitiveType("float64")
BOOL = PrimitiveType("bool")
BINARY = PrimitiveType("binary")


@dataclass(frozen=True)
class TargetField:
    """One column in a target schema.

    Attributes:
        name: Column name, identical to the source field name.
        data_type: Column type.
        nullable: Whether the column accepts null values.
    """

    name: str
    data_type: DataType
    nullable: bool


@dataclass(frozen=True)
class TargetSchema:
    """Ordered, uniquely-named column sequence."""

    fields: tuple[TargetField, ...] = ()

    def field_names(self) -> tuple[str, ...]:
        """Return column names in schema order."""
        return tuple(target_field.name for target_field in self.fields)

    def get_field(self, name: str) -> TargetField | None:
        """Return a column by name, or ``None`` if absent."""
        for target_field in self.fields:
            if target_field.name == name:
                return target_field
        return None

    def __len__(self) -> int:
        return len(self.fields)


def describe_data_type(data_type: DataType) -> str:
    """Render a column type as a compact label like ``map<string,int64>``.

    Args:
        data_type: Column type.

    Returns:
        Human-readable type label.
    """
    if isinstance(data_type, ArrayType):
        element = describe_data_type(data_type.element_type)
        suffix = "?" if data_type.element_nullable else ""
        return f"array<{element}{suffix}>"
    if isinstance(data_type, MapType):
        value = describe_data_type(data_type.value_type)
        suffix = "?" if data_type.value_nullable else ""
        return f"map<{data_type.key_type.name},{value}{suffix}>"
    return data_type.name
