"""Arrow conversion for target schemas and typed rows.

This module maps the target column model onto pyarrow types and
converts record rows into arrow-compatible Python values.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

import pyarrow as pa

from schema.target_schema import ArrayType, DataType, MapType, TargetSchema

_PRIMITIVE_ARROW_TYPES = {
    "string": pa.string(),
    "int32": pa.int32(),
    "int64": pa.int64(),
    "float32": pa.float32(),
    "float64": pa.float64(),
    "bool": pa.bool_(),
    "binary": pa.binary(),
}


def to_arrow_schema(schema: TargetSchema) -> pa.Schema:
    """Build a pyarrow schema for a target column schema.

    Args:
        schema: Target column schema.

    Returns:
        Equivalent arrow schema with matching nullability.
    """
    return pa.schema(
        [
            pa.field(target_field.name, to_arrow_type(target_field.data_type), target_field.nullable)
            for target_field in schema.fields
        ]
    )


def to_arrow_type(data_type: DataType) -> pa.DataType:
    """Map one column type to its arrow type."""
    if isinstance(data_type, ArrayType):
        element = pa.field("item", to_arrow_type(data_type.element_type), data_type.element_nullable)
        return pa.list_(element)
    if isinstance(data_type, MapType):
        value = pa.field("value", to_arrow_type(data_type.value_type), data_type.value_nullable)
        return pa.map_(to_arrow_type(data_type.key_type), value)
    return _PRIMITIVE_ARROW_TYPES[data_type.name]


def rows_to_table(schema: TargetSchema, rows: Sequence[Mapping[str, Any]]) -> pa.Table:
    """Convert typed rows into an arrow table.

    Args:
        schema: Target column schema shared by all rows.
        rows: Column-name to value mappings.

    Returns:
        Arrow table in schema column order.
    """
    columns: dict[str, list[Any]] = {}
    for target_field in schema.fields:
        columns[target_field.name] = [
            _to_arrow_value(row.get(target_field.name), target_field.data_type) for row in rows
        ]
    return pa.table(columns, schema=to_arrow_schema(schema))


def _to_arrow_value(value: Any, data_type: DataType) -> Any:
    if value is None:
        return None
    if isinstance(data_type, ArrayType):
        return [_to_arrow_value(item, data_type.element_type) for item in value]
    if isinstance(data_type, MapType):
        return [
            (key, _to_arrow_value(item, data_type.value_type)) for key, item in value.items()
        ]
    return value
