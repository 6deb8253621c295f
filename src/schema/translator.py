"""Source-to-target schema translation.

This module maps nested, tagged-union source schemas onto the flat
column model of the table store. Translation is pure and deterministic
so results can be cached per entity type.
"""

from __future__ import annotations

from core.constants import SCHEMA_ERROR_NOT_A_RECORD
from core.errors import StrataSchemaError
from schema.source_schema import (
    ArrayNode,
    ComplexUnionNode,
    EnumNode,
    MapNode,
    NullableNode,
    PrimitiveNode,
    RecordNode,
    SourceField,
    SourceSchemaNode,
    node_type_name,
)
from schema.target_schema import (
    BINARY,
    BOOL,
    FLOAT32,
    FLOAT64,
    INT32,
    INT64,
    STRING,
    ArrayType,
    DataType,
    MapType,
    PrimitiveType,
    TargetField,
    TargetSchema,
)

_PRIMITIVE_TYPES: dict[str, PrimitiveType] = {
    "string": STRING,
    "int32": INT32,
    "int64": INT64,
    "float32": FLOAT32,
    "float64": FLOAT64,
    "bool": BOOL,
    "bytes": BINARY,
}


def translate_schema(source: SourceSchemaNode) -> TargetSchema:
    """Translate a top-level record schema into a target column schema.

    Args:
        source: Top-level source schema node.

    Returns:
        Column schema preserving source field order and names.

    Raises:
        StrataSchemaError: If ``source`` is not a record (reason ``NotARecord``).
    """
    if not isinstance(source, RecordNode):
        raise StrataSchemaError(
            f"Can only translate record schemas, got {node_type_name(source)}. "
            "Wrap the payload type in a top-level record.",
            reason=SCHEMA_ERROR_NOT_A_RECORD,
        )
    return TargetSchema(fields=tuple(_translate_field(field) for field in source.fields))


def _translate_field(source_field: SourceField) -> TargetField:
    data_type, nullable = _translate_node(source_field.node)
    return TargetField(name=source_field.name, data_type=data_type, nullable=nullable)


def _translate_node(node: SourceSchemaNode) -> tuple[DataType, bool]:
    """Translate one node into its column type and nullability."""
    if isinstance(node, PrimitiveNode):
        return _PRIMITIVE_TYPES[node.kind], False
    if isinstance(node, NullableNode):
        data_type, _ = _translate_node(node.inner)
        return data_type, True
    if isinstance(node, ComplexUnionNode):
        # Heterogeneous unions collapse to text.
        return STRING, True
    if isinstance(node, ArrayNode):
        element_type, element_nullable = _translate_node(node.element)
        return ArrayType(element_type=element_type, element_nullable=element_nullable), False
    if isinstance(node, MapNode):
        value_type, value_nullable = _translate_node(node.values)
        return MapType(value_type=value_type, value_nullable=value_nullable), False
    if isinstance(node, EnumNode):
        return STRING, False
    # Nested records are stored as JSON text.
    return STRING, False
