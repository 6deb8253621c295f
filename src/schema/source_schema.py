"""Source schema model and Avro-style JSON parsing.

This module defines the tagged-union node types for self-describing
record schemas and parses Avro JSON documents into them.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from typing import Any, Literal, Union

from core.errors import StrataSchemaError

PrimitiveKind = Literal["string", "int32", "int64", "float32", "float64", "bool", "bytes"]

_AVRO_PRIMITIVES: dict[str, PrimitiveKind] = {
    "string": "string",
    "int": "int32",
    "long": "int64",
    "float": "float32",
    "double": "float64",
    "boolean": "bool",
    "bytes": "bytes",
}
_KIND_TO_AVRO = {kind: name for name, kind in _AVRO_PRIMITIVES.items()}


@dataclass(frozen=True)
class PrimitiveNode:
    """Scalar source type."""

    kind: PrimitiveKind


@dataclass(frozen=True)
class NullableNode:
    """Union of exactly one non-null branch plus null."""

    inner: "SourceSchemaNode"


@dataclass(frozen=True)
class ComplexUnionNode:
    """Union with more than one non-null branch."""

    branches: tuple["SourceSchemaNode", ...]
    has_null: bool = True


@dataclass(frozen=True)
class ArrayNode:
    """Homogeneous list of elements."""

    element: "SourceSchemaNode"


@dataclass(frozen=True)
class MapNode:
    """String-keyed mapping of values."""

    values: "SourceSchemaNode"


@dataclass(frozen=True)
class EnumNode:
    """Named set of string symbols."""

    name: str
    symbols: tuple[str, ...]


@dataclass(frozen=True)
class SourceField:
    """One named field inside a record node.

    Attributes:
        name: Field name, unique inside its record.
        node: Field type.
        has_default: Whether the schema declares a default value.
        default: Declared default value, ``None`` when absent or null.
    """

    name: str
    node: "SourceSchemaNode"
    has_default: bool = False
    default: Any = field(default=None, hash=False)


@dataclass(frozen=True)
class RecordNode:
    """Named record with ordered fields."""

    name: str
    fields: tuple[SourceField, ...]

    def field_names(self) -> tuple[str, ...]:
        """Return field names in declaration order."""
        return tuple(source_field.name for source_field in self.fields)

    def get_field(self, name: str) -> SourceField | None:
        """Return a field by name, or ``None`` if absent."""
        for source_field in self.fields:
            if source_field.name == name:
                return source_field
        return None


SourceSchemaNode = Union[
    PrimitiveNode,
    NullableNode,
    ComplexUnionNode,
    ArrayNode,
    MapNode,
    EnumNode,
    RecordNode,
]


def parse_source_schema(document: Any) -> SourceSchemaNode:
    """Parse an Avro-style schema document into a source node tree.

    Args:
        document: JSON text, or an already-decoded JSON value.

    Returns:
        Parsed source schema node.

    Raises:
        StrataSchemaError: If the document is malformed.
    """
    if isinstance(document, str) and document.strip()[:1] in ("{", "[", '"'):
        try:
            document = json.loads(document)
        except json.JSONDecodeError as error:
            raise StrataSchemaError(
                f"Failed to parse schema JSON: {error.msg} at line {error.lineno}. "
                "Provide a valid Avro schema document."
            ) from error
    return _SchemaParser().parse(document)


def schema_to_document(node: SourceSchemaNode) -> Any:
    """Render a source node back into canonical Avro JSON form.

    Args:
        node: Source schema node.

    Returns:
        JSON-safe schema document.
    """
    if isinstance(node, PrimitiveNode):
        return _KIND_TO_AVRO[node.kind]
    if isinstance(node, NullableNode):
        return ["null", schema_to_document(node.inner)]
    if isinstance(node, ComplexUnionNode):
        branches = [schema_to_document(branch) for branch in node.branches]
        return ["null", *branches] if node.has_null else branches
    if isinstance(node, ArrayNode):
        return {"type": "array", "items": schema_to_document(node.element)}
    if isinstance(node, MapNode):
        return {"type": "map", "values": schema_to_document(node.values)}
    if isinstance(node, EnumNode):
        return {"type": "enum", "name": node.name, "symbols": list(node.symbols)}
    fields_payload: list[dict[str, Any]] = []
    for source_field in node.fields:
        field_payload: dict[str, Any] = {
            "name": source_field.name,
            "type": schema_to_document(source_field.node),
        }
        if source_field.has_default:
            field_payload["default"] = source_field.default
        fields_payload.append(field_payload)
    return {"type": "record", "name": node.name, "fields": fields_payload}


def schema_fingerprint(node: SourceSchemaNode) -> str:
    """Return a stable short hash of the canonical schema document."""
    canonical = json.dumps(schema_to_document(node), sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def node_type_name(node: SourceSchemaNode) -> str:
    """Return a short human-readable type label for messages."""
    if isinstance(node, PrimitiveNode):
        return _KIND_TO_AVRO[node.kind]
    if isinstance(node, NullableNode):
        return f"nullable {node_type_name(node.inner)}"
    if isinstance(node, ComplexUnionNode):
        return "union"
    if isinstance(node, ArrayNode):
        return "array"
    if isinstance(node, MapNode):
        return "map"
    if isinstance(node, EnumNode):
        return "enum"
    return "record"


class _SchemaParser:
    """Stateful parser that tracks named types for later references."""

    def __init__(self) -> None:
        self._named_types: dict[str, SourceSchemaNode] = {}

    def parse(self, document: Any) -> SourceSchemaNode:
        if isinstance(document, str):
            return self._parse_name(document)
        if isinstance(document, list):
            return self._parse_union(document)
        if isinstance(document, dict):
            return self._parse_complex(document)
        raise StrataSchemaError(
            f"Unsupported schema element {document!r}: expected a type name, "
            "a union list, or a type object."
        )

    def _parse_name(self, name: str) -> SourceSchemaNode:
        if name in _AVRO_PRIMITIVES:
            return PrimitiveNode(kind=_AVRO_PRIMITIVES[name])
        if name == "null":
            return ComplexUnionNode(branches=(), has_null=True)
        if name in self._named_types:
            return self._named_types[name]
        return PrimitiveNode(kind="string")

    def _parse_union(self, branches: list[Any]) -> SourceSchemaNode:
        has_null = any(branch == "null" for branch in branches)
        non_null = tuple(self.parse(branch) for branch in branches if branch != "null")
        if len(non_null) == 1:
            return NullableNode(inner=non_null[0]) if has_null else non_null[0]
        return ComplexUnionNode(branches=non_null, has_null=has_null)

    def _parse_complex(self, document: dict[str, Any]) -> SourceSchemaNode:
        type_name = document.get("type")
        if isinstance(type_name, (list, dict)):
            return self.parse(type_name)
        if type_name == "record":
            return self._parse_record(document)
        if type_name == "enum":
            return self._parse_enum(document)
        if type_name == "array":
            return ArrayNode(element=self.parse(_require_key(document, "items")))
        if type_name == "map":
            return MapNode(values=self.parse(_require_key(document, "values")))
        if isinstance(type_name, str):
            return self._parse_name(type_name)
        raise StrataSchemaError(
            f"Schema object is missing a 'type' attribute: {document!r}."
        )

    def _parse_record(self, document: dict[str, Any]) -> RecordNode:
        name = str(document.get("name", "record"))
        raw_fields = document.get("fields", [])
        if not isinstance(raw_fields, list):
            raise StrataSchemaError(f"Record '{name}' fields must be a list.")
        parsed_fields: list[SourceField] = []
        seen_names: set[str] = set()
        for raw_field in raw_fields:
            if not isinstance(raw_field, dict) or "name" not in raw_field:
                raise StrataSchemaError(
                    f"Record '{name}' has a malformed field entry: {raw_field!r}."
                )
            field_name = str(raw_field["name"])
            if field_name in seen_names:
                raise StrataSchemaError(
                    f"Record '{name}' declares field '{field_name}' more than once."
                )
            seen_names.add(field_name)
            parsed_fields.append(
                SourceField(
                    name=field_name,
                    node=self.parse(_require_key(raw_field, "type")),
                    has_default="default" in raw_field,
                    default=raw_field.get("default"),
                )
            )
        record = RecordNode(name=name, fields=tuple(parsed_fields))
        self._register(name, document.get("namespace"), record)
        return record

    def _parse_enum(self, document: dict[str, Any]) -> EnumNode:
        name = str(document.get("name", "enum"))
        symbols = document.get("symbols", [])
        if not isinstance(symbols, list):
            raise StrataSchemaError(f"Enum '{name}' symbols must be a list.")
        enum_node = EnumNode(name=name, symbols=tuple(str(symbol) for symbol in symbols))
        self._register(name, document.get("namespace"), enum_node)
        return enum_node

    def _register(self, name: str, namespace: Any, node: SourceSchemaNode) -> None:
        self._named_types[name] = node
        if namespace:
            self._named_types[f"{namespace}.{name}"] = node
        if "." in name:
            self._named_types[name.rsplit(".", 1)[1]] = node


def _require_key(document: dict[str, Any], key: str) -> Any:
    if key not in document:
        raise StrataSchemaError(f"Schema object is missing '{key}': {document!r}.")
    return document[key]
