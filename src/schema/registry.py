"""Entity-type schema registry.

This module resolves entity type names to source schemas, loading
``<entity_type>.avsc`` documents from the configured schema directory.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from core.constants import SCHEMA_FILE_SUFFIX
from core.errors import StrataSchemaError
from schema.source_schema import SourceSchemaNode, parse_source_schema


class SchemaRegistry:
    """Schema source keyed by entity type name."""

    def __init__(self, schema_dir: Path) -> None:
        self._schema_dir = schema_dir
        self._registered: dict[str, SourceSchemaNode] = {}

    def register(self, entity_type: str, document: Any) -> SourceSchemaNode:
        """Register an in-memory schema, overriding any schema file.

        Args:
            entity_type: Entity type name.
            document: Avro-style schema document or JSON text.

        Returns:
            Parsed source schema.
        """
        node = parse_source_schema(document)
        self._registered[entity_type] = node
        return node

    def resolve(self, entity_type: str) -> SourceSchemaNode:
        """Resolve the source schema for an entity type.

        Args:
            entity_type: Entity type name.

        Returns:
            Parsed source schema.

        Raises:
            StrataSchemaError: If no schema exists or it cannot be parsed.
        """
        if entity_type in self._registered:
            return self._registered[entity_type]
        schema_path = self._schema_dir / f"{entity_type}{SCHEMA_FILE_SUFFIX}"
        if not schema_path.is_file():
            raise StrataSchemaError(
                f"No schema registered for entity type '{entity_type}'. "
                f"Add {schema_path} or register the schema programmatically.",
                reason="SchemaNotFound",
            )
        try:
            document = schema_path.read_text(encoding="utf-8")
        except OSError as error:
            raise StrataSchemaError(
                f"Failed to read schema file {schema_path}: {error}.",
                reason="SchemaNotFound",
            ) from error
        return parse_source_schema(document)

    def entity_types(self) -> tuple[str, ...]:
        """Return all known entity types in sorted order."""
        names = set(self._registered)
        if self._schema_dir.is_dir():
            names.update(path.stem for path in self._schema_dir.glob(f"*{SCHEMA_FILE_SUFFIX}"))
        return tuple(sorted(names))
