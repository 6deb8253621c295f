"""Per-entity-type translated schema cache.

This module memoizes schema translation and coercion-table compilation
so each entity type pays the cost once across batches.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from core.logging_config import get_logger
from schema.coercion import Coercer, build_coercion_table
from schema.source_schema import RecordNode, SourceSchemaNode, schema_fingerprint
from schema.target_schema import TargetSchema
from schema.translator import translate_schema

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class CompiledSchema:
    """Translated schema plus its compiled coercion table.

    Attributes:
        entity_type: Entity type the schema belongs to.
        fingerprint: Hash of the canonical source schema.
        source: Source schema node.
        target: Translated column schema.
        coercers: Column-name to coercion function table.
        defaults: Column-name to declared default for fields that declare one.
    """

    entity_type: str
    fingerprint: str
    source: SourceSchemaNode
    target: TargetSchema
    coercers: Mapping[str, Coercer]
    defaults: Mapping[str, Any] = field(default_factory=dict)


class SchemaCache:
    """Thread-safe cache keyed by entity type and schema fingerprint."""

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], CompiledSchema] = {}
        self._lock = threading.Lock()

    def get_or_translate(self, entity_type: str, source: SourceSchemaNode) -> CompiledSchema:
        """Return the cached compiled schema, translating on first use.

        Args:
            entity_type: Entity type name.
            source: Source schema for the entity type.

        Returns:
            Compiled schema shared by all batches of this entity type.

        Raises:
            StrataSchemaError: If the source schema cannot be translated.
        """
        key = (entity_type, schema_fingerprint(source))
        cached = self._entries.get(key)
        if cached is not None:
            return cached
        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                return cached
            target = translate_schema(source)
            compiled = CompiledSchema(
                entity_type=entity_type,
                fingerprint=key[1],
                source=source,
                target=target,
                coercers=build_coercion_table(target),
                defaults=declared_defaults(source),
            )
            self._entries[key] = compiled
        _LOGGER.info(
            "schema_translated",
            entity_type=entity_type,
            fingerprint=key[1],
            field_count=len(target),
        )
        return compiled

    def invalidate(self, entity_type: str) -> int:
        """Drop all cached schemas for an entity type.

        Args:
            entity_type: Entity type name.

        Returns:
            Number of dropped entries.
        """
        with self._lock:
            stale_keys = [key for key in self._entries if key[0] == entity_type]
            for key in stale_keys:
                del self._entries[key]
        _LOGGER.debug("schema_invalidated", entity_type=entity_type, dropped=len(stale_keys))
        return len(stale_keys)

    def stats(self) -> dict[str, object]:
        """Return cache size and keys for diagnostics."""
        with self._lock:
            keys = sorted(f"{entity_type}_{fingerprint}" for entity_type, fingerprint in self._entries)
        return {"cached_schemas": len(keys), "schema_keys": keys}


def declared_defaults(source: SourceSchemaNode) -> Mapping[str, Any]:
    """Collect non-null declared defaults of a record's top-level fields.

    Args:
        source: Source schema node.

    Returns:
        Read-only field-name to default mapping; empty for non-records.
    """
    if not isinstance(source, RecordNode):
        return MappingProxyType({})
    return MappingProxyType(
        {
            source_field.name: source_field.default
            for source_field in source.fields
            if source_field.has_default and source_field.default is not None
        }
    )
