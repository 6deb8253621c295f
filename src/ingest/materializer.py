"""Record materialization against translated schemas.

This module turns untyped field maps into schema-conformant records,
either by generic field assignment or through a registered builder.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ingest.entity_builder import SetterTable, build_with_setters
from schema.coercion import Coercer, build_coercion_table
from schema.record import GenericRecord, RecordEntity
from schema.schema_cache import CompiledSchema
from schema.target_schema import TargetSchema


@dataclass(frozen=True)
class MaterializationResult:
    """One materialized record and any non-fatal warnings."""

    record: RecordEntity
    warnings: tuple[str, ...] = ()


def materialize(
    raw: Mapping[str, Any],
    schema: TargetSchema,
    defaults: Mapping[str, Any] | None = None,
) -> GenericRecord:
    """Build a schema-conformant record from an untyped field map.

    Missing fields take their declared default when one exists; missing
    fields without a default and explicit nulls stay null. Fields unknown
    to the schema are ignored.

    Args:
        raw: Field-name to value mapping.
        schema: Target column schema.
        defaults: Optional field-name to declared default mapping.

    Returns:
        Typed generic record.

    Raises:
        StrataCoercionError: If a present value cannot be coerced.
    """
    return _assign_fields(raw, schema, build_coercion_table(schema), defaults or {})


class RecordMaterializer:
    """Materializer bound to one entity type's compiled schema."""

    def __init__(self, compiled: CompiledSchema, builder_type: type | None = None) -> None:
        self._compiled = compiled
        self._setters = SetterTable.for_builder(builder_type) if builder_type else None

    @property
    def uses_builder(self) -> bool:
        return self._setters is not None

    def materialize(self, raw: Mapping[str, Any]) -> MaterializationResult:
        """Materialize one record through the configured construction path.

        Args:
            raw: Field-name to value mapping.

        Returns:
            Materialized record with warnings.

        Raises:
            StrataCoercionError: If the record cannot be materialized.
        """
        if self._setters is not None:
            built = build_with_setters(raw, self._setters)
            return MaterializationResult(record=built.record, warnings=built.warnings)
        record = _assign_fields(
            raw, self._compiled.target, self._compiled.coercers, self._compiled.defaults
        )
        return MaterializationResult(record=record)


def _assign_fields(
    raw: Mapping[str, Any],
    schema: TargetSchema,
    coercers: Mapping[str, Coercer],
    defaults: Mapping[str, Any],
) -> GenericRecord:
    record = GenericRecord(schema)
    for target_field in schema.fields:
        if target_field.name in raw:
            value = raw[target_field.name]
        else:
            value = defaults.get(target_field.name)
        if value is None:
            continue
        record.set_field(target_field.name, coercers[target_field.name](value))
    return record
