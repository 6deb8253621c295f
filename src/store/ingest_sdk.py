"""Python SDK for entity ingestion.

This module exposes high-level APIs for schema registration, batch
ingest, schema inspection, and table version listing.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Any

from core.config import StrataConfig
from core.constants import TABLE_DIR_SUFFIX, TABLES_DIR_NAME
from core.s3_uri import parse_s3_uri
from core.types import BatchRequest, BatchResponse, TableVersion
from ingest.batch_coordinator import BatchCoordinator
from ingest.duplicates import IdentityKeyExtractor, default_identity_key
from schema.compatibility import CompatibilityResult, check_compatibility
from schema.registry import SchemaRegistry
from schema.schema_cache import CompiledSchema, SchemaCache
from schema.source_schema import parse_source_schema
from schema.target_schema import TargetSchema
from schema.translator import translate_schema
from store.bucket_init import ensure_bucket, lance_storage_options
from store.lance_table import LanceTableWriter
from store.table_writer import TableReader


class StrataClient:
    """Primary SDK entry point for ingest workflows."""

    def __init__(self, config: StrataConfig | None = None) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
        """
        self._config = config or StrataConfig.from_env()
        self._registry = SchemaRegistry(self._config.schema_dir)
        self._schema_cache = SchemaCache()
        self._builders: dict[str, type] = {}
        self._bucket_checked = False

    @property
    def config(self) -> StrataConfig:
        return self._config

    def register_schema(self, entity_type: str, document: Any) -> TargetSchema:
        """Register a source schema and return its translated form.

        Args:
            entity_type: Entity type name.
            document: Avro-style schema document or JSON text.

        Returns:
            Translated target schema.

        Raises:
            StrataSchemaError: If the document is malformed or not a record; the
                previously registered schema stays in effect.
        """
        translate_schema(parse_source_schema(document))
        self._schema_cache.invalidate(entity_type)
        self._registry.register(entity_type, document)
        return self.compiled_schema(entity_type).target

    def register_builder(self, entity_type: str, builder_type: type) -> None:
        """Materialize an entity type through a builder instead of field maps.

        Args:
            entity_type: Entity type name.
            builder_type: Builder class exposing ``set<Field>`` setters and ``build``.
        """
        self._builders[entity_type] = builder_type

    def compiled_schema(self, entity_type: str) -> CompiledSchema:
        """Resolve and translate an entity schema, using the shared cache.

        Raises:
            StrataSchemaError: If the schema is missing or not a record.
        """
        source = self._registry.resolve(entity_type)
        return self._schema_cache.get_or_translate(entity_type, source)

    def entity_types(self) -> tuple[str, ...]:
        return self._registry.entity_types()

    def ingest(
        self,
        request: BatchRequest,
        identity_key: IdentityKeyExtractor = default_identity_key,
    ) -> BatchResponse:
        """Ingest a batch request into its entity table.

        Args:
            request: Validated batch request.
            identity_key: Identity-key extractor for duplicate detection.

        Returns:
            Aggregated batch response.

        Raises:
            StrataSchemaError: If the entity schema cannot be translated.
        """
        entity_type = request.entity_type
        options = request.options
        if options.timeout_seconds is None and self._config.batch_timeout_seconds:
            request = replace(
                request,
                options=replace(options, timeout_seconds=self._config.batch_timeout_seconds),
            )
        coordinator = BatchCoordinator(
            entity_type=entity_type,
            schema_provider=lambda: self.compiled_schema(entity_type),
            writer_factory=lambda compiled: self._writer(entity_type, compiled.target),
            builder_type=self._builders.get(entity_type),
            identity_key=identity_key,
        )
        return coordinator.process(request)

    def table(self, entity_type: str) -> "EntityTable":
        """Get a table handle for an entity type."""
        return EntityTable(entity_type, self)

    def check_schema_update(
        self,
        entity_type: str,
        document: Any,
        mode: str = "backward",
    ) -> CompatibilityResult:
        """Check a candidate schema against the registered one.

        Args:
            entity_type: Entity type name.
            document: Candidate schema document or JSON text.
            mode: Compatibility mode.

        Returns:
            Compatibility result.
        """
        current = self._registry.resolve(entity_type)
        return check_compatibility(current, parse_source_schema(document), mode)

    def with_data_root(self, data_root: str) -> "StrataClient":
        """Clone the client with a different local data root."""
        resolved_root = Path(data_root).expanduser().resolve()
        return StrataClient(replace(self._config, data_root=resolved_root))

    def table_uri(self, entity_type: str) -> str:
        """Return the storage location of an entity table."""
        table_name = f"{entity_type}{TABLE_DIR_SUFFIX}"
        if self._config.table_root:
            return parse_s3_uri(self._config.table_root, domain="config").child_uri(table_name)
        tables_root = self._config.data_root / TABLES_DIR_NAME
        tables_root.mkdir(parents=True, exist_ok=True)
        return str(tables_root / table_name)

    def _writer(self, entity_type: str, target_schema: TargetSchema) -> LanceTableWriter:
        if self._config.table_root and not self._bucket_checked:
            ensure_bucket(self._config)
            self._bucket_checked = True
        return LanceTableWriter(
            table_uri=self.table_uri(entity_type),
            target_schema=target_schema,
            entity_type=entity_type,
            storage_options=lance_storage_options(self._config),
        )


class EntityTable:
    """Read-side handle for one entity table."""

    def __init__(self, entity_type: str, client: StrataClient) -> None:
        self._entity_type = entity_type
        self._client = client

    @property
    def entity_type(self) -> str:
        return self._entity_type

    def schema(self) -> TargetSchema:
        return self._client.compiled_schema(self._entity_type).target

    def list_versions(self) -> list[TableVersion]:
        return self._reader().list_versions()

    def count_rows(self) -> int:
        return self._reader().count_rows()

    def read_rows(self, version: int | None = None) -> list[dict[str, Any]]:
        return self._reader().read_rows(version)

    def _reader(self) -> TableReader:
        return LanceTableWriter(
            table_uri=self._client.table_uri(self._entity_type),
            target_schema=self.schema(),
            entity_type=self._entity_type,
            storage_options=lance_storage_options(self._client.config),
        )
