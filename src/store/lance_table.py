"""Lance-backed entity tables.

This module commits typed record chunks to Apache Lance datasets. Each
commit is one atomic append that creates a new table version.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Sequence

import lance

from core.errors import StrataCommitError, StrataStoreError
from core.logging_config import get_logger
from core.types import CommitResult, TableVersion
from schema.record import RecordEntity, record_to_row
from schema.target_schema import TargetSchema
from store.arrow_schema import rows_to_table

_LOGGER = get_logger(__name__)


class LanceTableWriter:
    """Table writer and reader for one entity type's Lance dataset."""

    def __init__(
        self,
        table_uri: str,
        target_schema: TargetSchema,
        entity_type: str,
        storage_options: Mapping[str, str] | None = None,
    ) -> None:
        """Bind the writer to a table location.

        Args:
            table_uri: Local path or ``s3://`` URI of the Lance dataset.
            target_schema: Column schema of committed rows.
            entity_type: Entity type name used in logs and messages.
            storage_options: Object-store options passed to Lance.
        """
        self._table_uri = table_uri
        self._target_schema = target_schema
        self._entity_type = entity_type
        self._storage_options = dict(storage_options or {})

    @property
    def table_uri(self) -> str:
        return self._table_uri

    def commit(
        self, records: Sequence[RecordEntity], record_ids: Sequence[str]
    ) -> CommitResult:
        """Append records to the table as one new version.

        Args:
            records: Typed records sharing the writer's schema.
            record_ids: Identities of ``records`` in the same order.

        Returns:
            Commit outcome with the new table version.

        Raises:
            StrataCommitError: If conversion or the Lance write fails.
        """
        rows = [record_to_row(record) for record in records]
        mode = "append" if self._table_exists() else "create"
        try:
            table = rows_to_table(self._target_schema, rows)
            dataset = lance.write_dataset(
                table,
                self._table_uri,
                mode=mode,
                storage_options=self._storage_options or None,
            )
        except Exception as error:
            raise StrataCommitError(
                f"Failed to commit {len(rows)} {self._entity_type} rows to {self._table_uri}: "
                f"{error}. Check table schema compatibility and storage availability."
            ) from error
        _LOGGER.debug(
            "table_committed",
            entity_type=self._entity_type,
            table_uri=self._table_uri,
            mode=mode,
            version=dataset.version,
            row_count=len(rows),
        )
        return CommitResult(
            committed_ids=tuple(record_ids), version=dataset.version, row_count=len(rows)
        )

    def list_versions(self) -> list[TableVersion]:
        """Return committed table versions in ascending order.

        Raises:
            StrataStoreError: If the table does not exist.
        """
        dataset = self._open_dataset()
        versions = [
            TableVersion(version=int(item["version"]), created_at=item.get("timestamp"))
            for item in dataset.versions()
        ]
        return sorted(versions, key=lambda item: item.version)

    def count_rows(self) -> int:
        """Return the row count at the latest version."""
        return int(self._open_dataset().count_rows())

    def read_rows(self, version: int | None = None) -> list[dict[str, Any]]:
        """Read all rows, optionally at a specific version.

        Args:
            version: Optional table version; latest when omitted.

        Returns:
            Rows as column-name to value mappings.
        """
        dataset = self._open_dataset(version)
        return dataset.to_table().to_pylist()

    def _open_dataset(self, version: int | None = None) -> Any:
        if not self._table_exists():
            raise StrataStoreError(
                f"Table for entity type '{self._entity_type}' not found at {self._table_uri}. "
                "Ingest a batch before reading the table."
            )
        try:
            return lance.dataset(
                self._table_uri,
                version=version,
                storage_options=self._storage_options or None,
            )
        except Exception as error:
            raise StrataStoreError(
                f"Failed to open table {self._table_uri}: {error}. "
                "Verify the version exists and storage credentials are valid."
            ) from error

    def _table_exists(self) -> bool:
        if not self._table_uri.startswith("s3://"):
            return Path(self._table_uri).exists()
        try:
            lance.dataset(self._table_uri, storage_options=self._storage_options or None)
        except (ValueError, OSError):
            return False
        return True
