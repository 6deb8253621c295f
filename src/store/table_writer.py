"""Table-writer contract used by the batch coordinator."""

from __future__ import annotations

from typing import Any, Protocol, Sequence

from core.types import CommitResult, TableVersion
from schema.record import RecordEntity


class TableWriter(Protocol):
    """Atomic, all-or-nothing chunk commit contract."""

    def commit(
        self, records: Sequence[RecordEntity], record_ids: Sequence[str]
    ) -> CommitResult:
        """Commit records as one transactional unit.

        ``record_ids`` are the identities of ``records`` in the same order.

        Raises:
            StrataCommitError: If the commit fails; nothing is written.
        """


class TableReader(Protocol):
    """Read-side table inspection contract."""

    def list_versions(self) -> list[TableVersion]:
        """Return committed versions in ascending order."""

    def count_rows(self) -> int:
        """Return the number of rows at the latest version."""

    def read_rows(self, version: int | None = None) -> list[dict[str, Any]]:
        """Return all rows at ``version``, or at the latest version."""
