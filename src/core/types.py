"""Shared typed models.

This module defines immutable data models used by the ingest, store,
SDK, and CLI layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Mapping

from core.constants import DEFAULT_BATCH_SIZE
from core.errors import StrataIngestError

FailureKind = Literal["DuplicateKey", "CoercionError", "StorageCommitError"]

RawRecord = Mapping[str, Any]


@dataclass(frozen=True)
class BatchOptions:
    """Per-request batch processing policy.

    Attributes:
        fail_fast: Stop at the first failing record or chunk.
        batch_size: Number of records committed per chunk.
        continue_on_failure: Keep processing chunks after a failed chunk.
        validate_duplicates: Reject repeated identity keys before writing.
        timeout_seconds: Optional request deadline checked between chunks.
    """

    fail_fast: bool = False
    batch_size: int = DEFAULT_BATCH_SIZE
    continue_on_failure: bool = True
    validate_duplicates: bool = True
    timeout_seconds: float | None = None

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise StrataIngestError(
                f"Invalid batch_size {self.batch_size}: expected a value >= 1."
            )
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise StrataIngestError(
                f"Invalid timeout_seconds {self.timeout_seconds}: expected a positive value."
            )

    @property
    def stops_on_failure(self) -> bool:
        """Whether a failed chunk ends the request."""
        return self.fail_fast or not self.continue_on_failure


@dataclass(frozen=True)
class BatchRequest:
    """Validated batch of untyped records for one entity type.

    Attributes:
        entity_type: Logical entity/table name.
        records: Ordered field-name to value mappings.
        options: Batch processing policy.
    """

    entity_type: str
    records: tuple[RawRecord, ...]
    options: BatchOptions = field(default_factory=BatchOptions)


@dataclass(frozen=True)
class FailureDetail:
    """One failed record in a batch response.

    Attributes:
        record_id: Identity of the record when known.
        index: Position of the record in the original request.
        error_message: Human-readable failure description.
        error_kind: Failure category.
    """

    record_id: str | None
    index: int
    error_message: str
    error_kind: FailureKind


@dataclass(frozen=True)
class BatchStatistics:
    """Aggregated chunk statistics for one batch request.

    Attributes:
        total_batches: Number of chunks attempted.
        avg_batch_size: Floor of evaluated records per chunk.
        avg_processing_time_per_batch: Floor of commit milliseconds per chunk.
        total_underlying_commit_time: Sum of commit durations in milliseconds.
        underlying_commit_count: Number of commit calls issued.
        additional_metrics: Free-form diagnostic values.
    """

    total_batches: int
    avg_batch_size: int
    avg_processing_time_per_batch: int
    total_underlying_commit_time: int
    underlying_commit_count: int
    additional_metrics: Mapping[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class BatchResponse:
    """Final outcome of a batch request.

    Attributes:
        total_requested: Records evaluated for success or failure.
        success_count: Records committed to the table.
        failure_count: Records reported in ``failures``.
        successful_ids: Committed identities in request order.
        failures: Failed records in request order.
        processed_at: UTC completion timestamp.
        processing_time_ms: Wall-clock duration of the request.
        statistics: Per-chunk aggregate statistics.
    """

    total_requested: int
    success_count: int
    failure_count: int
    successful_ids: tuple[str, ...]
    failures: tuple[FailureDetail, ...]
    processed_at: datetime
    processing_time_ms: int
    statistics: BatchStatistics


@dataclass(frozen=True)
class CommitResult:
    """Outcome of one successful table commit.

    Attributes:
        committed_ids: Identities of the committed rows in order.
        version: Table version created by the commit.
        row_count: Number of rows appended.
    """

    committed_ids: tuple[str, ...]
    version: int
    row_count: int


@dataclass(frozen=True)
class TableVersion:
    """One committed table version.

    Attributes:
        version: Monotonic version number.
        created_at: Commit timestamp.
        row_count: Total rows visible at this version.
    """

    version: int
    created_at: datetime | None
    row_count: int | None = None
