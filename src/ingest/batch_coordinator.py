"""Batch ingest orchestration.

This module screens a batch for duplicate identities, splits it into
ordered chunks, materializes and commits each chunk, and aggregates an
accounted response under fail-fast or continue-on-failure policies.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Sequence

from core.constants import (
    FAILURE_KIND_COERCION,
    FAILURE_KIND_DUPLICATE_KEY,
    FAILURE_KIND_STORAGE_COMMIT,
)
from core.errors import StrataCoercionError, StrataCommitError
from core.logging_config import get_logger
from core.types import BatchOptions, BatchRequest, BatchResponse, FailureDetail
from ingest.duplicates import (
    IdentityKeyExtractor,
    default_identity_key,
    find_duplicates,
    record_identity,
)
from ingest.materializer import RecordMaterializer
from ingest.statistics import StatisticsAggregator
from schema.record import RecordEntity
from schema.schema_cache import CompiledSchema
from store.table_writer import TableWriter

_LOGGER = get_logger(__name__)

IndexedRecord = tuple[int, Mapping[str, Any]]
WriterFactory = Callable[[CompiledSchema], TableWriter]


@dataclass
class _ChunkOutcome:
    """Accounting for one processed chunk."""

    evaluated: int = 0
    successful_ids: list[str] = field(default_factory=list)
    failures: list[FailureDetail] = field(default_factory=list)
    warning_count: int = 0


@dataclass
class _RunState:
    """Mutable accounting for one batch request."""

    evaluated: int = 0
    successful_ids: list[str] = field(default_factory=list)
    failures: list[FailureDetail] = field(default_factory=list)
    warning_count: int = 0
    abort_reason: str | None = None

    def absorb(self, outcome: _ChunkOutcome) -> None:
        self.evaluated += outcome.evaluated
        self.successful_ids.extend(outcome.successful_ids)
        self.failures.extend(outcome.failures)
        self.warning_count += outcome.warning_count


class BatchCoordinator:
    """Sequential chunked ingest for one entity type."""

    def __init__(
        self,
        entity_type: str,
        schema_provider: Callable[[], CompiledSchema],
        writer_factory: WriterFactory,
        builder_type: type | None = None,
        identity_key: IdentityKeyExtractor = default_identity_key,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Create a coordinator.

        Args:
            entity_type: Entity type handled by this coordinator.
            schema_provider: Returns the compiled schema, resolved lazily once.
            writer_factory: Builds the table writer for the compiled schema.
            builder_type: Optional builder class for builder-based records.
            identity_key: Identity-key extractor for duplicates and ids.
            clock: Monotonic clock in seconds.
        """
        self._entity_type = entity_type
        self._schema_provider = schema_provider
        self._writer_factory = writer_factory
        self._builder_type = builder_type
        self._identity_key = identity_key
        self._clock = clock

    def process(self, request: BatchRequest) -> BatchResponse:
        """Process a batch request end to end.

        Args:
            request: Validated batch request.

        Returns:
            Aggregated response covering every evaluated record.

        Raises:
            StrataSchemaError: If the entity schema cannot be translated.
        """
        started_at = self._clock()
        options = request.options
        records = request.records
        _LOGGER.info(
            "batch_started",
            entity_type=self._entity_type,
            record_count=len(records),
            batch_size=options.batch_size,
            fail_fast=options.fail_fast,
            validate_duplicates=options.validate_duplicates,
        )
        state = _RunState()
        duplicate_indices = self._screen_duplicates(records, options, state)
        pending = [
            (index, record) for index, record in enumerate(records) if index not in duplicate_indices
        ]
        chunks = partition_records(pending, options.batch_size)
        statistics = StatisticsAggregator()
        if chunks:
            self._run_chunks(chunks, options, started_at, state, statistics)
        return self._build_response(request, started_at, state, statistics, len(chunks))

    def _screen_duplicates(
        self,
        records: Sequence[Mapping[str, Any]],
        options: BatchOptions,
        state: _RunState,
    ) -> set[int]:
        if not options.validate_duplicates:
            return set()
        duplicate_indices = find_duplicates(records, self._identity_key)
        for index in duplicate_indices:
            identity = self._identity_key(records[index])
            state.failures.append(
                FailureDetail(
                    record_id=identity,
                    index=index,
                    error_message=f"Duplicate identity key '{identity}' already present in batch",
                    error_kind=FAILURE_KIND_DUPLICATE_KEY,
                )
            )
        state.evaluated += len(duplicate_indices)
        return set(duplicate_indices)

    def _run_chunks(
        self,
        chunks: list[list[IndexedRecord]],
        options: BatchOptions,
        started_at: float,
        state: _RunState,
        statistics: StatisticsAggregator,
    ) -> None:
        compiled = self._schema_provider()
        materializer = RecordMaterializer(compiled, self._builder_type)
        writer = self._writer_factory(compiled)
        deadline = started_at + options.timeout_seconds if options.timeout_seconds else None
        for chunk_number, chunk in enumerate(chunks):
            if deadline is not None and self._clock() >= deadline:
                state.abort_reason = "timeout"
                break
            outcome = self._process_chunk(
                chunk_number, chunk, materializer, writer, options, statistics
            )
            state.absorb(outcome)
            if outcome.failures and options.stops_on_failure:
                state.abort_reason = "fail_fast" if options.fail_fast else "stop_on_failure"
                break
        if state.abort_reason is not None:
            _LOGGER.warning(
                "batch_aborted",
                entity_type=self._entity_type,
                reason=state.abort_reason,
                chunks_attempted=statistics.total_batches,
                chunks_total=len(chunks),
            )

    def _process_chunk(
        self,
        chunk_number: int,
        chunk: list[IndexedRecord],
        materializer: RecordMaterializer,
        writer: TableWriter,
        options: BatchOptions,
        statistics: StatisticsAggregator,
    ) -> _ChunkOutcome:
        outcome = _ChunkOutcome()
        typed: list[tuple[int, str, RecordEntity]] = []
        for index, raw in chunk:
            outcome.evaluated += 1
            record_id = record_identity(raw, self._entity_type, index, self._identity_key)
            try:
                result = materializer.materialize(raw)
            except StrataCoercionError as error:
                outcome.failures.append(
                    FailureDetail(
                        record_id=record_id,
                        index=index,
                        error_message=str(error),
                        error_kind=FAILURE_KIND_COERCION,
                    )
                )
                if options.fail_fast:
                    break
                continue
            outcome.warning_count += len(result.warnings)
            typed.append((index, record_id, result.record))
        if not typed:
            statistics.record_chunk(outcome.evaluated, None, committed=False)
            return outcome
        commit_started = self._clock()
        try:
            commit_result = writer.commit(
                [record for _, _, record in typed],
                [record_id for _, record_id, _ in typed],
            )
        except StrataCommitError as error:
            commit_ms = _elapsed_ms(commit_started, self._clock())
            statistics.record_chunk(outcome.evaluated, commit_ms, committed=False)
            chunk_error = _chunk_commit_error(error, typed[0][0], typed[-1][0])
            outcome.failures.extend(
                FailureDetail(
                    record_id=record_id,
                    index=index,
                    error_message=str(chunk_error),
                    error_kind=FAILURE_KIND_STORAGE_COMMIT,
                )
                for index, record_id, _ in typed
            )
            _LOGGER.warning(
                "chunk_commit_failed",
                entity_type=self._entity_type,
                chunk=chunk_number,
                index_range=chunk_error.index_range,
                error=str(error),
            )
            return outcome
        commit_ms = _elapsed_ms(commit_started, self._clock())
        statistics.record_chunk(outcome.evaluated, commit_ms, committed=True)
        outcome.successful_ids.extend(commit_result.committed_ids)
        _LOGGER.debug(
            "chunk_committed",
            entity_type=self._entity_type,
            chunk=chunk_number,
            row_count=commit_result.row_count,
            version=commit_result.version,
            commit_ms=commit_ms,
        )
        return outcome

    def _build_response(
        self,
        request: BatchRequest,
        started_at: float,
        state: _RunState,
        statistics: StatisticsAggregator,
        chunk_total: int,
    ) -> BatchResponse:
        processing_time_ms = _elapsed_ms(started_at, self._clock())
        failures = tuple(sorted(state.failures, key=lambda failure: failure.index))
        batch_statistics = statistics.build(
            state.evaluated,
            {
                "entityType": self._entity_type,
                "chunksPlanned": chunk_total,
                "chunksProcessed": statistics.total_batches,
                "configuredBatchSize": request.options.batch_size,
                "totalProcessingTimeMs": processing_time_ms,
                "notAttempted": len(request.records) - state.evaluated,
                "aborted": state.abort_reason is not None,
                "abortReason": state.abort_reason,
                "materializationWarnings": state.warning_count,
            },
        )
        response = BatchResponse(
            total_requested=state.evaluated,
            success_count=len(state.successful_ids),
            failure_count=len(failures),
            successful_ids=tuple(state.successful_ids),
            failures=failures,
            processed_at=datetime.now(timezone.utc),
            processing_time_ms=processing_time_ms,
            statistics=batch_statistics,
        )
        _LOGGER.info(
            "batch_completed",
            entity_type=self._entity_type,
            total_requested=response.total_requested,
            success_count=response.success_count,
            failure_count=response.failure_count,
            processing_time_ms=processing_time_ms,
        )
        return response


def partition_records(records: list[IndexedRecord], chunk_size: int) -> list[list[IndexedRecord]]:
    """Split indexed records into ordered chunks of at most ``chunk_size``.

    Args:
        records: Records paired with their original request index.
        chunk_size: Maximum chunk length, at least 1.

    Returns:
        Ordered chunk list; the last chunk may be shorter.
    """
    return [records[start : start + chunk_size] for start in range(0, len(records), chunk_size)]


def _chunk_commit_error(cause: StrataCommitError, first: int, last: int) -> StrataCommitError:
    """Attach the request index range of a failed chunk commit."""
    chunk_error = StrataCommitError(
        f"Chunk commit for request indices {first}-{last} failed: {cause}",
        index_range=(first, last),
    )
    chunk_error.__cause__ = cause
    return chunk_error


def _elapsed_ms(started_at: float, finished_at: float) -> int:
    return int(round((finished_at - started_at) * 1000))
