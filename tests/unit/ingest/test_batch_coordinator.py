"""Unit tests for chunked batch coordination."""

from __future__ import annotations

from typing import Any, Sequence

from core.errors import StrataCommitError
from core.types import BatchOptions, BatchRequest, CommitResult
from ingest.batch_coordinator import BatchCoordinator, partition_records
from schema.record import RecordEntity, record_to_row
from schema.schema_cache import CompiledSchema, SchemaCache
from schema.source_schema import parse_source_schema
from tests.fixture_paths import read_schema_fixture


class _RecordingWriter:
    """Table writer fake that records commits and can fail on demand."""

    def __init__(self, failing_calls: Sequence[int] = ()) -> None:
        self.commits: list[list[dict[str, Any]]] = []
        self._failing_calls = set(failing_calls)
        self._calls = 0

    def commit(self, records: Sequence[RecordEntity], record_ids: Sequence[str]) -> CommitResult:
        call = self._calls
        self._calls += 1
        if call in self._failing_calls:
            raise StrataCommitError("simulated commit failure")
        rows = [record_to_row(record) for record in records]
        self.commits.append(rows)
        return CommitResult(
            committed_ids=tuple(record_ids),
            version=len(self.commits),
            row_count=len(rows),
        )


class _StepClock:
    """Clock that advances a fixed step on every read."""

    def __init__(self, step: float) -> None:
        self._now = 0.0
        self._step = step

    def __call__(self) -> float:
        self._now += self._step
        return self._now


def _compiled() -> CompiledSchema:
    return SchemaCache().get_or_translate(
        "users", parse_source_schema(read_schema_fixture("users"))
    )


def _user(user_id: str, age: Any = 30) -> dict[str, Any]:
    return {
        "user_id": user_id,
        "username": f"name-{user_id}",
        "age": age,
        "score": 1.0,
        "active": True,
        "tags": [],
        "status": "ACTIVE",
        "address": {"zip": "1"},
    }


def _coordinator(writer: _RecordingWriter, **kwargs: Any) -> BatchCoordinator:
    return BatchCoordinator(
        entity_type="users",
        schema_provider=_compiled,
        writer_factory=lambda compiled: writer,
        **kwargs,
    )


def _request(records: list[dict[str, Any]], **options: Any) -> BatchRequest:
    return BatchRequest(entity_type="users", records=tuple(records), options=BatchOptions(**options))


def test_partition_records_keeps_order_and_short_tail() -> None:
    """Chunks should preserve order with a shorter final chunk."""
    indexed = [(index, {"id": index}) for index in range(5)]

    chunks = partition_records(indexed, 2)

    assert [[index for index, _ in chunk] for chunk in chunks] == [[0, 1], [2, 3], [4]]


def test_process_commits_all_valid_records_in_chunks() -> None:
    """Valid records should commit chunk by chunk in request order."""
    writer = _RecordingWriter()
    records = [_user(f"u-{index}") for index in range(5)]

    response = _coordinator(writer).process(_request(records, batch_size=2))

    assert response.successful_ids == ("u-0", "u-1", "u-2", "u-3", "u-4")
    assert [len(rows) for rows in writer.commits] == [2, 2, 1]
    assert response.statistics.total_batches == 3


def test_duplicate_keys_are_reported_and_not_written() -> None:
    """Later repeats of an identity key should fail without being written."""
    writer = _RecordingWriter()
    records = [_user("u-1"), _user("u-2"), _user("u-1")]

    response = _coordinator(writer).process(_request(records))

    assert [(failure.index, failure.error_kind) for failure in response.failures] == [
        (2, "DuplicateKey")
    ]
    assert response.success_count == 2
    assert sum(len(rows) for rows in writer.commits) == 2


def test_duplicate_check_can_be_disabled() -> None:
    """With duplicate validation off, repeated keys are written."""
    writer = _RecordingWriter()
    records = [_user("u-1"), _user("u-1")]

    response = _coordinator(writer).process(_request(records, validate_duplicates=False))

    assert response.success_count == 2


def test_coercion_failure_continues_by_default() -> None:
    """A bad record should fail alone while the rest commit."""
    writer = _RecordingWriter()
    records = [_user("u-1"), _user("u-2", age="old"), _user("u-3")]

    response = _coordinator(writer).process(_request(records))

    assert response.successful_ids == ("u-1", "u-3")
    assert response.failures[0].error_kind == "CoercionError"
    assert response.failures[0].record_id == "u-2"


def test_fail_fast_stops_after_first_failing_record() -> None:
    """Fail-fast should stop evaluating once a record fails."""
    writer = _RecordingWriter()
    records = [_user("u-1"), _user("u-2", age="old"), _user("u-3"), _user("u-4")]

    response = _coordinator(writer).process(_request(records, fail_fast=True, batch_size=2))

    assert response.total_requested == 2
    assert response.successful_ids == ("u-1",)
    assert response.statistics.additional_metrics["abortReason"] == "fail_fast"


def test_stop_on_failure_finishes_current_chunk() -> None:
    """Without continue-on-failure, the failing chunk completes then the run stops."""
    writer = _RecordingWriter()
    records = [_user("u-1", age="old"), _user("u-2"), _user("u-3")]

    response = _coordinator(writer).process(
        _request(records, continue_on_failure=False, batch_size=2)
    )

    assert response.successful_ids == ("u-2",)
    assert response.statistics.additional_metrics["notAttempted"] == 1


def test_commit_failure_marks_every_record_in_chunk() -> None:
    """A failed commit should fail each record it carried."""
    writer = _RecordingWriter(failing_calls=[0])
    records = [_user("u-1"), _user("u-2"), _user("u-3")]

    response = _coordinator(writer).process(_request(records, batch_size=2))

    assert [(failure.index, failure.error_kind) for failure in response.failures] == [
        (0, "StorageCommitError"),
        (1, "StorageCommitError"),
    ]
    assert response.successful_ids == ("u-3",)
    assert "request indices 0-1" in response.failures[0].error_message


def test_every_evaluated_record_is_accounted_for() -> None:
    """Successes plus failures should equal the evaluated record count."""
    writer = _RecordingWriter(failing_calls=[1])
    records = [
        _user("u-1"),
        _user("u-2", age="bad"),
        _user("u-3"),
        _user("u-1"),
        _user("u-5"),
        _user("u-6"),
    ]

    response = _coordinator(writer).process(_request(records, batch_size=2))

    assert response.success_count + response.failure_count == response.total_requested == 6


def test_failures_are_sorted_by_request_index() -> None:
    """Failures should be reported in request order."""
    writer = _RecordingWriter()
    records = [_user("u-1"), _user("u-1"), _user("u-3", age="bad")]

    response = _coordinator(writer).process(_request(records))

    assert [failure.index for failure in response.failures] == [1, 2]


def test_timeout_stops_before_next_chunk() -> None:
    """An expired deadline should stop processing before the next chunk."""
    writer = _RecordingWriter()
    records = [_user(f"u-{index}") for index in range(4)]
    coordinator = _coordinator(writer, clock=_StepClock(step=1.0))

    response = coordinator.process(_request(records, batch_size=2, timeout_seconds=2.5))

    assert response.successful_ids == ("u-0", "u-1")
    assert response.statistics.additional_metrics["abortReason"] == "timeout"


def test_statistics_use_floor_averages() -> None:
    """Average chunk size should be the floor of evaluated over chunks."""
    writer = _RecordingWriter()
    records = [_user(f"u-{index}") for index in range(5)]

    response = _coordinator(writer).process(_request(records, batch_size=2))

    assert response.statistics.avg_batch_size == 1
    assert response.statistics.underlying_commit_count == 3


def test_records_without_identity_get_positional_ids() -> None:
    """Records lacking an id field should use the entity and index."""
    writer = _RecordingWriter()
    record = _user("ignored")
    del record["user_id"]

    response = _coordinator(writer, identity_key=lambda raw: None).process(_request([record]))

    assert response.successful_ids == ("users_0",)


def test_missing_defaulted_field_takes_declared_default() -> None:
    """A record omitting a defaulted required field should commit with the default."""
    writer = _RecordingWriter()
    compiled = SchemaCache().get_or_translate(
        "users", parse_source_schema(read_schema_fixture("users_v2"))
    )
    coordinator = BatchCoordinator(
        entity_type="users",
        schema_provider=lambda: compiled,
        writer_factory=lambda compiled_schema: writer,
    )
    records = [
        {**_user("u-1"), "country": "NO"},
        _user("u-2"),
        {**_user("u-3"), "country": "SE"},
    ]

    response = coordinator.process(_request(records))

    assert response.failures == ()
    assert [row["country"] for row in writer.commits[0]] == ["NO", "US", "SE"]
