"""Unit tests for Lance-backed entity tables."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.errors import StrataStoreError
from schema.record import GenericRecord
from schema.target_schema import INT64, STRING, ArrayType, TargetField, TargetSchema
from store.lance_table import LanceTableWriter

_SCHEMA = TargetSchema(
    fields=(
        TargetField(name="id", data_type=STRING, nullable=False),
        TargetField(name="visits", data_type=INT64, nullable=True),
        TargetField(name="tags", data_type=ArrayType(STRING, False), nullable=False),
    )
)


def _record(record_id: str, visits: int | None = None) -> GenericRecord:
    record = GenericRecord(_SCHEMA)
    record.set_field("id", record_id)
    record.set_field("visits", visits)
    record.set_field("tags", ["t"])
    return record


def _writer(tmp_path: Path) -> LanceTableWriter:
    return LanceTableWriter(str(tmp_path / "accounts.lance"), _SCHEMA, "accounts")


def test_commit_creates_table_and_returns_ids(tmp_path: Path) -> None:
    """The first commit should create the table."""
    writer = _writer(tmp_path)

    result = writer.commit([_record("a-1", 3), _record("a-2")], ["a-1", "a-2"])

    assert result.committed_ids == ("a-1", "a-2")
    assert writer.count_rows() == 2


def test_each_commit_creates_new_version(tmp_path: Path) -> None:
    """Appends should add one version per commit."""
    writer = _writer(tmp_path)
    first = writer.commit([_record("a-1")], ["a-1"])

    second = writer.commit([_record("a-2")], ["a-2"])

    assert second.version > first.version
    assert len(writer.list_versions()) == 2


def test_read_rows_at_earlier_version(tmp_path: Path) -> None:
    """Earlier versions should stay readable after appends."""
    writer = _writer(tmp_path)
    first = writer.commit([_record("a-1")], ["a-1"])
    writer.commit([_record("a-2")], ["a-2"])

    rows = writer.read_rows(first.version)

    assert [row["id"] for row in rows] == ["a-1"]


def test_reading_missing_table_raises_store_error(tmp_path: Path) -> None:
    """Reads before the first commit should fail clearly."""
    with pytest.raises(StrataStoreError):
        _writer(tmp_path).count_rows()
