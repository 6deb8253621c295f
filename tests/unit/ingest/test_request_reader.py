"""Unit tests for batch request file readers."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.errors import StrataIngestError
from core.types import BatchOptions
from ingest.request_reader import build_batch_request, read_batch_request, with_overrides
from tests.fixture_paths import fixture_path


def test_read_json_document_with_embedded_options() -> None:
    """JSON documents should load records and camelCase options."""
    request = read_batch_request(fixture_path("batches/users_batch.json"), "users")

    assert len(request.records) == 4
    assert request.options.batch_size == 2


def test_read_jsonl_skips_blank_lines() -> None:
    """JSONL files should ignore blank lines."""
    request = read_batch_request(fixture_path("batches/users_small.jsonl"), "users")

    assert [record["user_id"] for record in request.records] == ["j-1", "j-2"]


def test_explicit_options_override_embedded_options() -> None:
    """Caller options should win over options in the file."""
    request = read_batch_request(
        fixture_path("batches/users_batch.json"), "users", BatchOptions(batch_size=10)
    )

    assert request.options.batch_size == 10


def test_read_rejects_unknown_option_keys(tmp_path: Path) -> None:
    """Unsupported option names should fail loudly."""
    source = tmp_path / "batch.json"
    source.write_text('{"records": [{"id": 1}], "options": {"turbo": true}}', encoding="utf-8")

    with pytest.raises(StrataIngestError):
        read_batch_request(source, "users")


def test_read_rejects_missing_file(tmp_path: Path) -> None:
    """Missing files should raise an ingest error."""
    with pytest.raises(StrataIngestError):
        read_batch_request(tmp_path / "missing.json", "users")


def test_build_rejects_empty_batch() -> None:
    """A batch needs at least one record."""
    with pytest.raises(StrataIngestError):
        build_batch_request("users", [])


def test_build_rejects_oversized_batch() -> None:
    """A batch may not exceed the record limit."""
    with pytest.raises(StrataIngestError):
        build_batch_request("users", [{"id": index} for index in range(1001)])


def test_build_rejects_non_object_records() -> None:
    """Every record must be a JSON object."""
    with pytest.raises(StrataIngestError):
        build_batch_request("users", [{"id": 1}, 2])  # type: ignore[list-item]


def test_with_overrides_ignores_none_values() -> None:
    """Unset overrides should keep existing option values."""
    options = with_overrides(BatchOptions(batch_size=5), batch_size=None, fail_fast=True)

    assert (options.batch_size, options.fail_fast) == (5, True)


@pytest.mark.parametrize(
    "options_json",
    [
        '{"batchSize": "5"}',
        '{"failFast": "false"}',
        '{"timeoutSeconds": "10"}',
        '{"batchSize": true}',
    ],
)
def test_read_rejects_mistyped_options(tmp_path: Path, options_json: str) -> None:
    """Embedded options with the wrong JSON type should fail as ingest errors."""
    source = tmp_path / "batch.json"
    source.write_text(
        f'{{"records": [{{"id": 1}}], "options": {options_json}}}', encoding="utf-8"
    )

    with pytest.raises(StrataIngestError):
        read_batch_request(source, "users")


def test_read_accepts_typed_options(tmp_path: Path) -> None:
    """Correctly typed embedded options should apply."""
    source = tmp_path / "batch.json"
    source.write_text(
        '{"records": [{"id": 1}], "options": {"failFast": false, "timeoutSeconds": null, '
        '"batchSize": 3}}',
        encoding="utf-8",
    )

    request = read_batch_request(source, "users")

    assert (request.options.fail_fast, request.options.batch_size) == (False, 3)
