"""Batch request readers.

This module loads batch records from JSON or JSONL files and applies
the request-size validation expected at the ingest boundary.
"""

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path
from typing import Any, Mapping

from core.constants import MAX_BATCH_RECORDS, MIN_BATCH_RECORDS
from core.errors import StrataIngestError
from core.types import BatchOptions, BatchRequest

_OPTION_KEYS = {
    "failFast": "fail_fast",
    "batchSize": "batch_size",
    "continueOnFailure": "continue_on_failure",
    "validateDuplicates": "validate_duplicates",
    "timeoutSeconds": "timeout_seconds",
}
_FLAG_OPTIONS = ("failFast", "continueOnFailure", "validateDuplicates")


def read_batch_request(
    source_path: Path,
    entity_type: str,
    options: BatchOptions | None = None,
    defaults: BatchOptions | None = None,
) -> BatchRequest:
    """Load a batch request from a JSON or JSONL file.

    JSON files hold either a list of records or an object with
    ``records`` and optional camelCase ``options``. Explicit ``options``
    override options embedded in the file; embedded options override
    ``defaults``.

    Args:
        source_path: Input file path.
        entity_type: Entity type the records belong to.
        options: Optional batch options.
        defaults: Base options for values the file does not set.

    Returns:
        Validated batch request.

    Raises:
        StrataIngestError: If the file is missing, malformed, or out of bounds.
    """
    if not source_path.is_file():
        raise StrataIngestError(
            f"Failed to read batch at {source_path}: file does not exist. "
            "Provide a JSON or JSONL records file."
        )
    text = source_path.read_text(encoding="utf-8")
    if source_path.suffix.lower() == ".jsonl":
        records = _parse_jsonl_records(source_path, text)
        embedded_options: Mapping[str, Any] = {}
    else:
        records, embedded_options = _parse_json_document(source_path, text)
    resolved_options = options or _options_from_payload(
        embedded_options, defaults or BatchOptions()
    )
    return build_batch_request(entity_type, records, resolved_options)


def build_batch_request(
    entity_type: str,
    records: list[Mapping[str, Any]],
    options: BatchOptions | None = None,
) -> BatchRequest:
    """Validate record bounds and build an immutable request.

    Args:
        entity_type: Entity type the records belong to.
        records: Untyped records.
        options: Optional batch options.

    Returns:
        Batch request.

    Raises:
        StrataIngestError: If record count or record shape is invalid.
    """
    if not MIN_BATCH_RECORDS <= len(records) <= MAX_BATCH_RECORDS:
        raise StrataIngestError(
            f"Batch size must be between {MIN_BATCH_RECORDS} and {MAX_BATCH_RECORDS} records, "
            f"got {len(records)}. Split the input into smaller batches."
        )
    for index, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise StrataIngestError(
                f"Record {index} is not a JSON object: {record!r}."
            )
    return BatchRequest(
        entity_type=entity_type,
        records=tuple(dict(record) for record in records),
        options=options or BatchOptions(),
    )


def with_overrides(options: BatchOptions, **overrides: Any) -> BatchOptions:
    """Return options with non-``None`` overrides applied."""
    applied = {key: value for key, value in overrides.items() if value is not None}
    return replace(options, **applied)


def _parse_json_document(
    source_path: Path,
    text: str,
) -> tuple[list[Mapping[str, Any]], Mapping[str, Any]]:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as error:
        raise StrataIngestError(
            f"Failed to parse {source_path}: {error.msg} at line {error.lineno}. "
            "Provide valid JSON."
        ) from error
    if isinstance(payload, list):
        return payload, {}
    if isinstance(payload, dict) and isinstance(payload.get("records"), list):
        raw_options = payload.get("options") or {}
        if not isinstance(raw_options, dict):
            raise StrataIngestError(f"Invalid options in {source_path}: expected an object.")
        return payload["records"], raw_options
    raise StrataIngestError(
        f"Invalid batch document {source_path}: expected a list of records "
        "or an object with a 'records' list."
    )


def _parse_jsonl_records(source_path: Path, text: str) -> list[Mapping[str, Any]]:
    records: list[Mapping[str, Any]] = []
    for line_number, line in enumerate(text.splitlines(), 1):
        if not line.strip():
            continue
        try:
            payload = json.loads(line)
        except json.JSONDecodeError as error:
            raise StrataIngestError(
                f"Invalid JSON in {source_path}:{line_number}: {error.msg}."
            ) from error
        records.append(payload)
    return records


def _options_from_payload(payload: Mapping[str, Any], defaults: BatchOptions) -> BatchOptions:
    unknown = sorted(set(payload) - set(_OPTION_KEYS))
    if unknown:
        raise StrataIngestError(
            f"Unknown batch options {unknown}. Supported options: {sorted(_OPTION_KEYS)}."
        )
    for key, value in payload.items():
        _check_option_type(key, value)
    return replace(defaults, **{_OPTION_KEYS[key]: value for key, value in payload.items()})


def _check_option_type(key: str, value: Any) -> None:
    if key in _FLAG_OPTIONS:
        valid = isinstance(value, bool)
        expected = "a boolean"
    elif key == "batchSize":
        valid = isinstance(value, int) and not isinstance(value, bool)
        expected = "an integer"
    else:
        valid = value is None or (
            isinstance(value, (int, float)) and not isinstance(value, bool)
        )
        expected = "a number or null"
    if not valid:
        raise StrataIngestError(
            f"Invalid batch option '{key}': expected {expected}, got {value!r}."
        )
