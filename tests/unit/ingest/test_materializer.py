"""Unit tests for record materialization."""

from __future__ import annotations

from typing import Any

import pytest

from core.errors import StrataCoercionError
from ingest.materializer import RecordMaterializer, materialize
from schema.record import GenericRecord
from schema.schema_cache import SchemaCache
from schema.source_schema import parse_source_schema
from schema.target_schema import INT32, STRING, TargetField, TargetSchema
from tests.fixture_paths import read_schema_fixture

_SCHEMA = TargetSchema(
    fields=(
        TargetField(name="name", data_type=STRING, nullable=False),
        TargetField(name="age", data_type=INT32, nullable=True),
    )
)


class _UserBuilder:
    def __init__(self) -> None:
        self._values: dict[str, Any] = {}

    def setUser_id(self, value: str) -> None:
        self._values["user_id"] = value

    def build(self) -> GenericRecord:
        record = GenericRecord(_SCHEMA)
        record.set_field("name", self._values.get("user_id"))
        return record


def test_materialize_coerces_present_fields() -> None:
    """Present values should be coerced to column types."""
    record = materialize({"name": "ada", "age": "36"}, _SCHEMA)

    assert record.to_row() == {"name": "ada", "age": 36}


def test_materialize_leaves_missing_and_null_fields_unset() -> None:
    """Absent or null fields stay null."""
    record = materialize({"name": "ada", "age": None}, _SCHEMA)

    assert record.get_field("age") is None


def test_materialize_ignores_unknown_fields() -> None:
    """Fields outside the schema are dropped."""
    record = materialize({"name": "ada", "nickname": "a"}, _SCHEMA)

    assert set(record.to_row()) == {"name", "age"}


def test_materialize_raises_on_bad_value() -> None:
    """Uncoercible values should raise a coercion error."""
    with pytest.raises(StrataCoercionError):
        materialize({"name": "ada", "age": "old"}, _SCHEMA)


def test_record_materializer_uses_compiled_schema() -> None:
    """Generic materialization should use the compiled coercion table."""
    compiled = SchemaCache().get_or_translate(
        "users", parse_source_schema(read_schema_fixture("users"))
    )
    materializer = RecordMaterializer(compiled)

    result = materializer.materialize({"user_id": "u-1", "address": {"zip": "9"}})

    assert result.record.get_field("address") == '{"zip": "9"}'
    assert not materializer.uses_builder


def test_record_materializer_builder_path_reports_skipped_fields() -> None:
    """Builder materialization should warn about fields without setters."""
    compiled = SchemaCache().get_or_translate(
        "users", parse_source_schema(read_schema_fixture("users"))
    )
    materializer = RecordMaterializer(compiled, builder_type=_UserBuilder)

    result = materializer.materialize({"user_id": "u-1", "username": "ada"})

    assert result.record.get_field("name") == "u-1"
    assert result.warnings == ("No setter found for field 'username'",)


def test_record_materializer_applies_declared_defaults() -> None:
    """Absent fields with a declared default should take that default."""
    compiled = SchemaCache().get_or_translate(
        "users", parse_source_schema(read_schema_fixture("users_v2"))
    )

    result = RecordMaterializer(compiled).materialize({"user_id": "u-1"})

    assert result.record.get_field("country") == "US"


def test_materialize_keeps_explicit_null_over_default() -> None:
    """An explicit null is not replaced by the declared default."""
    record = materialize({"name": "ada", "age": None}, _SCHEMA, defaults={"age": 18})

    assert record.get_field("age") is None
