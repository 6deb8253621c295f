"""Unit tests for the compiled schema cache."""

from __future__ import annotations

from schema.schema_cache import SchemaCache
from schema.source_schema import parse_source_schema
from tests.fixture_paths import read_schema_fixture


def test_get_or_translate_reuses_compiled_schema() -> None:
    """Repeated lookups for one schema should return the same object."""
    cache = SchemaCache()
    source = parse_source_schema(read_schema_fixture("users"))

    first = cache.get_or_translate("users", source)
    second = cache.get_or_translate("users", parse_source_schema(read_schema_fixture("users")))

    assert first is second


def test_changed_schema_gets_new_entry() -> None:
    """A different schema for the same entity type compiles separately."""
    cache = SchemaCache()
    cache.get_or_translate("users", parse_source_schema(read_schema_fixture("users")))

    cache.get_or_translate("users", parse_source_schema(read_schema_fixture("users_v2")))

    assert cache.stats()["cached_schemas"] == 2


def test_compiled_schema_has_coercer_per_column() -> None:
    """Every target column should have a compiled coercer."""
    compiled = SchemaCache().get_or_translate(
        "users", parse_source_schema(read_schema_fixture("users"))
    )

    assert set(compiled.coercers) == set(compiled.target.field_names())


def test_invalidate_drops_only_matching_entity_type() -> None:
    """Invalidation should leave other entity types cached."""
    cache = SchemaCache()
    source = parse_source_schema(read_schema_fixture("users"))
    cache.get_or_translate("users", source)
    cache.get_or_translate("accounts", source)

    dropped = cache.invalidate("users")

    assert dropped == 1
    assert cache.stats()["cached_schemas"] == 1
