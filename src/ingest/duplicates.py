"""In-batch duplicate identity detection.

This module finds records whose identity key repeats an earlier record
in the same batch, before anything is written.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Sequence

from core.constants import IDENTITY_FIELD_CANDIDATES

IdentityKeyExtractor = Callable[[Mapping[str, Any]], "str | None"]


def default_identity_key(record: Mapping[str, Any]) -> str | None:
    """Return the first non-null conventional id field as text.

    Args:
        record: Untyped record.

    Returns:
        Identity key, or ``None`` when the record has no id field.
    """
    for field_name in IDENTITY_FIELD_CANDIDATES:
        value = record.get(field_name)
        if value is not None:
            return str(value)
    return None


def record_identity(
    record: Mapping[str, Any],
    entity_type: str,
    index: int,
    key_extractor: IdentityKeyExtractor = default_identity_key,
) -> str:
    """Return a record identity, falling back to ``<entity_type>_<index>``."""
    identity = key_extractor(record)
    if identity is None:
        return f"{entity_type}_{index}"
    return identity


def find_duplicates(
    records: Sequence[Mapping[str, Any]],
    key_extractor: IdentityKeyExtractor = default_identity_key,
) -> list[int]:
    """Find indices of records repeating an earlier identity key.

    The first occurrence of a key is never reported. Records without an
    identity key are never duplicates.

    Args:
        records: Batch records in request order.
        key_extractor: Function extracting the identity key.

    Returns:
        Ascending indices of repeated records.
    """
    seen_keys: set[str] = set()
    duplicate_indices: list[int] = []
    for index, record in enumerate(records):
        key = key_extractor(record)
        if key is None:
            continue
        if key in seen_keys:
            duplicate_indices.append(index)
            continue
        seen_keys.add(key)
    return duplicate_indices
