"""Builder-based record construction.

This module builds records through a target type's own builder rather
than generic field assignment. Setter lookup tables are generated once
per builder type and reused for every record.
"""

from __future__ import annotations

import inspect
import types
import typing
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Mapping

from core.errors import StrataCoercionError
from core.logging_config import get_logger
from schema.record import RecordEntity

_LOGGER = get_logger(__name__)

_SETTER_PREFIX = "set"

# Provided value type -> annotation types it may also be passed to.
_COMPATIBLE_TYPES: dict[type, tuple[type, ...]] = {
    str: (str,),
    int: (int, float, complex),
    float: (float, complex),
    bool: (bool, int),
    bytes: (bytes,),
    bytearray: (bytes, bytearray),
}


@dataclass(frozen=True)
class BuildResult:
    """Record built through a builder plus skipped-field warnings."""

    record: RecordEntity
    warnings: tuple[str, ...]


def setter_name(field_name: str) -> str:
    """Map a lower camel-case field name to its builder setter name.

    Args:
        field_name: Field name such as ``userId``.

    Returns:
        Setter name such as ``setUserId``.
    """
    return f"{_SETTER_PREFIX}{field_name[:1].upper()}{field_name[1:]}"


class SetterTable:
    """Setter-name to accepted-parameter-types table for one builder type."""

    def __init__(self, builder_type: type) -> None:
        self._builder_type = builder_type
        self._setters = _scan_setters(builder_type)

    @classmethod
    def for_builder(cls, builder_type: type) -> "SetterTable":
        """Return the shared table for a builder type."""
        return _setter_table(builder_type)

    @property
    def builder_type(self) -> type:
        return self._builder_type

    def setter_names(self) -> tuple[str, ...]:
        return tuple(sorted(self._setters))

    def find_setter(self, field_name: str, value_type: type) -> str | None:
        """Resolve the setter accepting a value of ``value_type``.

        Exact parameter types win; otherwise subclasses and the
        compatible-type table are consulted.

        Args:
            field_name: Record field name.
            value_type: Type of the provided value.

        Returns:
            Setter method name, or ``None`` if no compatible setter exists.
        """
        name = setter_name(field_name)
        accepted = self._setters.get(name)
        if accepted is None:
            return None
        if value_type in accepted or object in accepted:
            return name
        compatible = _COMPATIBLE_TYPES.get(value_type, ())
        for expected in accepted:
            if _is_subclass(value_type, expected) or expected in compatible:
                return name
        return None


def build_with_setters(raw: Mapping[str, Any], table: SetterTable) -> BuildResult:
    """Construct a record through its builder's setters.

    Fields without a compatible setter are skipped with a warning.

    Args:
        raw: Untyped field-name to value mapping.
        table: Setter table for the builder type.

    Returns:
        Built record and skipped-field warnings.

    Raises:
        StrataCoercionError: If the builder rejects a value or cannot build.
    """
    builder = table.builder_type()
    warnings: list[str] = []
    for field_name, value in raw.items():
        if value is None:
            continue
        method_name = table.find_setter(field_name, type(value))
        if method_name is None:
            warnings.append(f"No setter found for field '{field_name}'")
            _LOGGER.warning(
                "setter_not_found",
                builder=table.builder_type.__name__,
                field_name=field_name,
                value_type=type(value).__name__,
            )
            continue
        try:
            getattr(builder, method_name)(value)
        except (TypeError, ValueError) as error:
            raise StrataCoercionError(field_name, value, str(error)) from error
    try:
        record = builder.build()
    except (TypeError, ValueError) as error:
        raise StrataCoercionError(table.builder_type.__name__, dict(raw), str(error)) from error
    return BuildResult(record=record, warnings=tuple(warnings))


@lru_cache(maxsize=None)
def _setter_table(builder_type: type) -> SetterTable:
    return SetterTable(builder_type)


def _scan_setters(builder_type: type) -> dict[str, tuple[type, ...]]:
    setters: dict[str, tuple[type, ...]] = {}
    for name, member in inspect.getmembers(builder_type, inspect.isfunction):
        if not name.startswith(_SETTER_PREFIX) or name == _SETTER_PREFIX:
            continue
        parameters = list(inspect.signature(member).parameters.values())
        if len(parameters) != 2:
            continue
        hints = typing.get_type_hints(member)
        setters[name] = _accepted_types(hints.get(parameters[1].name, Any))
    return setters


def _accepted_types(annotation: Any) -> tuple[type, ...]:
    if annotation is Any:
        return (object,)
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        accepted: list[type] = []
        for argument in typing.get_args(annotation):
            if argument is not type(None):
                accepted.extend(_accepted_types(argument))
        return tuple(accepted)
    if origin is not None:
        return (origin,)
    if isinstance(annotation, type):
        return (annotation,)
    return (object,)


def _is_subclass(value_type: type, expected: type) -> bool:
    try:
        return issubclass(value_type, expected)
    except TypeError:
        return False
