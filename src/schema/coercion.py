"""Schema-driven value coercion tables.

This module compiles a target schema into a field-name to coercion
function table once, so records can be materialized without probing
types at runtime.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Callable

from core.constants import FLOAT32_MAX, INT32_MAX, INT32_MIN, INT64_MAX, INT64_MIN
from core.errors import StrataCoercionError
from schema.target_schema import ArrayType, DataType, MapType, TargetSchema

Coercer = Callable[[Any], Any]

_TRUE_LITERALS = ("true",)
_FALSE_LITERALS = ("false",)


@lru_cache(maxsize=256)
def build_coercion_table(schema: TargetSchema) -> Mapping[str, Coercer]:
    """Compile one coercion function per column.

    Args:
        schema: Target column schema.

    Returns:
        Read-only mapping from column name to coercion function.
    """
    table = {
        target_field.name: build_coercer(target_field.name, target_field.data_type)
        for target_field in schema.fields
    }
    return MappingProxyType(table)


def build_coercer(field_name: str, data_type: DataType) -> Coercer:
    """Build a coercion function for one column type.

    Args:
        field_name: Column name used in error messages.
        data_type: Column type.

    Returns:
        Function converting a raw value to the column's Python value.
    """
    if isinstance(data_type, ArrayType):
        return _array_coercer(field_name, data_type)
    if isinstance(data_type, MapType):
        return _map_coercer(field_name, data_type)
    scalar = _SCALAR_COERCERS[data_type.name]
    return lambda value: scalar(field_name, value)


def _array_coercer(field_name: str, data_type: ArrayType) -> Coercer:
    element_coercer = build_coercer(field_name, data_type.element_type)

    def coerce_array(value: Any) -> list[Any]:
        if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, (list, tuple)):
            raise StrataCoercionError(field_name, value, "expected a list value")
        return [
            _coerce_element(field_name, item, element_coercer, data_type.element_nullable)
            for item in value
        ]

    return coerce_array


def _map_coercer(field_name: str, data_type: MapType) -> Coercer:
    value_coercer = build_coercer(field_name, data_type.value_type)

    def coerce_map(value: Any) -> dict[str, Any]:
        if not isinstance(value, Mapping):
            raise StrataCoercionError(field_name, value, "expected a mapping value")
        return {
            str(key): _coerce_element(field_name, item, value_coercer, data_type.value_nullable)
            for key, item in value.items()
        }

    return coerce_map


def _coerce_element(field_name: str, item: Any, coercer: Coercer, nullable: bool) -> Any:
    if item is None:
        if nullable:
            return None
        raise StrataCoercionError(field_name, item, "null element in non-nullable collection")
    return coercer(item)


def _to_string(field_name: str, value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Mapping):
        return json.dumps(dict(value), sort_keys=True, default=str)
    if isinstance(value, (list, tuple)):
        return json.dumps(list(value), sort_keys=True, default=str)
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def _to_int(field_name: str, value: Any, lower: int, upper: int) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        parsed = value
    else:
        try:
            parsed = int(str(value).strip())
        except ValueError as error:
            raise StrataCoercionError(field_name, value, "invalid integer literal") from error
    if not lower <= parsed <= upper:
        raise StrataCoercionError(field_name, value, f"outside range [{lower}, {upper}]")
    return parsed


def _to_int32(field_name: str, value: Any) -> int:
    return _to_int(field_name, value, INT32_MIN, INT32_MAX)


def _to_int64(field_name: str, value: Any) -> int:
    return _to_int(field_name, value, INT64_MIN, INT64_MAX)


def _to_float(field_name: str, value: Any) -> float:
    if isinstance(value, float):
        return value
    try:
        return float(str(value).strip())
    except ValueError as error:
        raise StrataCoercionError(field_name, value, "invalid floating point literal") from error


def _to_float32(field_name: str, value: Any) -> float:
    parsed = _to_float(field_name, value)
    if math.isfinite(parsed) and abs(parsed) > FLOAT32_MAX:
        raise StrataCoercionError(
            field_name, value, f"outside float32 range [-{FLOAT32_MAX}, {FLOAT32_MAX}]"
        )
    return parsed


def _to_bool(field_name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    literal = str(value).strip().lower()
    if literal in _TRUE_LITERALS:
        return True
    if literal in _FALSE_LITERALS:
        return False
    raise StrataCoercionError(field_name, value, "invalid boolean literal")


def _to_binary(field_name: str, value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    raise StrataCoercionError(field_name, value, "expected bytes or text")


_SCALAR_COERCERS: dict[str, Callable[[str, Any], Any]] = {
    "string": _to_string,
    "int32": _to_int32,
    "int64": _to_int64,
    "float32": _to_float32,
    "float64": _to_float,
    "bool": _to_bool,
    "binary": _to_binary,
}
