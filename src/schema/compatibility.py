"""Schema evolution compatibility checks.

This module compares two source schema versions and reports whether
readers of one can consume data written with the other.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, cast

from core.errors import StrataSchemaError
from core.logging_config import get_logger
from schema.source_schema import (
    ArrayNode,
    ComplexUnionNode,
    EnumNode,
    MapNode,
    NullableNode,
    RecordNode,
    SourceSchemaNode,
    node_type_name,
)

CompatibilityMode = Literal["backward", "forward", "full", "none"]
SUPPORTED_COMPATIBILITY_MODES: tuple[str, ...] = ("backward", "forward", "full", "none")

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class CompatibilityResult:
    """Outcome of a compatibility check.

    Attributes:
        compatible: Whether the schemas are compatible under ``mode``.
        issues: Blocking incompatibilities.
        warnings: Non-blocking changes worth reviewing.
        mode: Compatibility mode that was checked.
    """

    compatible: bool
    issues: tuple[str, ...]
    warnings: tuple[str, ...]
    mode: CompatibilityMode


def check_compatibility(
    old: SourceSchemaNode | None,
    new: SourceSchemaNode | None,
    mode: str = "backward",
) -> CompatibilityResult:
    """Check whether ``new`` can replace ``old`` under a compatibility mode.

    Backward: new readers can read old data. Forward: old readers can read
    new data. Full: both. None: no checking.

    Args:
        old: Currently registered schema, ``None`` if there is none.
        new: Candidate schema.
        mode: One of ``backward``, ``forward``, ``full``, ``none``.

    Returns:
        Detailed compatibility result.

    Raises:
        StrataSchemaError: If ``mode`` is unsupported.
    """
    if mode not in SUPPORTED_COMPATIBILITY_MODES:
        raise StrataSchemaError(
            f"Unsupported compatibility mode '{mode}'. "
            f"Choose one of {SUPPORTED_COMPATIBILITY_MODES}."
        )
    checked_mode = cast(CompatibilityMode, mode)
    issues: list[str] = []
    warnings: list[str] = []
    if old is None:
        warnings.append("No old schema provided, accepting new schema")
        compatible = True
    elif new is None:
        issues.append("Cannot replace existing schema with null schema")
        compatible = False
    elif checked_mode == "none":
        warnings.append("No compatibility checking performed")
        compatible = True
    elif checked_mode == "backward":
        compatible = _check_schema(old, new, issues, warnings)
    elif checked_mode == "forward":
        compatible = _check_forward(old, new, issues, warnings)
    else:
        backward_ok = _check_schema(old, new, issues, warnings)
        forward_ok = _check_forward(old, new, issues, warnings)
        compatible = backward_ok and forward_ok
    _LOGGER.debug(
        "schema_compatibility_checked",
        mode=checked_mode,
        compatible=compatible,
        issue_count=len(issues),
        warning_count=len(warnings),
    )
    return CompatibilityResult(
        compatible=compatible,
        issues=tuple(issues),
        warnings=tuple(warnings),
        mode=checked_mode,
    )


def _check_forward(
    old: SourceSchemaNode,
    new: SourceSchemaNode,
    issues: list[str],
    warnings: list[str],
) -> bool:
    forward_issues: list[str] = []
    forward_warnings: list[str] = []
    compatible = _check_schema(new, old, forward_issues, forward_warnings)
    issues.extend(f"Forward compatibility: {issue}" for issue in forward_issues)
    warnings.extend(f"Forward compatibility: {warning}" for warning in forward_warnings)
    return compatible


def _check_schema(
    old: SourceSchemaNode,
    new: SourceSchemaNode,
    issues: list[str],
    warnings: list[str],
) -> bool:
    if _kind(old) != _kind(new):
        issues.append(f"Schema type changed from {_kind(old)} to {_kind(new)}")
        return False
    if isinstance(old, RecordNode) and isinstance(new, RecordNode):
        return _check_record(old, new, issues, warnings)
    if _kind(old) == "union":
        return _check_union(old, new, issues, warnings)
    return _check_field_types(old, new, issues, warnings)


def _check_record(
    old: RecordNode,
    new: RecordNode,
    issues: list[str],
    warnings: list[str],
) -> bool:
    compatible = True
    new_names = set(new.field_names())
    old_names = set(old.field_names())
    removed = sorted(old_names - new_names)
    if removed:
        issues.append(f"Fields removed in new schema: {removed}")
        compatible = False
    for old_field in old.fields:
        new_field = new.get_field(old_field.name)
        if new_field is None:
            continue
        field_issues: list[str] = []
        field_warnings: list[str] = []
        if not _check_field_types(old_field.node, new_field.node, field_issues, field_warnings):
            issues.append(f"Field '{old_field.name}': {', '.join(field_issues)}")
            compatible = False
        if field_warnings:
            warnings.append(f"Field '{old_field.name}': {', '.join(field_warnings)}")
    for new_field in new.fields:
        if new_field.name in old_names:
            continue
        if new_field.has_default:
            warnings.append(f"New field '{new_field.name}' added with default value")
        else:
            issues.append(f"New field '{new_field.name}' added without default value")
            compatible = False
    return compatible


def _check_field_types(
    old: SourceSchemaNode,
    new: SourceSchemaNode,
    issues: list[str],
    warnings: list[str],
) -> bool:
    old_nullable, old_inner = _unwrap_nullable(old)
    new_nullable, new_inner = _unwrap_nullable(new)
    if old_nullable and not new_nullable:
        warnings.append("Field changed from nullable to non-nullable")
    elif new_nullable and not old_nullable:
        warnings.append("Field changed from non-nullable to nullable")
    if isinstance(old_inner, ComplexUnionNode) or isinstance(new_inner, ComplexUnionNode):
        return _check_union(old, new, issues, warnings)
    if _kind(old_inner) != _kind(new_inner):
        issues.append(f"Type changed from {_kind(old_inner)} to {_kind(new_inner)}")
        return False
    if isinstance(old_inner, RecordNode) and isinstance(new_inner, RecordNode):
        return _check_record(old_inner, new_inner, issues, warnings)
    if isinstance(old_inner, ArrayNode) and isinstance(new_inner, ArrayNode):
        return _check_nested(
            "Array element types", old_inner.element, new_inner.element, issues, warnings
        )
    if isinstance(old_inner, MapNode) and isinstance(new_inner, MapNode):
        return _check_nested("Map value types", old_inner.values, new_inner.values, issues, warnings)
    if isinstance(old_inner, EnumNode) and isinstance(new_inner, EnumNode):
        return _check_enum(old_inner, new_inner, issues, warnings)
    return True


def _check_nested(
    label: str,
    old: SourceSchemaNode,
    new: SourceSchemaNode,
    issues: list[str],
    warnings: list[str],
) -> bool:
    nested_issues: list[str] = []
    nested_warnings: list[str] = []
    compatible = _check_field_types(old, new, nested_issues, nested_warnings)
    if not compatible:
        issues.append(f"{label} incompatible: {', '.join(nested_issues)}")
    if nested_warnings:
        warnings.append(f"{label}: {', '.join(nested_warnings)}")
    return compatible


def _check_enum(old: EnumNode, new: EnumNode, issues: list[str], warnings: list[str]) -> bool:
    removed = [symbol for symbol in old.symbols if symbol not in new.symbols]
    added = [symbol for symbol in new.symbols if symbol not in old.symbols]
    if added:
        warnings.append(f"Enum symbols added: {added}")
    if removed:
        issues.append(f"Enum symbols removed: {removed}")
        return False
    return True


def _check_union(
    old: SourceSchemaNode,
    new: SourceSchemaNode,
    issues: list[str],
    warnings: list[str],
) -> bool:
    old_branches = _union_branch_names(old)
    new_branches = _union_branch_names(new)
    added = sorted(new_branches - old_branches)
    if added:
        warnings.append(f"Union types added: {added}")
    removed = sorted(old_branches - new_branches)
    if removed:
        issues.append(f"Union types removed: {removed}")
        return False
    return True


def _unwrap_nullable(node: SourceSchemaNode) -> tuple[bool, SourceSchemaNode]:
    if isinstance(node, NullableNode):
        return True, node.inner
    if isinstance(node, ComplexUnionNode):
        return node.has_null, node
    return False, node


def _union_branch_names(node: SourceSchemaNode) -> set[str]:
    if isinstance(node, NullableNode):
        return {"null", _kind(node.inner)}
    if isinstance(node, ComplexUnionNode):
        names = {_kind(branch) for branch in node.branches}
        if node.has_null:
            names.add("null")
        return names
    return {_kind(node)}


def _kind(node: SourceSchemaNode) -> str:
    if isinstance(node, (NullableNode, ComplexUnionNode)):
        return "union"
    return node_type_name(node)
