"""Schema compatibility command wiring for Strata CLI."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from core.errors import StrataSchemaError
from schema.compatibility import SUPPORTED_COMPATIBILITY_MODES
from store.ingest_sdk import StrataClient


def add_check_compat_command(subparsers: Any) -> None:
    """Register check-compat subcommand."""
    parser = subparsers.add_parser(
        "check-compat",
        help="Check a candidate schema against the registered entity schema",
    )
    parser.add_argument("schema_file", help="Candidate .avsc schema file")
    parser.add_argument("--entity", required=True, help="Entity type name")
    parser.add_argument(
        "--mode",
        choices=SUPPORTED_COMPATIBILITY_MODES,
        default="backward",
        help="Compatibility mode",
    )


def run_check_compat_command(client: StrataClient, args: argparse.Namespace) -> int:
    """Print compatibility issues and warnings; fail when incompatible."""
    schema_path = Path(args.schema_file)
    if not schema_path.is_file():
        raise StrataSchemaError(f"Candidate schema file not found: {schema_path}.")
    result = client.check_schema_update(
        args.entity,
        schema_path.read_text(encoding="utf-8"),
        args.mode,
    )
    print(f"compatible={str(result.compatible).lower()}\tmode={result.mode}")
    for issue in result.issues:
        print(f"issue\t{issue}")
    for warning in result.warnings:
        print(f"warning\t{warning}")
    return 0 if result.compatible else 1
