"""Strata CLI entry points.
This module exposes commands for batch ingest and table inspection.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
import json
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from cli.compat_command import add_check_compat_command, run_check_compat_command
from core.config import StrataConfig
from core.errors import StrataError
from core.types import BatchOptions
from ingest.request_reader import read_batch_request, with_overrides
from ingest.response_payload import batch_response_to_payload
from schema.target_schema import describe_data_type
from store.ingest_sdk import StrataClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="strata", description="Strata batch ingest CLI")
    parser.add_argument("--data-root", help="Override STRATA_DATA_ROOT for this command")
    parser.add_argument("--schema-dir", help="Override STRATA_SCHEMA_DIR for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_ingest_command(subparsers)
    _add_schema_command(subparsers)
    _add_versions_command(subparsers)
    add_check_compat_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Strata CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        client = _build_client(args.data_root, args.schema_dir)
        if args.command == "ingest":
            return _run_ingest_command(client, args)
        if args.command == "schema":
            return _run_schema_command(client, args)
        if args.command == "versions":
            return _run_versions_command(client, args)
        if args.command == "check-compat":
            return run_check_compat_command(client, args)
    except StrataError as error:
        print(f"error={error}")
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_client(data_root: str | None, schema_dir: str | None) -> StrataClient:
    """Build SDK client with optional path overrides.

    Args:
        data_root: Optional data-root override path.
        schema_dir: Optional schema directory override path.

    Returns:
        Configured SDK client.
    """
    config = StrataConfig.from_env()
    if data_root:
        config = replace(config, data_root=Path(data_root).expanduser().resolve())
    if schema_dir:
        config = replace(config, schema_dir=Path(schema_dir).expanduser().resolve())
    return StrataClient(config)


def _run_ingest_command(client: StrataClient, args: argparse.Namespace) -> int:
    """Handle ingest command.

    CLI flags override options embedded in the source file.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code: 0 when every evaluated record succeeded, else 1.
    """
    request = read_batch_request(
        Path(args.source),
        args.entity,
        defaults=BatchOptions(batch_size=client.config.batch_size),
    )
    options = with_overrides(
        request.options,
        batch_size=args.batch_size,
        fail_fast=True if args.fail_fast else None,
        continue_on_failure=False if args.stop_on_failure else None,
        validate_duplicates=False if args.no_duplicate_check else None,
    )
    response = client.ingest(replace(request, options=options))
    print(json.dumps(batch_response_to_payload(response), indent=2, default=str))
    return 0 if response.failure_count == 0 else 1


def _run_schema_command(client: StrataClient, args: argparse.Namespace) -> int:
    """Handle schema command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    schema = client.compiled_schema(args.entity).target
    for target_field in schema.fields:
        nullable = "nullable" if target_field.nullable else "required"
        print(f"{target_field.name}\t{describe_data_type(target_field.data_type)}\t{nullable}")
    return 0


def _run_versions_command(client: StrataClient, args: argparse.Namespace) -> int:
    """Handle versions command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    for table_version in client.table(args.entity).list_versions():
        created_at = table_version.created_at.isoformat() if table_version.created_at else "-"
        print(f"{table_version.version}\t{created_at}")
    return 0


def _add_ingest_command(subparsers: Any) -> None:
    """Register ingest subcommand."""
    parser = subparsers.add_parser("ingest", help="Ingest a JSON or JSONL batch of records")
    parser.add_argument("source", help="Records file (.json or .jsonl)")
    parser.add_argument("--entity", required=True, help="Entity type name")
    parser.add_argument("--batch-size", type=int, help="Records per committed chunk")
    parser.add_argument("--fail-fast", action="store_true", help="Stop at the first failure")
    parser.add_argument(
        "--stop-on-failure",
        action="store_true",
        help="Stop after the first chunk with failures",
    )
    parser.add_argument(
        "--no-duplicate-check",
        action="store_true",
        help="Skip in-batch duplicate identity validation",
    )


def _add_schema_command(subparsers: Any) -> None:
    """Register schema subcommand."""
    parser = subparsers.add_parser("schema", help="Print the translated table schema")
    parser.add_argument("--entity", required=True, help="Entity type name")


def _add_versions_command(subparsers: Any) -> None:
    """Register versions subcommand."""
    parser = subparsers.add_parser("versions", help="List committed table versions")
    parser.add_argument("--entity", required=True, help="Entity type name")
