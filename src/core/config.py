"""Runtime configuration model for Strata.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import DEFAULT_BATCH_SIZE, DEFAULT_DATA_ROOT, SCHEMAS_DIR_NAME
from core.errors import StrataConfigError


@dataclass(frozen=True)
class StrataConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Local root directory for schemas and tables.
        schema_dir: Directory holding ``<entity_type>.avsc`` source schemas.
        table_root: Optional ``s3://bucket/prefix`` root for entity tables.
        s3_region: Optional default AWS region for S3 operations.
        s3_profile: Optional AWS profile for boto3 session initialization.
        s3_endpoint: Optional S3-compatible endpoint URL (e.g. MinIO).
        batch_size: Default number of records per committed chunk.
        batch_timeout_seconds: Optional per-request deadline.
    """

    data_root: Path
    schema_dir: Path
    table_root: str | None
    s3_region: str | None
    s3_profile: str | None
    s3_endpoint: str | None
    batch_size: int
    batch_timeout_seconds: float | None

    @classmethod
    def from_env(cls) -> "StrataConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            StrataConfigError: If environment values are invalid.
        """
        data_root = Path(os.getenv("STRATA_DATA_ROOT", str(DEFAULT_DATA_ROOT)))
        data_root = data_root.expanduser().resolve()
        schema_dir_value = os.getenv("STRATA_SCHEMA_DIR")
        schema_dir = (
            Path(schema_dir_value).expanduser().resolve()
            if schema_dir_value
            else data_root / SCHEMAS_DIR_NAME
        )
        table_root = os.getenv("STRATA_TABLE_ROOT") or None
        if table_root is not None and not table_root.startswith("s3://"):
            raise StrataConfigError(
                f"Invalid STRATA_TABLE_ROOT value '{table_root}': expected s3://bucket/prefix. "
                "Unset it to keep tables under STRATA_DATA_ROOT."
            )
        return cls(
            data_root=data_root,
            schema_dir=schema_dir,
            table_root=table_root,
            s3_region=os.getenv("STRATA_S3_REGION"),
            s3_profile=os.getenv("STRATA_S3_PROFILE"),
            s3_endpoint=os.getenv("STRATA_S3_ENDPOINT"),
            batch_size=_parse_batch_size(os.getenv("STRATA_BATCH_SIZE", str(DEFAULT_BATCH_SIZE))),
            batch_timeout_seconds=_parse_timeout(os.getenv("STRATA_BATCH_TIMEOUT_SECONDS")),
        )


def _parse_batch_size(raw_value: str) -> int:
    """Parse the default batch size environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Parsed positive batch size.

    Raises:
        StrataConfigError: If value is not a positive integer.
    """
    try:
        batch_size = int(raw_value)
    except ValueError as error:
        raise StrataConfigError(
            "Invalid STRATA_BATCH_SIZE value: "
            f"expected integer, got '{raw_value}'. "
            "Set STRATA_BATCH_SIZE to a numeric value."
        ) from error
    if batch_size < 1:
        raise StrataConfigError(
            f"Invalid STRATA_BATCH_SIZE value: expected >= 1, got {batch_size}."
        )
    return batch_size


def _parse_timeout(raw_value: str | None) -> float | None:
    """Parse the optional request timeout in seconds."""
    if raw_value is None or not raw_value.strip():
        return None
    try:
        timeout = float(raw_value)
    except ValueError as error:
        raise StrataConfigError(
            "Invalid STRATA_BATCH_TIMEOUT_SECONDS value: "
            f"expected number, got '{raw_value}'."
        ) from error
    if timeout <= 0:
        raise StrataConfigError(
            f"Invalid STRATA_BATCH_TIMEOUT_SECONDS value: expected > 0, got {timeout}."
        )
    return timeout
