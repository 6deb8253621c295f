"""Core constants used across Strata modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".strata")
SCHEMAS_DIR_NAME = "schemas"
TABLES_DIR_NAME = "tables"
SCHEMA_FILE_SUFFIX = ".avsc"
TABLE_DIR_SUFFIX = ".lance"
DEFAULT_BATCH_SIZE = 100
MIN_BATCH_RECORDS = 1
MAX_BATCH_RECORDS = 1000
IDENTITY_FIELD_CANDIDATES = ("id", "userId", "user_id", "entityId", "entity_id")
INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
FLOAT32_MAX = 3.4028234663852886e38
FAILURE_KIND_DUPLICATE_KEY = "DuplicateKey"
FAILURE_KIND_COERCION = "CoercionError"
FAILURE_KIND_STORAGE_COMMIT = "StorageCommitError"
SCHEMA_ERROR_NOT_A_RECORD = "NotARecord"
