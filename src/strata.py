"""Public SDK surface for Strata.

This module provides a stable import path for ingest users.
It re-exports the primary client and typed request models.
"""

from __future__ import annotations

from core.config import StrataConfig
from core.types import (
    BatchOptions,
    BatchRequest,
    BatchResponse,
    BatchStatistics,
    FailureDetail,
)
from ingest.duplicates import find_duplicates
from ingest.materializer import RecordMaterializer, materialize
from ingest.request_reader import build_batch_request, read_batch_request
from schema.source_schema import parse_source_schema
from schema.translator import translate_schema
from store.ingest_sdk import EntityTable, StrataClient

__all__ = [
    "BatchOptions",
    "BatchRequest",
    "BatchResponse",
    "BatchStatistics",
    "EntityTable",
    "FailureDetail",
    "RecordMaterializer",
    "StrataClient",
    "StrataConfig",
    "build_batch_request",
    "find_duplicates",
    "materialize",
    "parse_source_schema",
    "read_batch_request",
    "translate_schema",
]
