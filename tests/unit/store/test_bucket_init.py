"""Unit tests for object-store bucket bootstrap."""

from __future__ import annotations

from dataclasses import replace
from typing import Any

import pytest
from botocore.exceptions import ClientError

from core.errors import StrataStoreError
from store.bucket_init import ensure_bucket, lance_storage_options


class _FakeS3Client:
    def __init__(self, head_error_code: str | None = None) -> None:
        self.created: list[dict[str, Any]] = []
        self._head_error_code = head_error_code

    def head_bucket(self, Bucket: str) -> None:
        if self._head_error_code is not None:
            raise ClientError({"Error": {"Code": self._head_error_code}}, "HeadBucket")

    def create_bucket(self, **kwargs: Any) -> None:
        self.created.append(kwargs)


def _patch_client(monkeypatch: pytest.MonkeyPatch, client: _FakeS3Client) -> None:
    monkeypatch.setattr("store.bucket_init.create_s3_client", lambda config: client)


def test_ensure_bucket_skips_local_table_root(strata_config) -> None:
    """Local tables need no bucket."""
    assert ensure_bucket(strata_config) is False


def test_ensure_bucket_creates_missing_bucket(strata_config, monkeypatch) -> None:
    """Missing buckets should be created in the configured region."""
    client = _FakeS3Client(head_error_code="404")
    _patch_client(monkeypatch, client)
    config = replace(strata_config, table_root="s3://tables/prod", s3_region="eu-west-1")

    created = ensure_bucket(config)

    assert created is True
    assert client.created == [
        {"Bucket": "tables", "CreateBucketConfiguration": {"LocationConstraint": "eu-west-1"}}
    ]


def test_ensure_bucket_keeps_existing_bucket(strata_config, monkeypatch) -> None:
    """Existing buckets should be left alone."""
    client = _FakeS3Client()
    _patch_client(monkeypatch, client)
    config = replace(strata_config, table_root="s3://tables/prod")

    assert ensure_bucket(config) is False
    assert client.created == []


def test_ensure_bucket_reports_access_errors(strata_config, monkeypatch) -> None:
    """Errors other than a missing bucket should surface as store errors."""
    _patch_client(monkeypatch, _FakeS3Client(head_error_code="403"))
    config = replace(strata_config, table_root="s3://tables/prod")

    with pytest.raises(StrataStoreError):
        ensure_bucket(config)


def test_lance_storage_options_allow_http_endpoint(strata_config) -> None:
    """Plain-HTTP endpoints should enable insecure transport for Lance."""
    config = replace(strata_config, s3_endpoint="http://localhost:9000", s3_region="us-east-1")

    assert lance_storage_options(config) == {
        "aws_region": "us-east-1",
        "aws_endpoint": "http://localhost:9000",
        "allow_http": "true",
    }
