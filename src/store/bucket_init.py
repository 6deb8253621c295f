"""Object-store bucket bootstrap.

This module makes sure the S3 bucket behind a table root exists before
the first commit, creating it when missing.
"""

from __future__ import annotations

from typing import Any

from core.config import StrataConfig
from core.errors import StrataDependencyError, StrataStoreError
from core.logging_config import get_logger
from core.s3_uri import parse_s3_uri

_LOGGER = get_logger(__name__)

_MISSING_BUCKET_CODES = ("404", "NoSuchBucket", "NotFound")


def ensure_bucket(config: StrataConfig) -> bool:
    """Create the table-root bucket when it does not exist.

    Args:
        config: Runtime config with an ``s3://`` table root.

    Returns:
        ``True`` when a bucket was created, ``False`` if it already existed
        or no S3 table root is configured.

    Raises:
        StrataStoreError: If the bucket cannot be inspected or created.
    """
    if not config.table_root:
        return False
    location = parse_s3_uri(config.table_root, domain="config")
    s3_client = create_s3_client(config)
    from botocore.exceptions import ClientError

    try:
        s3_client.head_bucket(Bucket=location.bucket)
        return False
    except ClientError as error:
        error_code = str(error.response.get("Error", {}).get("Code", ""))
        if error_code not in _MISSING_BUCKET_CODES:
            raise StrataStoreError(
                f"Failed to inspect bucket '{location.bucket}': {error}. "
                "Check AWS credentials and endpoint configuration."
            ) from error
    try:
        s3_client.create_bucket(**_create_bucket_kwargs(location.bucket, config.s3_region))
    except ClientError as error:
        raise StrataStoreError(
            f"Failed to create bucket '{location.bucket}': {error}. "
            "Create the bucket manually or grant s3:CreateBucket."
        ) from error
    _LOGGER.info("bucket_created", bucket=location.bucket, endpoint=config.s3_endpoint)
    return True


def create_s3_client(config: StrataConfig) -> Any:
    """Create boto3 S3 client for table storage.

    Args:
        config: Runtime config with optional session settings.

    Returns:
        Boto3 S3 client.

    Raises:
        StrataDependencyError: If boto3 is missing.
    """
    try:
        import boto3
    except ImportError as error:
        raise StrataDependencyError(
            "S3 table roots require boto3, but it is not installed. "
            "Install boto3 to store tables under s3:// destinations."
        ) from error
    session_kwargs: dict[str, str] = {}
    if config.s3_profile:
        session_kwargs["profile_name"] = config.s3_profile
    if config.s3_region:
        session_kwargs["region_name"] = config.s3_region
    session = boto3.session.Session(**session_kwargs)
    if config.s3_endpoint:
        return session.client("s3", endpoint_url=config.s3_endpoint)
    return session.client("s3")


def lance_storage_options(config: StrataConfig) -> dict[str, str]:
    """Build Lance object-store options from config."""
    options: dict[str, str] = {}
    if config.s3_region:
        options["aws_region"] = config.s3_region
    if config.s3_endpoint:
        options["aws_endpoint"] = config.s3_endpoint
        if config.s3_endpoint.startswith("http://"):
            options["allow_http"] = "true"
    return options


def _create_bucket_kwargs(bucket: str, region: str | None) -> dict[str, Any]:
    kwargs: dict[str, Any] = {"Bucket": bucket}
    if region and region != "us-east-1":
        kwargs["CreateBucketConfiguration"] = {"LocationConstraint": region}
    return kwargs
