"""S3 URI parsing helpers.

This module centralizes S3 URI parsing for table locations.
It keeps URI validation behavior consistent across the codebase.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.errors import StrataConfigError, StrataStoreError


@dataclass(frozen=True)
class S3Location:
    """Parsed S3 location model."""

    bucket: str
    prefix: str

    def child_uri(self, name: str) -> str:
        """Return the ``s3://`` URI of a child object under this prefix."""
        return f"s3://{self.bucket}/{self.prefix.rstrip('/')}/{name}"


def parse_s3_uri(uri: str, domain: str) -> S3Location:
    """Parse and validate an S3 URI.

    Args:
        uri: URI in format ``s3://bucket/prefix``.
        domain: Error domain string ("config" or "store").

    Returns:
        Parsed bucket and prefix pair.

    Raises:
        StrataConfigError: For config-domain parse failures.
        StrataStoreError: For store-domain parse failures.
    """
    stripped_uri = uri.removeprefix("s3://")
    if "/" not in stripped_uri:
        _raise_uri_error(uri, domain)
    bucket, prefix = stripped_uri.split("/", 1)
    if not bucket or not prefix:
        _raise_uri_error(uri, domain)
    return S3Location(bucket=bucket, prefix=prefix)


def _raise_uri_error(uri: str, domain: str) -> None:
    """Raise a domain-specific invalid URI error.

    Args:
        uri: Invalid URI value.
        domain: Error domain string.

    Raises:
        StrataConfigError: For config domain.
        StrataStoreError: For store domain.
    """
    message = (
        f"Invalid S3 URI '{uri}': expected s3://bucket/prefix. "
        "Provide both bucket and prefix."
    )
    if domain == "config":
        raise StrataConfigError(message)
    raise StrataStoreError(message)
