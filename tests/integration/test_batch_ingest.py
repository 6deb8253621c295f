"""Integration tests for the batch ingest workflow."""

from __future__ import annotations

import json

from core.types import BatchOptions
from ingest.request_reader import build_batch_request, read_batch_request
from ingest.response_payload import batch_response_to_payload
from store.ingest_sdk import StrataClient
from tests.fixture_paths import fixture_path


def test_batch_ingest_round_trip_flow(strata_config) -> None:
    """End-to-end flow should validate, commit, version, and read rows back."""
    client = StrataClient(strata_config)
    request = read_batch_request(fixture_path("batches/users_batch.json"), "users")

    response = client.ingest(request)
    rows = client.table("users").read_rows()

    assert response.total_requested == response.success_count + response.failure_count == 4
    assert [row["user_id"] for row in rows] == ["u-1", "u-2"]
    assert rows[1]["age"] == 41 and rows[1]["active"] is False
    assert json.loads(rows[0]["address"]) == {"city": "London", "zip": "N1"}


def test_schema_evolution_then_ingest(strata_config) -> None:
    """A backward compatible schema can be registered and used for new batches."""
    client = StrataClient(strata_config)
    new_schema = fixture_path("schemas/users_v2.avsc").read_text(encoding="utf-8")

    compatibility = client.check_schema_update("users", new_schema)
    client.register_schema("users-v2", new_schema)
    response = client.ingest(
        build_batch_request(
            "users-v2",
            [
                {
                    "user_id": "v-1",
                    "username": "new",
                    "score": 0.5,
                    "active": True,
                    "tags": ["x"],
                    "status": "DELETED",
                    "address": {"zip": "0"},
                    "country": "NO",
                }
            ],
        )
    )

    assert compatibility.compatible
    assert response.successful_ids == ("v-1",)
    assert client.table("users-v2").read_rows()[0]["country"] == "NO"


def test_fail_fast_response_payload_accounts_for_skipped_records(strata_config) -> None:
    """Fail-fast responses should report the aborted remainder in metrics."""
    client = StrataClient(strata_config)
    request = read_batch_request(
        fixture_path("batches/users_batch.json"),
        "users",
        BatchOptions(fail_fast=True, batch_size=1),
    )

    payload = batch_response_to_payload(client.ingest(request))

    assert payload["successCount"] == 2
    assert payload["failureCount"] == 2
    assert payload["statistics"]["additionalMetrics"]["abortReason"] == "fail_fast"
    assert payload["failures"][0]["errorType"] == "CoercionError"
