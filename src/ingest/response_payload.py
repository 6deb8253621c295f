"""JSON rendering for batch responses.

This module turns immutable batch responses into JSON-safe payloads
with the camelCase field names used by API consumers.
"""

from __future__ import annotations

from core.types import BatchResponse, BatchStatistics, FailureDetail


def batch_response_to_payload(response: BatchResponse) -> dict[str, object]:
    """Serialize a batch response into a JSON-safe dictionary.

    Args:
        response: Batch response.

    Returns:
        Dictionary payload for JSON encoding.
    """
    return {
        "totalRequested": response.total_requested,
        "successCount": response.success_count,
        "failureCount": response.failure_count,
        "successfulIds": list(response.successful_ids),
        "failures": [_failure_payload(failure) for failure in response.failures],
        "processedAt": response.processed_at.isoformat(),
        "processingTimeMs": response.processing_time_ms,
        "statistics": _statistics_payload(response.statistics),
    }


def _failure_payload(failure: FailureDetail) -> dict[str, object]:
    return {
        "id": failure.record_id,
        "index": failure.index,
        "error": failure.error_message,
        "errorType": failure.error_kind,
    }


def _statistics_payload(statistics: BatchStatistics) -> dict[str, object]:
    return {
        "totalBatches": statistics.total_batches,
        "avgBatchSize": statistics.avg_batch_size,
        "avgProcessingTimePerBatch": statistics.avg_processing_time_per_batch,
        "totalUnderlyingCommitTime": statistics.total_underlying_commit_time,
        "underlyingCommitCount": statistics.underlying_commit_count,
        "additionalMetrics": dict(statistics.additional_metrics),
    }
