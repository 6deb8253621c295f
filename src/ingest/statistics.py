"""Per-chunk statistics aggregation.

This module accumulates chunk sizes and commit timings during a batch
request and derives the final floor-divided averages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from core.types import BatchStatistics


@dataclass
class StatisticsAggregator:
    """Mutable accumulator owned by one batch request."""

    total_batches: int = 0
    commit_count: int = 0
    total_commit_ms: int = 0
    failed_commits: int = 0
    chunk_sizes: list[int] = field(default_factory=list)

    def record_chunk(self, evaluated: int, commit_ms: int | None, committed: bool) -> None:
        """Record one attempted chunk.

        Args:
            evaluated: Records of the chunk evaluated for success/failure.
            commit_ms: Commit duration, ``None`` when no commit was issued.
            committed: Whether the commit succeeded.
        """
        self.total_batches += 1
        self.chunk_sizes.append(evaluated)
        if commit_ms is None:
            return
        self.commit_count += 1
        self.total_commit_ms += commit_ms
        if not committed:
            self.failed_commits += 1

    def build(
        self,
        total_requested: int,
        additional_metrics: Mapping[str, object] | None = None,
    ) -> BatchStatistics:
        """Produce final statistics using floor division for averages.

        Args:
            total_requested: Records evaluated by the request.
            additional_metrics: Extra diagnostic values.

        Returns:
            Immutable batch statistics.
        """
        batches = self.total_batches
        metrics: dict[str, object] = {
            "failedCommits": self.failed_commits,
            "largestChunk": max(self.chunk_sizes, default=0),
        }
        metrics.update(additional_metrics or {})
        return BatchStatistics(
            total_batches=batches,
            avg_batch_size=total_requested // batches if batches else 0,
            avg_processing_time_per_batch=self.total_commit_ms // batches if batches else 0,
            total_underlying_commit_time=self.total_commit_ms,
            underlying_commit_count=self.commit_count,
            additional_metrics=metrics,
        )
