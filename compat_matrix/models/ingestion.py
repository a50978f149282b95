from __future__ import annotations

import statistics
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .sheet_kind import PipelineVariant

"""Ingestion result / metadata models.

IngestionMetadata is the only structure that outlives a run: one row is
appended to the variant's audit table after every successful load.
IngestionResult is what the caller receives on success.
"""

__all__ = [
    "BatchStatsAccumulator",
    "IngestionMetadata",
    "IngestionResult",
    "isoformat_utc",
]


def isoformat_utc(ts: datetime) -> str:
    """ISO8601 UTC with 'Z' suffix."""
    return ts.isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class IngestionMetadata:
    """One audit row per successful ingestion.

    ``table_counts`` carries variant-specific counters (e.g. cameras_count)
    which are looked up by column name when the row is built.
    """
    ingested_at: datetime
    total_records: int
    valid_records: int
    uploaded_by: str | None
    source_filenames: str
    table_counts: dict[str, int] = field(default_factory=dict)

    def value_for(self, column: str) -> Any:
        if column == "last_updated":
            return self.ingested_at
        if column == "records_count":
            return self.total_records
        if column == "records_curated_count":
            return self.valid_records
        if column == "uploaded_by":
            return self.uploaded_by
        if column == "filename":
            return self.source_filenames
        if column in self.table_counts:
            return self.table_counts[column]
        raise KeyError(f"no metadata value for column '{column}'")

    def as_row(self, columns: tuple[str, ...]) -> tuple[Any, ...]:
        return tuple(self.value_for(c) for c in columns)


@dataclass(frozen=True)
class IngestionResult:
    variant: PipelineVariant
    total_records: int  # dedupe 前の件数
    valid_records: int  # dedupe + 検証後の件数
    updated_at: datetime
    source_filenames: list[str]
    scanned_sheets: int = 0
    skipped_sheets: int = 0
    anomalies: int = 0
    elapsed_seconds: float = 0.0
    loaded: bool = True  # False = dry-run (store untouched)
    metadata_written: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    def to_response(self) -> dict[str, Any]:
        response: dict[str, Any] = {
            "success": True,
            "records": self.total_records,
            "recordsCurated": self.valid_records,
            "updatedAt": isoformat_utc(self.updated_at),
        }
        response.update(self.extra)
        return response


class BatchStatsAccumulator:
    """Collects per-batch insert timings reported by batch_insert."""

    def __init__(self) -> None:
        self.batch_times: list[float] = []
        self.batch_sizes: list[int] = []

    def add_batch(self, elapsed_seconds: float, size: int) -> None:
        self.batch_times.append(elapsed_seconds)
        self.batch_sizes.append(size)

    def get_stats(self) -> tuple[int, float, float]:
        """Return (total_batches, avg_batch_seconds, p95_batch_seconds)."""
        if not self.batch_times:
            return (0, 0.0, 0.0)

        total_batches = len(self.batch_times)
        avg_batch_seconds = statistics.mean(self.batch_times)
        if total_batches == 1:
            p95_batch_seconds = self.batch_times[0]
        else:
            p95_batch_seconds = statistics.quantiles(
                self.batch_times, n=20, method="inclusive"
            )[18]
        return (total_batches, avg_batch_seconds, p95_batch_seconds)
