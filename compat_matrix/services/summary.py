from __future__ import annotations

from ..models.ingestion import IngestionResult

"""SUMMARY line rendering.

Format::

    SUMMARY variant=<v> files=<n> sheets=<n> skipped_sheets=<n> records=<n> curated=<n> anomalies=<n> elapsed_sec=<s>
"""

__all__ = [
    "format_elapsed",
    "render_summary_line",
]


def format_elapsed(seconds: float) -> str:
    """Integral values without a decimal part; tiny values without exponent."""
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return f"{seconds:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: IngestionResult) -> str:
    return (
        f"SUMMARY variant={result.variant.value} "
        f"files={len(result.source_filenames)} "
        f"sheets={result.scanned_sheets} "
        f"skipped_sheets={result.skipped_sheets} "
        f"records={result.total_records} "
        f"curated={result.valid_records} "
        f"anomalies={result.anomalies} "
        f"elapsed_sec={format_elapsed(result.elapsed_seconds)}"
    )
