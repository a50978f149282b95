from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Union

from ..models.records import CapabilityRecord, CompatibilityRecord
from ..models.scan_state import ColumnHeader, RowAnomaly, ScanState
from ..models.sheet_kind import SheetKind
from ..models.workbook import Sheet, cell_at

"""Shared scanner machinery.

Every scanner is a fold over a sheet's rows: ``step(state, row_index, row)``
returns the next ScanState plus the records emitted for that row. ``fold_rows``
threads the state and isolates failures: an exception raised while handling
one row is recorded as a RowAnomaly and the fold continues with the state
from before that row.

Layout constants are absolute grid coordinates (0-based):
row 1 = header row, column 1 = row label, targets from column 2.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "FIRST_DATA_ROW",
    "HEADER_ROW",
    "LABEL_COLUMN",
    "Record",
    "SheetScan",
    "TARGET_START_COLUMN",
    "extract_headers",
    "finish",
    "fold_rows",
]

HEADER_ROW = 1
LABEL_COLUMN = 1
TARGET_START_COLUMN = 2
FIRST_DATA_ROW = 2

Record = Union[CompatibilityRecord, CapabilityRecord]
Step = Callable[[ScanState, int, Sequence[Any]], tuple[ScanState, list[Record]]]


@dataclass(frozen=True)
class SheetScan:
    """Records and skipped-row anomalies produced from one sheet."""
    sheet_name: str
    kind: SheetKind
    records: tuple[Record, ...] = ()
    anomalies: tuple[RowAnomaly, ...] = field(default_factory=tuple)


def extract_headers(
    row: Sequence[Any] | None, start_column: int = TARGET_START_COLUMN
) -> tuple[ColumnHeader, ...]:
    """Every non-empty text cell from ``start_column`` onward becomes a header.

    Only leading/trailing whitespace is trimmed; internal line breaks are kept
    because multi-line target labels are rendered downstream.
    """
    if not row:
        return ()
    headers: list[ColumnHeader] = []
    for col in range(start_column, len(row)):
        value = cell_at(row, col)
        if isinstance(value, str) and value.strip():
            headers.append(ColumnHeader(column_index=col, display_name=value.strip()))
    return tuple(headers)


def fold_rows(
    sheet: Sheet,
    step: Step,
    initial: ScanState,
    start_row: int = FIRST_DATA_ROW,
) -> tuple[list[Record], list[RowAnomaly], ScanState]:
    state = initial
    records: list[Record] = []
    anomalies: list[RowAnomaly] = []
    for idx, row in sheet.iter_rows(start_row):
        try:
            next_state, emitted = step(state, idx, row)
        except Exception as e:  # 行単位で破棄して継続
            anomaly = RowAnomaly(sheet=sheet.name, row=idx, message=f"{type(e).__name__}: {e}")
            anomalies.append(anomaly)
            logger.debug("sheet=%s row=%d skipped: %s", sheet.name, idx + 1, anomaly.message)
            continue
        state = next_state
        records.extend(emitted)
    return records, anomalies, state


def finish(sheet: Sheet, kind: SheetKind, records: list[Record], anomalies: list[RowAnomaly]) -> SheetScan:
    logger.debug(
        "sheet=%s kind=%s records=%d anomalies=%d",
        sheet.name,
        kind.value,
        len(records),
        len(anomalies),
    )
    return SheetScan(
        sheet_name=sheet.name,
        kind=kind,
        records=tuple(records),
        anomalies=tuple(anomalies),
    )
