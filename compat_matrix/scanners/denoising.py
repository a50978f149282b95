from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from ..models.records import CapabilityRecord, RecordType
from ..models.scan_state import ScanState
from ..models.sheet_kind import SheetKind
from ..models.workbook import Sheet, cell_at, text_at
from ..parsing.software import parse_software
from ..parsing.status import normalize_status
from .common import HEADER_ROW, LABEL_COLUMN, Record, SheetScan, extract_headers, finish, fold_rows

"""Denoising technology matrix scanner (capability record form).

Layout: technology headers in row 1 from column 3. Capability rows carry the
capability name in column 2 (column 1 empty); product rows carry a DxO
product label in column 1. Statuses use the sensor-aware normalizer.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "CAPABILITY_COLUMN",
    "CAPABILITY_NAMES",
    "TECH_START_COLUMN",
    "scan_denoising_sheet",
]

TECH_START_COLUMN = 3
CAPABILITY_COLUMN = 2
CAPABILITY_NAMES = frozenset({"cpu", "gpu", "bayer", "xtrans", "jpeg", "raw"})
_PRODUCT_MARKER = "dxo"


def _records_for(
    state: ScanState, row: Sequence[Any], name: str, version: str, record_type: RecordType
) -> list[Record]:
    return [
        CapabilityRecord(
            name=name,
            version=version,
            denoising_tech=header.display_name,
            status=normalize_status(cell_at(row, header.column_index), sensor_aware=True),
            record_type=record_type,
        )
        for header in state.active_headers
    ]


def step(state: ScanState, idx: int, row: Sequence[Any]) -> tuple[ScanState, list[Record]]:
    # capability 行を先に判定 (CPU / GPU / Bayer ...)
    capability = text_at(row, CAPABILITY_COLUMN)
    if capability is not None and capability.strip().lower() in CAPABILITY_NAMES:
        return state, _records_for(state, row, capability.strip(), "", RecordType.CAPABILITY)

    label = text_at(row, LABEL_COLUMN)
    if label is None or _PRODUCT_MARKER not in label.lower():
        return state, []
    product = parse_software(label)
    if not product.name:
        return state, []
    return state, _records_for(state, row, product.name, product.version, RecordType.SOFTWARE)


def scan_denoising_sheet(sheet: Sheet, kind: SheetKind = SheetKind.DENOISING_MATRIX) -> SheetScan:
    headers = extract_headers(sheet.row(HEADER_ROW), start_column=TECH_START_COLUMN)
    if not headers:
        logger.warning("sheet=%s has no denoising technology headers in row %d", sheet.name, HEADER_ROW + 1)
        return finish(sheet, kind, [], [])
    records, anomalies, _ = fold_rows(sheet, step, ScanState(active_headers=headers))
    return finish(sheet, kind, records, anomalies)
