from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ..models.records import CompatibilityRecord
from ..models.scan_state import ScanState
from ..models.sheet_kind import SheetKind
from ..models.workbook import Sheet, cell_at, text_at
from ..parsing.software import collection_software_name, parse_collection_plugin, section_version
from ..parsing.status import normalize_status
from .common import HEADER_ROW, LABEL_COLUMN, Record, SheetScan, extract_headers, finish, fold_rows
from .software import FEATURE_OS, FEATURE_PLUGIN

"""Nik Collection scanners (plug-in x host app, plug-in x OS).

Plug-in rows usually carry no version of their own; it comes from the most
recent section header above them ("Plugins\\nNik Collection 8"). A section
header also re-defines the active columns for the rows that follow.
"""

__all__ = [
    "SECTION_HEADER_MARKER",
    "initial_state",
    "is_section_header",
    "scan_collection_sheet",
    "step",
]

SECTION_HEADER_MARKER = "plugins"


def is_section_header(label: str) -> bool:
    return SECTION_HEADER_MARKER in label.lower()


def _feature_for(kind: SheetKind) -> str:
    if kind in (SheetKind.PLUGIN_OS_MAC, SheetKind.PLUGIN_OS_WIN):
        return FEATURE_OS
    return FEATURE_PLUGIN


def initial_state(sheet: Sheet, feature: str = FEATURE_PLUGIN) -> ScanState:
    header_row = sheet.row(HEADER_ROW)
    # ヘッダ行のラベル自体がセクション見出し ("Plugins\nNik Collection 8") の場合がある
    return ScanState(
        active_headers=extract_headers(header_row),
        carried_version=section_version(text_at(header_row, LABEL_COLUMN)) or "",
        feature=feature,
    )


def step(state: ScanState, idx: int, row: Sequence[Any]) -> tuple[ScanState, list[Record]]:
    label = text_at(row, LABEL_COLUMN)
    if label is None:
        return state, []
    text = label.strip()
    if is_section_header(text):
        return state.with_version(section_version(text)).with_headers(extract_headers(row)), []

    plugin = parse_collection_plugin(text, state.carried_version)
    if not plugin.name:
        return state, []
    software = collection_software_name(plugin.name)
    return state, [
        CompatibilityRecord(
            software=software,
            software_version=plugin.version,
            feature=state.feature,
            compat_target=header.display_name,
            status=normalize_status(cell_at(row, header.column_index)),
        )
        for header in state.active_headers
    ]


def scan_collection_sheet(sheet: Sheet, kind: SheetKind = SheetKind.PLUGIN_COLLECTION) -> SheetScan:
    start = initial_state(sheet, _feature_for(kind))
    records, anomalies, _ = fold_rows(sheet, step, start)
    return finish(sheet, kind, records, anomalies)
