from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ..models.records import CompatibilityRecord
from ..models.scan_state import ScanState
from ..models.sheet_kind import SheetKind
from ..models.workbook import Sheet, cell_at, text_at
from ..parsing.software import parse_software
from ..parsing.status import normalize_status
from .common import (
    HEADER_ROW,
    LABEL_COLUMN,
    Record,
    SheetScan,
    extract_headers,
    finish,
    fold_rows,
)

"""Scanners for the DxO software sheets (general record form).

- OS sheets: product rows x OS columns
- Lightroom bridge: Lightroom rows x product columns
- Host-app bridge: mixed orientation, decided per row
- Device raw converter (PureRAW): section headers switch feature and columns
"""

__all__ = [
    "FEATURE_EXPORT",
    "FEATURE_HOST",
    "FEATURE_OS",
    "FEATURE_PLUGIN",
    "FEATURE_PLUGIN_EXPORT",
    "PRIMARY_BRAND_MARKERS",
    "is_primary_brand_row",
    "lightroom_feature",
    "raw_converter_section",
    "scan_host_app_sheet",
    "scan_lightroom_sheet",
    "scan_os_sheet",
    "scan_raw_converter_sheet",
]

FEATURE_OS = "os compatibility"
FEATURE_EXPORT = "export to"
FEATURE_PLUGIN = "plugin"
FEATURE_PLUGIN_EXPORT = "plugin + export to"
FEATURE_HOST = "host"

# Host-app rows mentioning one of these are the primary product (row = subject)
PRIMARY_BRAND_MARKERS = ("dxo", "optics")

_EXPORT_SECTION_MARKERS = ("export to", "dng/jpeg")
_PLUGIN_SECTION_MARKER = "plugin instance"
_RAW_CONVERTER_MARKER = "pureraw"
_RAW_CONVERTER_DEFAULT_NAME = "DxO PureRAW"


def _header_state(sheet: Sheet) -> ScanState:
    return ScanState(active_headers=extract_headers(sheet.row(HEADER_ROW)))


def scan_os_sheet(sheet: Sheet, kind: SheetKind = SheetKind.OS_WINDOWS) -> SheetScan:
    """Product x operating system matrix."""

    def step(state: ScanState, idx: int, row: Sequence[Any]) -> tuple[ScanState, list[Record]]:
        label = text_at(row, LABEL_COLUMN)
        if label is None:
            return state, []
        product = parse_software(label)
        if not product.name:
            return state, []
        return state, [
            CompatibilityRecord(
                software=product.name,
                software_version=product.version,
                feature=FEATURE_OS,
                compat_target=header.display_name,
                status=normalize_status(cell_at(row, header.column_index)),
            )
            for header in state.active_headers
        ]

    records, anomalies, _ = fold_rows(sheet, step, _header_state(sheet))
    return finish(sheet, kind, records, anomalies)


def lightroom_feature(label: str) -> str:
    lowered = label.lower()
    if "plugin" in lowered and "export" in lowered:
        return FEATURE_PLUGIN_EXPORT
    if "plugin" in lowered:
        return FEATURE_PLUGIN
    return FEATURE_EXPORT


def scan_lightroom_sheet(sheet: Sheet, kind: SheetKind = SheetKind.LIGHTROOM_BRIDGE) -> SheetScan:
    """Lightroom rows x DxO product columns; the product (column) is the subject."""

    def step(state: ScanState, idx: int, row: Sequence[Any]) -> tuple[ScanState, list[Record]]:
        label = text_at(row, LABEL_COLUMN)
        if label is None:
            return state, []
        feature = lightroom_feature(label)
        target = label.strip().split("\n")[0].strip()
        emitted: list[Record] = []
        for header in state.active_headers:
            product = parse_software(header.display_name)
            if not product.name:
                continue
            emitted.append(
                CompatibilityRecord(
                    software=product.name,
                    software_version=product.version,
                    feature=feature,
                    compat_target=target,
                    status=normalize_status(cell_at(row, header.column_index)),
                )
            )
        return state, emitted

    records, anomalies, _ = fold_rows(sheet, step, _header_state(sheet))
    return finish(sheet, kind, records, anomalies)


def is_primary_brand_row(label: str) -> bool:
    lowered = label.lower()
    return any(marker in lowered for marker in PRIMARY_BRAND_MARKERS)


def scan_host_app_sheet(sheet: Sheet, kind: SheetKind = SheetKind.HOST_APP_BRIDGE) -> SheetScan:
    """Host applications x plug-in columns.

    Orientation is decided per row by a brand-keyword heuristic:
    - primary-brand row (PhotoLab, OpticsPro ...): software = row, target = column
    - external host row (Photoshop, Lightroom ...): software = column, target = row
    """

    def step(state: ScanState, idx: int, row: Sequence[Any]) -> tuple[ScanState, list[Record]]:
        label = text_at(row, LABEL_COLUMN)
        if label is None:
            return state, []
        host_text = label.strip()
        host = parse_software(label)
        primary = is_primary_brand_row(host_text)
        emitted: list[Record] = []
        for header in state.active_headers:
            plugin = parse_software(header.display_name)
            if not plugin.name:
                continue
            status = normalize_status(cell_at(row, header.column_index))
            if primary:
                emitted.append(
                    CompatibilityRecord(
                        software=host.name or host_text,
                        software_version=host.version,
                        feature=FEATURE_HOST,
                        compat_target=f"{plugin.name} {plugin.version}".strip(),
                        status=status,
                    )
                )
            else:
                emitted.append(
                    CompatibilityRecord(
                        software=plugin.name,
                        software_version=plugin.version,
                        feature=FEATURE_PLUGIN,
                        compat_target=host_text,
                        status=status,
                    )
                )
        return state, emitted

    records, anomalies, _ = fold_rows(sheet, step, _header_state(sheet))
    return finish(sheet, kind, records, anomalies)


def raw_converter_section(label: str) -> str | None:
    """Feature switched to by a section-header label, or None for other rows."""
    lowered = label.lower()
    if any(marker in lowered for marker in _EXPORT_SECTION_MARKERS):
        return FEATURE_EXPORT
    if _PLUGIN_SECTION_MARKER in lowered:
        return FEATURE_PLUGIN
    return None


def scan_raw_converter_sheet(sheet: Sheet, kind: SheetKind = SheetKind.DEVICE_RAW_CONVERTER) -> SheetScan:
    """PureRAW sheet: section-header rows redefine the feature and the columns.

    The header row itself is a section header, so scanning starts at row 1.
    """

    def step(state: ScanState, idx: int, row: Sequence[Any]) -> tuple[ScanState, list[Record]]:
        label = text_at(row, LABEL_COLUMN)
        if label is None:
            return state, []
        text = label.strip()
        section = raw_converter_section(text)
        if section is not None:
            return state.with_feature(section).with_headers(extract_headers(row)), []
        if _RAW_CONVERTER_MARKER not in text.lower():
            return state, []
        product = parse_software(text)
        return state, [
            CompatibilityRecord(
                software=product.name or _RAW_CONVERTER_DEFAULT_NAME,
                software_version=product.version,
                feature=state.feature,
                compat_target=header.display_name,
                status=normalize_status(cell_at(row, header.column_index)),
            )
            for header in state.active_headers
        ]

    initial = ScanState(feature=FEATURE_EXPORT)
    records, anomalies, _ = fold_rows(sheet, step, initial, start_row=HEADER_ROW)
    return finish(sheet, kind, records, anomalies)
