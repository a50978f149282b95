"""Per-kind row scanners.

``SCANNERS`` maps each record-producing SheetKind to its handler; catalog
kinds are read with ``read_catalog_table`` instead.
"""

from __future__ import annotations

from collections.abc import Callable

from ..models.sheet_kind import SheetKind
from ..models.workbook import Sheet
from .catalog import read_catalog_table
from .collection import scan_collection_sheet
from .common import SheetScan
from .denoising import scan_denoising_sheet
from .software import (
    scan_host_app_sheet,
    scan_lightroom_sheet,
    scan_os_sheet,
    scan_raw_converter_sheet,
)

__all__ = [
    "SCANNERS",
    "SheetScan",
    "read_catalog_table",
    "scan_sheet",
]

SCANNERS: dict[SheetKind, Callable[[Sheet, SheetKind], SheetScan]] = {
    SheetKind.OS_WINDOWS: scan_os_sheet,
    SheetKind.OS_MACOS: scan_os_sheet,
    SheetKind.LIGHTROOM_BRIDGE: scan_lightroom_sheet,
    SheetKind.HOST_APP_BRIDGE: scan_host_app_sheet,
    SheetKind.DEVICE_RAW_CONVERTER: scan_raw_converter_sheet,
    SheetKind.PLUGIN_COLLECTION: scan_collection_sheet,
    SheetKind.PLUGIN_OS_MAC: scan_collection_sheet,
    SheetKind.PLUGIN_OS_WIN: scan_collection_sheet,
    SheetKind.DENOISING_MATRIX: scan_denoising_sheet,
}


def scan_sheet(sheet: Sheet, kind: SheetKind) -> SheetScan:
    try:
        handler = SCANNERS[kind]
    except KeyError:
        raise ValueError(f"no record scanner for sheet kind '{kind.value}'") from None
    return handler(sheet, kind)
