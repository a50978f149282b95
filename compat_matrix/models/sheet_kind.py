from __future__ import annotations

from enum import Enum

"""SheetKind / PipelineVariant enums.

SheetKind is the closed set of semantic sheet layouts the scanners know.
PipelineVariant selects which classifier, destination table layout and
metadata table a run uses.
"""

__all__ = [
    "PipelineVariant",
    "SheetKind",
]


class PipelineVariant(Enum):
    SOFTWARE = "software"
    DENOISING = "denoising"
    CAMERAS_LENSES = "cameras_lenses"


class SheetKind(Enum):
    """Semantic category of a worksheet.

    Software variant:
    - OS_WINDOWS / OS_MACOS: product x operating system
    - LIGHTROOM_BRIDGE: Lightroom rows x product columns
    - HOST_APP_BRIDGE: host application rows x plug-in columns (mixed orientation)
    - DEVICE_RAW_CONVERTER: PureRAW sheet with embedded section headers
    - PLUGIN_COLLECTION / PLUGIN_OS_MAC / PLUGIN_OS_WIN: Nik Collection sheets

    Denoising variant:
    - DENOISING_MATRIX: product / capability rows x denoising technology columns

    Cameras & lenses variant:
    - CAMERA_CATALOG / LENS_CATALOG: raw catalog tables (header in first row)
    """
    OS_WINDOWS = "os_windows"
    OS_MACOS = "os_macos"
    LIGHTROOM_BRIDGE = "lightroom_bridge"
    HOST_APP_BRIDGE = "host_app_bridge"
    DEVICE_RAW_CONVERTER = "device_raw_converter"
    PLUGIN_COLLECTION = "plugin_collection"
    PLUGIN_OS_MAC = "plugin_os_mac"
    PLUGIN_OS_WIN = "plugin_os_win"
    DENOISING_MATRIX = "denoising_matrix"
    CAMERA_CATALOG = "camera_catalog"
    LENS_CATALOG = "lens_catalog"
