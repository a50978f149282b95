from __future__ import annotations

import re
from typing import Any

from ..models.sheet_kind import PipelineVariant, SheetKind

"""Sheet name classifier.

Maps a sheet's display name to a SheetKind (or None = skip). Pure and total:
any input, including non-strings, yields a kind or None without raising.
Classification is ordered and first match wins.
"""

__all__ = [
    "DENOISING_SHEET_NAME",
    "classify",
    "normalize_sheet_name",
]

DENOISING_SHEET_NAME = "EN"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

# 優先順位順 (先勝ち)
_SOFTWARE_GROUPS: tuple[tuple[SheetKind, tuple[str, ...]], ...] = (
    (SheetKind.OS_WINDOWS, ("windows",)),
    (SheetKind.OS_MACOS, ("macos", "mac os", "osx")),
    (SheetKind.LIGHTROOM_BRIDGE, (" lr ", "lightroom")),
    (SheetKind.HOST_APP_BRIDGE, ("host", "vs", "dfp", "dvp", "filmpack", "viewpoint")),
    (SheetKind.DEVICE_RAW_CONVERTER, ("dpr", "pureraw")),
)


def normalize_sheet_name(name: str) -> str:
    """lowercase, '&' -> ' and ', non-alphanumeric runs -> single space, trim."""
    lowered = name.lower().replace("&", " and ")
    return _NON_ALNUM.sub(" ", lowered).strip()


def _classify_collection(norm: str) -> SheetKind:
    if "mac" in norm or "macos" in norm or "osx" in norm:
        return SheetKind.PLUGIN_OS_MAC
    if "win" in norm or "windows" in norm:
        return SheetKind.PLUGIN_OS_WIN
    return SheetKind.PLUGIN_COLLECTION


def _classify_software(norm: str) -> SheetKind | None:
    # Nik sheets first so that e.g. "Nik Windows" never lands on OS_WINDOWS
    if "nik" in norm:
        return _classify_collection(norm)
    padded = f" {norm} "
    for kind, keywords in _SOFTWARE_GROUPS:
        if any(k in padded for k in keywords):
            return kind
    return None


def _classify_catalog(norm: str) -> SheetKind | None:
    if "camera" in norm:
        return SheetKind.CAMERA_CATALOG
    if "lens" in norm:
        return SheetKind.LENS_CATALOG
    return None


def classify(sheet_name: Any, variant: PipelineVariant = PipelineVariant.SOFTWARE) -> SheetKind | None:
    """Classify ``sheet_name`` for the given pipeline variant.

    The denoising variant recognizes only its expected sheet, by exact name.
    """
    if not isinstance(sheet_name, str):
        return None
    if variant is PipelineVariant.DENOISING:
        return SheetKind.DENOISING_MATRIX if sheet_name.strip() == DENOISING_SHEET_NAME else None
    norm = normalize_sheet_name(sheet_name)
    if not norm:
        return None
    if variant is PipelineVariant.CAMERAS_LENSES:
        return _classify_catalog(norm)
    return _classify_software(norm)
