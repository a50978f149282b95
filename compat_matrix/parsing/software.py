from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

"""Product name / version parsing for free-text labels.

``parse_software`` tries a fixed cascade of patterns, first success wins:

1. known products that carry no version ("DxO PhotoLab Essential")
2. "DxO <Product> <dotted version> [qualifier]" - qualifier kept verbatim
   ("DxO FilmPack 5.5.26 and up" -> version "5.5.26 and up")
3. restricted brand forms: "DxO Optics Pro 9", "DxO PhotoLab Elite 7"
4. generic "<words> <number>"
5. whole string, empty version

Whitespace runs are collapsed first. The function is pure; dedupe keys
depend on it being deterministic.

The Nik Collection helpers handle plug-in rows, whose version usually comes
from the enclosing section header ("Plugins\\nNik Collection 8").
"""

__all__ = [
    "SoftwareName",
    "collection_software_name",
    "parse_collection_plugin",
    "parse_software",
    "section_version",
]

_WS = re.compile(r"\s+")

_NO_VERSION_PRODUCTS = (
    re.compile(r"^(DxO\s+PhotoLab\s+Essential)$", re.IGNORECASE),
)
_BRAND_WITH_QUALIFIER = re.compile(r"^(DxO\s+\w+)\s+([0-9]+(?:\.[0-9]+)*)(?:\s+(.+))?$", re.IGNORECASE)
_OPTICS_PRO = re.compile(r"^(DxO\s+Optics\s*Pro)\s+(\d+)", re.IGNORECASE)
_BRAND_TWO_WORDS = re.compile(r"^(DxO\s+\w+(?:\s+\w+)?)\s+([0-9]+(?:\.[0-9]+)*)$", re.IGNORECASE)
_TRAILING_NUMBER = re.compile(r"^(.+?)\s+(\d+(?:\.\d+)?)$")

_INLINE_NIK = re.compile(r"^Nik\s+(\d+)\s+(.+)$", re.IGNORECASE)
_INLINE_NIK_COLLECTION = re.compile(r"^Nik\s+Collection\s+(\d+)\s+(.+)$", re.IGNORECASE)
_SECTION_VERSION = re.compile(r"Nik\s+Collection\s+(\d+)", re.IGNORECASE)
_COLLECTION_PREFIX = re.compile(r"^nik\s+collection", re.IGNORECASE)


@dataclass(frozen=True)
class SoftwareName:
    name: str
    version: str = ""


def _collapse(text: str) -> str:
    return _WS.sub(" ", text.strip())


def parse_software(text: Any) -> SoftwareName:
    """Split a label such as "DxO Photolab 9" into name and version.

    >>> parse_software("DxO Photolab 9")
    SoftwareName(name='DxO Photolab', version='9')
    >>> parse_software("DxO FilmPack 5.5.26 and up")
    SoftwareName(name='DxO FilmPack', version='5.5.26 and up')
    """
    if not isinstance(text, str):
        return SoftwareName("", "")
    cleaned = _collapse(text)
    if not cleaned:
        return SoftwareName("", "")

    for pattern in _NO_VERSION_PRODUCTS:
        m = pattern.match(cleaned)
        if m:
            return SoftwareName(m.group(1), "")

    m = _BRAND_WITH_QUALIFIER.match(cleaned)
    if m:
        qualifier = f" {m.group(3).strip()}" if m.group(3) else ""
        return SoftwareName(m.group(1).strip(), f"{m.group(2)}{qualifier}".strip())

    m = _OPTICS_PRO.match(cleaned)
    if m:
        return SoftwareName("DxO OpticsPro", m.group(2))

    m = _BRAND_TWO_WORDS.match(cleaned)
    if m:
        return SoftwareName(m.group(1).strip(), m.group(2))

    m = _TRAILING_NUMBER.match(cleaned)
    if m:
        return SoftwareName(m.group(1).strip(), m.group(2))

    return SoftwareName(cleaned, "")


def section_version(label: Any) -> str | None:
    """Version token of a "Nik Collection <n>" section label, if any."""
    if not isinstance(label, str):
        return None
    m = _SECTION_VERSION.search(label)
    return m.group(1) if m else None


def parse_collection_plugin(text: str, carried_version: str) -> SoftwareName:
    """Plug-in row label -> (plugin name, version).

    An inline version ("Nik 8 Color Efex Pro") wins over the carried one.
    """
    label = text.strip()
    m = _INLINE_NIK.match(label) or _INLINE_NIK_COLLECTION.match(label)
    if m:
        return SoftwareName(m.group(2).strip(), m.group(1))
    return SoftwareName(label, carried_version)


def collection_software_name(plugin_name: str) -> str:
    cleaned = plugin_name.strip()
    if not cleaned:
        return "Nik Collection"
    if _COLLECTION_PREFIX.match(cleaned):
        return cleaned
    return f"Nik Collection - {cleaned}"
