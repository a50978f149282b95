from __future__ import annotations

import math
import re
from datetime import date, datetime, time
from typing import Any

"""Cell value -> canonical compatibility status.

Canonical vocabulary: "compatible", "not compatible" and, for the
sensor-aware (denoising) variant, "compatible: Bayer + X-Trans",
"compatible: X-Trans only", "compatible: Bayer only". Anything else is
free text and is returned trimmed but otherwise unchanged ("64bit only",
"v22H2 or Higher" ...).

normalize_status never raises: unexpected types degrade to "not compatible".
"""

__all__ = [
    "COMPATIBLE",
    "COMPATIBLE_BAYER_ONLY",
    "COMPATIBLE_BOTH_SENSORS",
    "COMPATIBLE_XTRANS_ONLY",
    "CHECK_MARKS",
    "CROSS_MARKS",
    "NOT_COMPATIBLE",
    "normalize_status",
]

COMPATIBLE = "compatible"
NOT_COMPATIBLE = "not compatible"
COMPATIBLE_BOTH_SENSORS = "compatible: Bayer + X-Trans"
COMPATIBLE_XTRANS_ONLY = "compatible: X-Trans only"
COMPATIBLE_BAYER_ONLY = "compatible: Bayer only"

CHECK_MARKS = frozenset({"✓", "✔", "✅"})
CROSS_MARKS = frozenset({"✕", "✗", "×", "❌"})
_EMPTY_MARKS = frozenset({"", "-", "—"})

_SENSOR_SEPARATORS = re.compile(r"[\s\-_]")
_XTRANS_SHAPE = re.compile(r"^x[\s\-_]?trans$", re.IGNORECASE)
_BAYER_TYPOS = frozenset({"baer", "baeyr"})


def _number_text(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _sensor_status(text: str) -> str | None:
    squashed = _SENSOR_SEPARATORS.sub("", text).lower()
    if "xtrans" in squashed or "xtrns" in squashed or _XTRANS_SHAPE.match(text):
        return COMPATIBLE_XTRANS_ONLY
    if "bayer" in squashed or squashed in _BAYER_TYPOS:
        return COMPATIBLE_BAYER_ONLY
    return None


def normalize_status(raw: Any, sensor_aware: bool = False) -> str:
    """Map a raw cell value to a status string.

    Parameters
    ----------
    raw: セル値 (None / str / 数値 / bool / datetime ...)
    sensor_aware: True の場合 Bayer / X-Trans のセンサー別ステータスを判定
    """
    if raw is None:
        return NOT_COMPATIBLE
    if isinstance(raw, bool):
        return (COMPATIBLE_BOTH_SENSORS if sensor_aware else COMPATIBLE) if raw else NOT_COMPATIBLE
    if isinstance(raw, (int, float)):
        if isinstance(raw, float) and math.isnan(raw):
            return NOT_COMPATIBLE
        return _number_text(raw)
    if isinstance(raw, (datetime, date, time)):
        return raw.isoformat()
    if not isinstance(raw, str):
        return NOT_COMPATIBLE

    text = raw.strip()
    if text in CHECK_MARKS or text.lower() == "yes":
        return COMPATIBLE_BOTH_SENSORS if sensor_aware else COMPATIBLE
    if text in CROSS_MARKS or text.lower() == "no" or text in _EMPTY_MARKS:
        return NOT_COMPATIBLE
    if sensor_aware:
        sensor = _sensor_status(text)
        if sensor is not None:
            return sensor
    return text
