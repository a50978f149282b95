from __future__ import annotations

import io
from pathlib import Path
from typing import IO, Any

import pandas as pd
from openpyxl import load_workbook

from ..models.workbook import Sheet, Workbook

"""Workbook reader.

Sheets are read cell-for-cell with openpyxl (read_only, data_only) so that
grid coordinates stay absolute: blank leading rows and columns are kept,
which the fixed header-row / label-column layouts depend on. Only trailing
blank cells and trailing blank rows are dropped.

pandas is used for previews (``sheet_to_frame``) in the inspect command.
"""

__all__ = [
    "WorkbookReadError",
    "read_workbook",
    "sheet_to_frame",
]

WorkbookSource = Path | str | bytes | bytearray | IO[bytes]


class WorkbookReadError(Exception):
    """Raised when an uploaded document cannot be parsed as a workbook."""


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _trim_row(values: tuple[Any, ...]) -> tuple[Any, ...]:
    end = len(values)
    while end > 0 and _is_blank(values[end - 1]):
        end -= 1
    return tuple(values[:end])


def _source_name(source: WorkbookSource, filename: str | None) -> str:
    if filename:
        return filename
    if isinstance(source, (str, Path)):
        return Path(source).name
    return getattr(source, "name", None) or "<upload>"


def read_workbook(source: WorkbookSource, filename: str | None = None) -> Workbook:
    """Read every worksheet of ``source`` in declaration order.

    Parameters
    ----------
    source: ファイルパス / bytes / バイナリストリーム
    filename: 表示用ファイル名 (省略時はパスから推定)
    """
    name = _source_name(source, filename)
    handle: Any = io.BytesIO(bytes(source)) if isinstance(source, (bytes, bytearray)) else source
    try:
        wb = load_workbook(handle, read_only=True, data_only=True)
    except Exception as e:
        raise WorkbookReadError(f"could not read workbook '{name}': {e}") from e

    sheets: list[Sheet] = []
    try:
        for ws in wb.worksheets:
            rows = [_trim_row(values) for values in ws.iter_rows(values_only=True)]
            while rows and not rows[-1]:
                rows.pop()
            sheets.append(Sheet.from_rows(str(ws.title), rows))
    except Exception as e:
        raise WorkbookReadError(f"could not read workbook '{name}': {e}") from e
    finally:
        wb.close()
    return Workbook(filename=name, sheets=tuple(sheets))


def sheet_to_frame(sheet: Sheet, max_rows: int | None = None) -> pd.DataFrame:
    """Grid -> DataFrame (header=None semantics, ragged rows padded with None)."""
    rows = sheet.rows if max_rows is None else sheet.rows[:max_rows]
    width = max((len(r) for r in rows), default=0)
    padded = [list(r) + [None] * (width - len(r)) for r in rows]
    return pd.DataFrame(padded, columns=list(range(width)))
