from __future__ import annotations

from datetime import date, datetime, time
from typing import Any

from ..models.records import CatalogTable
from ..models.workbook import Sheet

"""Raw catalog sheet reader (cameras / lenses variant).

Unlike the compatibility scanners these sheets have a plain layout: the
first row holds column names, every following non-blank row is a record.
Column naming follows pandas conventions: a blank header becomes
``Unnamed: <col>`` and repeated names get ``.1``, ``.2`` suffixes.
Values are stored as TEXT; blank cells become NULL.
"""

__all__ = [
    "catalog_columns",
    "catalog_text",
    "read_catalog_table",
]

CATALOG_HEADER_ROW = 0


def catalog_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value if value.strip() else None
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


def catalog_columns(header: tuple[Any, ...], width: int) -> tuple[str, ...]:
    """Column names for a catalog header row, de-duplicated the way pandas does.

    Named columns are resolved first, then the ``Unnamed: <col>`` ones. A
    suffix that would collide with a name already in the row is skipped
    (``("A", "A", "A.1")`` -> ``("A", "A.2", "A.1")``).
    """
    names: list[str] = []
    unnamed: list[int] = []
    for col in range(width):
        raw = header[col] if col < len(header) else None
        text = catalog_text(raw)
        if text:
            names.append(text.strip())
        else:
            names.append(f"Unnamed: {col}")
            unnamed.append(col)

    counts: dict[str, int] = {}
    order = [c for c in range(width) if c not in unnamed] + unnamed
    for col in order:
        base = name = names[col]
        count = counts.get(base, 0)
        while count > 0:
            counts[base] = count + 1
            name = f"{base}.{count}"
            count = count + 1 if name in names else counts.get(name, 0)
        names[col] = name
        counts[name] = count + 1
    return tuple(names)


def read_catalog_table(sheet: Sheet) -> CatalogTable:
    header = sheet.row(CATALOG_HEADER_ROW) or ()
    columns = catalog_columns(header, sheet.n_columns)
    rows: list[tuple[str | None, ...]] = []
    for _, raw in sheet.iter_rows(CATALOG_HEADER_ROW + 1):
        values = tuple(catalog_text(raw[c]) if c < len(raw) else None for c in range(len(columns)))
        if all(v is None for v in values):
            continue
        rows.append(values)
    return CatalogTable(sheet_name=sheet.name, columns=columns, rows=tuple(rows))
