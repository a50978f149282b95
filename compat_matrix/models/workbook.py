from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

"""Workbook / Sheet domain models.

A Sheet is a rectangular grid in absolute worksheet coordinates:
row 0 = worksheet row 1, column 0 = column A. Cells hold None, str, int,
float, bool or datetime. Rows may be ragged; lookups outside the grid
return None instead of raising.
"""

__all__ = [
    "Row",
    "Sheet",
    "Workbook",
    "cell_at",
    "text_at",
]

Row = Sequence[Any]


def cell_at(row: Row | None, column: int) -> Any:
    """Return the raw cell value at ``column`` or None when out of range."""
    if row is None or column < 0 or column >= len(row):
        return None
    return row[column]


def text_at(row: Row | None, column: int) -> str | None:
    """Return the cell at ``column`` only if it is a non-blank string.

    Numbers, dates and blank text are treated as "no label".
    """
    value = cell_at(row, column)
    if isinstance(value, str) and value.strip():
        return value
    return None


@dataclass(frozen=True)
class Sheet:
    name: str
    rows: tuple[tuple[Any, ...], ...] = ()

    @classmethod
    def from_rows(cls, name: str, rows: Sequence[Sequence[Any]]) -> Sheet:
        return cls(name=name, rows=tuple(tuple(r) for r in rows))

    @property
    def n_rows(self) -> int:
        return len(self.rows)

    @property
    def n_columns(self) -> int:
        return max((len(r) for r in self.rows), default=0)

    def row(self, index: int) -> tuple[Any, ...] | None:
        if 0 <= index < len(self.rows):
            return self.rows[index]
        return None

    def cell(self, row: int, column: int) -> Any:
        return cell_at(self.row(row), column)

    def iter_rows(self, start: int = 0) -> Iterator[tuple[int, tuple[Any, ...]]]:
        for idx in range(max(start, 0), len(self.rows)):
            yield idx, self.rows[idx]


@dataclass(frozen=True)
class Workbook:
    """Ordered collection of sheets read from one uploaded file."""
    filename: str
    sheets: tuple[Sheet, ...] = field(default_factory=tuple)

    @property
    def sheet_names(self) -> list[str]:
        return [s.name for s in self.sheets]

    def get(self, name: str) -> Sheet | None:
        for sheet in self.sheets:
            if sheet.name == name:
                return sheet
        return None
