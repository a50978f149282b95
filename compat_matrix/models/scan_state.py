from __future__ import annotations

from dataclasses import dataclass, field, replace

"""Scanner state models.

ScanState is immutable: every row step returns a new value, so a scanner can
be exercised one row at a time. ``carried_version`` persists across rows until
a section header supplies a new one.
"""

__all__ = [
    "ColumnHeader",
    "RowAnomaly",
    "ScanState",
]


@dataclass(frozen=True)
class ColumnHeader:
    column_index: int
    display_name: str  # 前後の空白のみ除去 (内部改行は保持)


@dataclass(frozen=True)
class ScanState:
    active_headers: tuple[ColumnHeader, ...] = ()
    carried_version: str = ""
    feature: str = ""

    def with_headers(self, headers: tuple[ColumnHeader, ...]) -> ScanState:
        return replace(self, active_headers=headers)

    def with_version(self, version: str | None) -> ScanState:
        if version is None:
            return self
        return replace(self, carried_version=version)

    def with_feature(self, feature: str) -> ScanState:
        return replace(self, feature=feature)


@dataclass(frozen=True)
class RowAnomaly:
    """A row skipped because handling it raised (malformed cell etc.)."""
    sheet: str
    row: int  # 0-based grid row
    message: str = field(default="")
