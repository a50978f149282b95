from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

"""Record models produced by the sheet scanners.

Two concrete shapes share the same lifecycle (scan -> dedupe -> insert):

- CompatibilityRecord: general form (software x target)
- CapabilityRecord: denoising form (product or capability x technology)

Identity key = every field except ``status``. Two records with the same key
but different status are a conflict, resolved first-seen-wins by the deduper.
"""

__all__ = [
    "CapabilityRecord",
    "CatalogTable",
    "CompatibilityRecord",
    "RecordType",
]


class RecordType(Enum):
    SOFTWARE = "software"
    CAPABILITY = "capability"


@dataclass(frozen=True)
class CompatibilityRecord:
    software: str
    software_version: str
    feature: str
    compat_target: str
    status: str

    COLUMNS: ClassVar[tuple[str, ...]] = (
        "software",
        "software_version",
        "feature",
        "compat_target",
        "status",
    )

    def identity_key(self) -> tuple[str, ...]:
        return (self.software, self.software_version, self.feature, self.compat_target)

    def is_complete(self) -> bool:
        return bool(self.software and self.compat_target and self.status)

    def as_row(self) -> tuple[str, ...]:
        return (self.software, self.software_version, self.feature, self.compat_target, self.status)


@dataclass(frozen=True)
class CapabilityRecord:
    name: str
    version: str
    denoising_tech: str
    status: str
    record_type: RecordType = RecordType.SOFTWARE

    COLUMNS: ClassVar[tuple[str, ...]] = (
        "name",
        "version",
        "denoising_tech",
        "status",
        "record_type",
    )

    def identity_key(self) -> tuple[str, ...]:
        return (self.name, self.version, self.denoising_tech, self.record_type.value)

    def is_complete(self) -> bool:
        return bool(self.name and self.denoising_tech and self.status)

    def as_row(self) -> tuple[str, ...]:
        return (self.name, self.version, self.denoising_tech, self.status, self.record_type.value)


@dataclass(frozen=True)
class CatalogTable:
    """Raw catalog sheet (cameras / lenses): header row + text rows.

    Values are already converted to text; blank cells are None (stored as NULL).
    """
    sheet_name: str
    columns: tuple[str, ...]
    rows: tuple[tuple[str | None, ...], ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.rows)

    def as_rows(self) -> list[tuple[Any, ...]]:
        return [tuple(r) for r in self.rows]
