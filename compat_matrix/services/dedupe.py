from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TypeVar

from ..models.records import CapabilityRecord, CompatibilityRecord

"""Record deduplication + validation.

First-seen-wins on the identity key (every field but status), iterating in
production order: upload order, then sheet declaration order, then row order.
Records missing a required field are dropped after dedupe.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "dedupe_and_validate",
]

R = TypeVar("R", CompatibilityRecord, CapabilityRecord)


def dedupe_and_validate(records: Iterable[R]) -> list[R]:
    seen: set[tuple[str, ...]] = set()
    unique: list[R] = []
    conflicts = 0
    for record in records:
        key = record.identity_key()
        if key in seen:
            conflicts += 1
            continue
        seen.add(key)
        unique.append(record)

    valid = [r for r in unique if r.is_complete()]
    logger.debug(
        "dedupe: unique=%d duplicates_dropped=%d incomplete_dropped=%d",
        len(unique),
        conflicts,
        len(unique) - len(valid),
    )
    return valid
