from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from ..models.ingestion import BatchStatsAccumulator
from .batch_insert import DEFAULT_BATCH_SIZE, BatchMetrics, batch_insert, quote_ident
from .schema import DerivedTable, TablePayload, policy_name

"""Transactional table replacement.

One call = one transaction: every DROP / CREATE / INSERT / CREATE INDEX and
derived-table rebuild runs between a single BEGIN and COMMIT. Because the
DROP happens inside the transaction, a failure anywhere rolls back to the
previously committed tables. The connection must be in autocommit mode so
that the explicit BEGIN/COMMIT statements define the transaction boundary.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "LoadError",
    "LoadResult",
    "load_tables",
]


class LoadError(Exception):
    """Load failed and was rolled back.

    ``rollback_error`` is set when the ROLLBACK itself failed as well.
    """

    def __init__(self, message: str, *, table: str | None = None, rollback_error: str | None = None) -> None:
        super().__init__(message)
        self.table = table
        self.rollback_error = rollback_error


@dataclass(frozen=True)
class LoadResult:
    inserted: dict[str, int]  # table -> rows inserted
    counts: dict[str, int] = field(default_factory=dict)  # table -> SELECT COUNT(*)
    batches: int = 0
    avg_batch_seconds: float = 0.0
    p95_batch_seconds: float = 0.0
    elapsed_seconds: float = 0.0

    @property
    def total_inserted(self) -> int:
        return sum(self.inserted.values())


def _enable_public_read(cursor: Any, table: str) -> None:
    cursor.execute(f"ALTER TABLE {quote_ident(table)} ENABLE ROW LEVEL SECURITY")
    cursor.execute(
        f"CREATE POLICY {quote_ident(policy_name(table))} ON {quote_ident(table)} "
        "FOR SELECT USING (true)"
    )


def _count_rows(cursor: Any, table: str) -> int:
    cursor.execute(f"SELECT COUNT(*) FROM {quote_ident(table)}")
    row = cursor.fetchone()
    return int(row[0]) if row else 0


def load_tables(
    cursor: Any,
    payloads: Sequence[TablePayload],
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    public_read: bool = True,
    derived: Sequence[DerivedTable] = (),
    count_tables: Sequence[str] = (),
) -> LoadResult:
    """Atomically replace every payload table (and rebuild derived tables).

    Raises LoadError after ROLLBACK on any failure between BEGIN and COMMIT.
    """
    start = time.perf_counter()
    stats = BatchStatsAccumulator()

    def _on_batch(m: BatchMetrics) -> None:
        stats.add_batch(m.elapsed_seconds, m.batch_size)

    inserted: dict[str, int] = {}
    counts: dict[str, int] = {}
    current: str | None = None

    cursor.execute("BEGIN")
    try:
        for payload in payloads:
            current = payload.table
            schema = payload.schema
            cursor.execute(schema.drop_sql())
            cursor.execute(schema.create_sql())
            if public_read:
                _enable_public_read(cursor, schema.table)

            result = batch_insert(
                cursor,
                schema.table,
                schema.columns,
                payload.rows,
                page_size=batch_size,
                metrics_callback=_on_batch,
            )
            inserted[schema.table] = result.inserted_rows
            for sql in schema.index_sql():
                cursor.execute(sql)
            logger.debug("loaded table=%s rows=%d batches=%d", schema.table, result.inserted_rows, result.batches)

        for table in derived:
            current = table.table
            cursor.execute(table.drop_sql())
            cursor.execute(table.create_sql())
            if public_read:
                _enable_public_read(cursor, table.table)

        for name in count_tables:
            current = name
            counts[name] = _count_rows(cursor, name)

        current = None
        cursor.execute("COMMIT")
    except Exception as e:
        rollback_error: str | None = None
        try:
            cursor.execute("ROLLBACK")
        except Exception as rollback_e:
            # 元のエラーを優先
            rollback_error = str(rollback_e)
            logger.error("rollback failed: %s", rollback_e)
        where = f" (table={current})" if current else ""
        raise LoadError(f"load failed{where}: {e}", table=current, rollback_error=rollback_error) from e

    total_batches, avg_s, p95_s = stats.get_stats()
    return LoadResult(
        inserted=inserted,
        counts=counts,
        batches=total_batches,
        avg_batch_seconds=avg_s,
        p95_batch_seconds=p95_s,
        elapsed_seconds=time.perf_counter() - start,
    )
