from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from psycopg2.extras import execute_values

"""Batched INSERT via psycopg2.extras.execute_values.

``page_size`` bounds the rows per generated statement (default 100). Batching
exists only to bound statement size: the caller owns the transaction, so all
pages commit or roll back together.
"""

__all__ = [
    "BatchInsertError",
    "BatchMetrics",
    "DEFAULT_BATCH_SIZE",
    "InsertResult",
    "batch_insert",
    "quote_ident",
]

DEFAULT_BATCH_SIZE = 100


class BatchInsertError(Exception):
    pass


@dataclass(frozen=True)
class BatchMetrics:
    """Timing for one page of rows."""
    batch_size: int  # rows in this page
    elapsed_seconds: float
    start_time: float  # time.time()
    end_time: float


@dataclass(frozen=True)
class InsertResult:
    inserted_rows: int
    batches: int = 0


def quote_ident(name: str) -> str:
    """Double-quote an identifier (embedded quotes doubled)."""
    return '"' + name.replace('"', '""') + '"'


def _pages(rows: list[Sequence[Any]], size: int) -> Iterable[list[Sequence[Any]]]:
    for start in range(0, len(rows), size):
        yield rows[start:start + size]


def batch_insert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    page_size: int = DEFAULT_BATCH_SIZE,
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
) -> InsertResult:
    """Insert ``rows`` into ``table`` in pages of ``page_size``.

    Parameters
    ----------
    cursor: psycopg2 cursor (トランザクションは呼び出し側で管理)
    table: 対象テーブル名 (設定スキーマで検証済み想定)
    columns: 挿入列
    rows: 行シーケンス
    page_size: 1 ステートメントあたりの行数
    metrics_callback: called once per page with BatchMetrics. Not called when
        ``rows`` is empty.
    """
    if page_size < 1:
        raise BatchInsertError(f"page_size must be positive: {page_size}")

    rows_list = list(rows)
    if not rows_list:
        return InsertResult(inserted_rows=0, batches=0)

    cols_sql = ",".join(quote_ident(c) for c in columns)
    base_sql = f"INSERT INTO {quote_ident(table)} ({cols_sql}) VALUES %s"

    batches = 0
    for page in _pages(rows_list, page_size):
        start_time = time.time()
        try:
            execute_values(cursor, base_sql, page, page_size=page_size)
        except Exception as e:
            raise BatchInsertError(f"insert into {table} failed: {e}") from e
        finally:
            end_time = time.time()
            if metrics_callback is not None:
                metrics_callback(
                    BatchMetrics(
                        batch_size=len(page),
                        elapsed_seconds=end_time - start_time,
                        start_time=start_time,
                        end_time=end_time,
                    )
                )
        batches += 1

    return InsertResult(inserted_rows=len(rows_list), batches=batches)
