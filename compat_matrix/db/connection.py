from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import psycopg2

from ..config.loader import DatabaseConfig

"""psycopg2 connection scope for one pipeline run.

接続情報の解決優先順位 (.env は CLI 起動時に override=True で読み込み済み):
    1. DATABASE_URL / PGDSN があれば DSN 全体をそのまま使用
    2. 個別 PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE / PGSSLMODE
    3. config の database セクション (不足分のフォールバック)
"""

logger = logging.getLogger(__name__)

__all__ = [
    "db_cursor",
    "resolve_dsn",
]


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    dsn_env = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn_env:
        return dsn_env

    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    sslmode = os.getenv("PGSSLMODE", db_cfg.sslmode or "")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    if sslmode:
        dsn += f" sslmode={sslmode}"
    return dsn


@contextmanager
def db_cursor(db_cfg: DatabaseConfig) -> Iterator[Any]:  # pragma: no cover (thin wrapper)
    """Yield a cursor on an autocommit connection.

    autocommit=True: the loader issues BEGIN / COMMIT / ROLLBACK itself, so
    the driver must not open implicit transactions.
    """
    conn = psycopg2.connect(resolve_dsn(db_cfg))
    try:
        conn.autocommit = True
        cur = conn.cursor()
        try:
            yield cur
        finally:
            cur.close()
    finally:
        conn.close()
        logger.debug("database connection closed")
