from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from ..models.ingestion import IngestionMetadata, isoformat_utc
from .batch_insert import quote_ident
from .schema import MetadataLayout, policy_name

"""Ingestion audit table: append one row per load, read back the newest.

The audit table is append-only and created on first use. Appending runs in
its own transaction after the data load has committed.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "MetadataWriteError",
    "append_metadata",
    "fetch_latest_metadata",
]


class MetadataWriteError(Exception):
    pass


_ENSURE_POLICY_SQL = """
DO $$
BEGIN
    IF NOT EXISTS (
        SELECT 1 FROM pg_policies WHERE tablename = %(table)s AND policyname = %(policy)s
    ) THEN
        EXECUTE format('CREATE POLICY %%I ON %%I FOR SELECT USING (true)', %(policy)s, %(table)s);
    END IF;
END $$;
"""


def append_metadata(
    cursor: Any,
    layout: MetadataLayout,
    metadata: IngestionMetadata,
    *,
    public_read: bool = True,
) -> None:
    table = quote_ident(layout.table)
    columns = layout.insert_columns
    cols_sql = ", ".join(quote_ident(c) for c in columns)
    placeholders = ", ".join(["%s"] * len(columns))

    cursor.execute("BEGIN")
    try:
        cursor.execute(layout.create_sql())
        if public_read:
            cursor.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")
            cursor.execute(
                _ENSURE_POLICY_SQL,
                {"table": layout.table, "policy": policy_name(layout.table)},
            )
        cursor.execute(
            f"INSERT INTO {table} ({cols_sql}) VALUES ({placeholders})",
            layout.row_for(metadata),
        )
        cursor.execute("COMMIT")
    except Exception as e:
        try:
            cursor.execute("ROLLBACK")
        except Exception as rollback_e:
            logger.error("metadata rollback failed: %s", rollback_e)
        raise MetadataWriteError(f"metadata write to {layout.table} failed: {e}") from e


def _as_text_timestamp(value: Any) -> Any:
    if isinstance(value, datetime):
        return isoformat_utc(value)
    return value


def fetch_latest_metadata(cursor: Any, layout: MetadataLayout) -> dict[str, Any]:
    """Return the newest audit row, or ``{"exists": False}``."""
    cursor.execute(
        "SELECT EXISTS (SELECT FROM information_schema.tables "
        "WHERE table_schema = 'public' AND table_name = %s)",
        (layout.table,),
    )
    found = cursor.fetchone()
    if not found or not found[0]:
        return {"exists": False}

    columns = ("last_updated", *layout.count_columns, "uploaded_by", "filename")
    cols_sql = ", ".join(quote_ident(c) for c in columns)
    cursor.execute(
        f"SELECT {cols_sql} FROM {quote_ident(layout.table)} ORDER BY last_updated DESC LIMIT 1"
    )
    row = cursor.fetchone()
    if row is None:
        return {"exists": False}

    values = dict(zip(columns, row))
    response: dict[str, Any] = {"exists": True}
    for column in layout.count_columns:
        response[layout.response_keys[column]] = values[column]
    response["updatedAt"] = _as_text_timestamp(values["last_updated"])
    response["uploadedBy"] = values["uploaded_by"]
    response["filename"] = values["filename"]
    return response
