from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..models.ingestion import IngestionMetadata
from ..models.records import CapabilityRecord, CompatibilityRecord
from ..models.sheet_kind import PipelineVariant
from .batch_insert import quote_ident

"""Destination table layouts and DDL rendering.

Every destination table is rebuilt from scratch on each load, so a layout is
the complete description of a table: its columns, indexes and whether a
public read policy applies. Identifiers are always double-quoted; catalog
column names come straight from worksheet headers and may contain spaces.
"""

__all__ = [
    "CAMERAS_CURATED_PROJECTION",
    "DerivedTable",
    "IndexSpec",
    "LENSES_CURATED_PROJECTION",
    "MetadataLayout",
    "TablePayload",
    "TableSchema",
    "capability_schema",
    "catalog_schema",
    "compatibility_schema",
    "curated_cameras",
    "curated_lenses",
    "metadata_layout",
    "policy_name",
]


def policy_name(table: str) -> str:
    return f"Allow public read access on {table}"


@dataclass(frozen=True)
class IndexSpec:
    name: str
    columns: tuple[str, ...]

    def create_sql(self, table: str) -> str:
        cols = ", ".join(quote_ident(c) for c in self.columns)
        return f"CREATE INDEX {quote_ident(self.name)} ON {quote_ident(table)} ({cols})"


@dataclass(frozen=True)
class TableSchema:
    """Column layout of one destination table.

    ``serial_id`` adds ``id SERIAL PRIMARY KEY``; ``not_null`` marks every
    data column NOT NULL (record tables) or leaves them nullable (catalogs).
    """
    table: str
    columns: tuple[str, ...]
    serial_id: bool = True
    not_null: bool = True
    defaults: dict[str, str] = field(default_factory=dict)
    indexes: tuple[IndexSpec, ...] = ()

    def create_sql(self) -> str:
        parts: list[str] = []
        if self.serial_id:
            parts.append("id SERIAL PRIMARY KEY")
        for col in self.columns:
            part = f"{quote_ident(col)} TEXT"
            if self.not_null:
                part += " NOT NULL"
            if col in self.defaults:
                part += f" DEFAULT '{self.defaults[col]}'"
            parts.append(part)
        body = ",\n    ".join(parts)
        return f"CREATE TABLE {quote_ident(self.table)} (\n    {body}\n)"

    def drop_sql(self) -> str:
        return f"DROP TABLE IF EXISTS {quote_ident(self.table)} CASCADE"

    def index_sql(self) -> list[str]:
        return [idx.create_sql(self.table) for idx in self.indexes]


@dataclass(frozen=True)
class TablePayload:
    """A table layout plus the rows that replace its content."""
    schema: TableSchema
    rows: list[tuple[Any, ...]]

    @property
    def table(self) -> str:
        return self.schema.table


@dataclass(frozen=True)
class DerivedTable:
    """``CREATE TABLE ... AS SELECT`` projection rebuilt from a loaded table.

    ``projection`` pairs a source column with an optional output alias.
    """
    table: str
    source: str
    projection: tuple[tuple[str, str | None], ...]
    where_any_not_null: tuple[str, ...] = ()
    order_by: tuple[str, ...] = ()

    def drop_sql(self) -> str:
        return f"DROP TABLE IF EXISTS {quote_ident(self.table)}"

    def create_sql(self) -> str:
        select_cols = []
        for source_col, alias in self.projection:
            col = quote_ident(source_col)
            if alias:
                col += f" AS {quote_ident(alias)}"
            select_cols.append(col)
        sql = (
            f"CREATE TABLE {quote_ident(self.table)} AS\n"
            f"SELECT {', '.join(select_cols)}\n"
            f"FROM {quote_ident(self.source)}"
        )
        if self.where_any_not_null:
            cond = " OR ".join(f"{quote_ident(c)} IS NOT NULL" for c in self.where_any_not_null)
            sql += f"\nWHERE {cond}"
        if self.order_by:
            sql += "\nORDER BY " + ", ".join(quote_ident(c) for c in self.order_by)
        return sql


def compatibility_schema(table: str) -> TableSchema:
    return TableSchema(
        table=table,
        columns=CompatibilityRecord.COLUMNS,
        indexes=(
            IndexSpec(f"idx_{table}_software", ("software", "software_version")),
            IndexSpec(f"idx_{table}_feature", ("feature",)),
            IndexSpec(f"idx_{table}_target", ("compat_target",)),
        ),
    )


def capability_schema(table: str) -> TableSchema:
    return TableSchema(
        table=table,
        columns=CapabilityRecord.COLUMNS,
        defaults={"record_type": "software"},
        indexes=(
            IndexSpec(f"idx_{table}_name", ("name", "version")),
            IndexSpec(f"idx_{table}_tech", ("denoising_tech",)),
            IndexSpec(f"idx_{table}_type", ("record_type",)),
        ),
    )


def catalog_schema(table: str, columns: tuple[str, ...]) -> TableSchema:
    # 列はシートのヘッダーそのまま (NULL 許容, id なし)
    return TableSchema(table=table, columns=columns, serial_id=False, not_null=False)


CAMERAS_CURATED_PROJECTION: tuple[tuple[str, str | None], ...] = (
    ("Brand", None),
    ("Model", None),
    ("Sensor", None),
    ("Mount", None),
    ("Calibration type", None),
    ("Customer status", None),
    ("Start", None),
    ("Engine Status", None),
    ("CLSS package", None),
    ("PL Version", "PhotoLab Version"),
    ("PL Support", "PhotoLab Support"),
    ("PR Version", "PureRaw Version"),
    ("PR Support", "PureRaw Support"),
    ("FP Version", "FilmPack Version"),
    ("FP Support", "FilmPack Support"),
    ("VP Version", "ViewPoint Version"),
    ("VP Support", "ViewPoint Support"),
    ("NPFX Version", "Nik Collection Version"),
    ("NPFX Support", "Nik Collection Support"),
    ("Support LR", "Lightroom Support"),
    ("Support C1", None),
    ("Support On1", None),
)

LENSES_CURATED_PROJECTION: tuple[tuple[str, str | None], ...] = (
    ("Release year", None),
    ("Release Quarter", None),
    ("RTM CLSS", None),
    ("Brand", None),
    ("Model", None),
    ("Mount", None),
    ("Nb calibration", None),
    ("Lens Type", None),
    ("Start", None),
    ("Calibration ready", None),
    ("Intermediate status", None),
    ("Status", None),
    ("C1", None),
)


def curated_cameras(source: str, table: str) -> DerivedTable:
    return DerivedTable(
        table=table,
        source=source,
        projection=CAMERAS_CURATED_PROJECTION,
        where_any_not_null=("Brand", "Model"),
        order_by=("Brand", "Model"),
    )


def curated_lenses(source: str, table: str) -> DerivedTable:
    return DerivedTable(
        table=table,
        source=source,
        projection=LENSES_CURATED_PROJECTION,
        order_by=("Brand", "Model"),
    )


@dataclass(frozen=True)
class MetadataLayout:
    """Audit table layout for one variant.

    ``count_columns`` are the INTEGER counters of the variant;
    ``response_keys`` maps stored columns to read-back response keys;
    ``value_sources`` redirects a stored column to another IngestionMetadata
    value (denoising stores the valid count in ``records_count``).
    """
    table: str
    count_columns: tuple[str, ...]
    response_keys: dict[str, str]
    value_sources: dict[str, str] = field(default_factory=dict)

    @property
    def insert_columns(self) -> tuple[str, ...]:
        return ("last_updated", *self.count_columns, "uploaded_by", "filename")

    def row_for(self, metadata: IngestionMetadata) -> tuple[Any, ...]:
        return metadata.as_row(tuple(self.value_sources.get(c, c) for c in self.insert_columns))

    def create_sql(self) -> str:
        counters = "".join(
            f"    {quote_ident(c)} INTEGER NOT NULL DEFAULT 0,\n" for c in self.count_columns
        )
        return (
            f"CREATE TABLE IF NOT EXISTS {quote_ident(self.table)} (\n"
            "    id SERIAL PRIMARY KEY,\n"
            "    last_updated TIMESTAMPTZ NOT NULL DEFAULT NOW(),\n"
            f"{counters}"
            "    uploaded_by TEXT,\n"
            "    filename TEXT\n"
            ")"
        )


_RECORD_RESPONSE_KEYS = {
    "records_count": "records",
    "records_curated_count": "recordsCurated",
}

_CATALOG_RESPONSE_KEYS = {
    "cameras_count": "cameras",
    "lenses_count": "lenses",
    "cameras_curated_count": "camerasCurated",
    "lenses_curated_count": "lensesCurated",
}


def metadata_layout(variant: PipelineVariant, table: str) -> MetadataLayout:
    if variant is PipelineVariant.CAMERAS_LENSES:
        return MetadataLayout(
            table=table,
            count_columns=tuple(_CATALOG_RESPONSE_KEYS),
            response_keys=dict(_CATALOG_RESPONSE_KEYS),
        )
    if variant is PipelineVariant.DENOISING:
        # 既存の denoising 監査テーブルと同じ列構成 (records_count = 有効件数)
        return MetadataLayout(
            table=table,
            count_columns=("records_count",),
            response_keys={"records_count": "records"},
            value_sources={"records_count": "records_curated_count"},
        )
    return MetadataLayout(
        table=table,
        count_columns=tuple(_RECORD_RESPONSE_KEYS),
        response_keys=dict(_RECORD_RESPONSE_KEYS),
    )
