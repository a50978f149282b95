"""Relational store access (psycopg2)."""

from .batch_insert import BatchInsertError, BatchMetrics, InsertResult, batch_insert
from .loader import LoadError, LoadResult, load_tables
from .metadata import MetadataWriteError, append_metadata, fetch_latest_metadata
from .schema import (
    DerivedTable,
    MetadataLayout,
    TablePayload,
    TableSchema,
    capability_schema,
    catalog_schema,
    compatibility_schema,
    curated_cameras,
    curated_lenses,
    metadata_layout,
)

__all__ = [
    "BatchInsertError",
    "BatchMetrics",
    "DerivedTable",
    "InsertResult",
    "LoadError",
    "LoadResult",
    "MetadataLayout",
    "MetadataWriteError",
    "TablePayload",
    "TableSchema",
    "append_metadata",
    "batch_insert",
    "capability_schema",
    "catalog_schema",
    "compatibility_schema",
    "curated_cameras",
    "curated_lenses",
    "fetch_latest_metadata",
    "load_tables",
    "metadata_layout",
]
