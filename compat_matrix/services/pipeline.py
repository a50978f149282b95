from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from pathlib import Path
from typing import IO, Any

from ..config.loader import PipelineConfig, TableConfig, default_config
from ..db.loader import LoadError, LoadResult, load_tables
from ..db.metadata import MetadataWriteError, append_metadata
from ..db.schema import (
    TablePayload,
    capability_schema,
    catalog_schema,
    compatibility_schema,
    curated_cameras,
    curated_lenses,
    metadata_layout,
)
from ..excel.reader import WorkbookReadError, read_workbook
from ..logging.error_log import ErrorLogBuffer
from ..models.error_record import ErrorRecord
from ..models.ingestion import IngestionMetadata, IngestionResult
from ..models.records import CatalogTable
from ..models.sheet_kind import PipelineVariant, SheetKind
from ..models.workbook import Sheet, Workbook
from ..parsing.classifier import classify
from ..scanners import read_catalog_table, scan_sheet
from ..scanners.common import Record
from .dedupe import dedupe_and_validate
from .progress import ProgressTracker

"""Pipeline orchestration.

run_pipeline() drives one ingestion run end to end:

1. read every uploaded workbook (upload order)
2. classify each sheet for the variant; unknown sheets are skipped
3. scan classified sheets into records (row anomalies -> error log)
4. dedupe + validate (record variants) / check both catalogs (cameras_lenses)
5. load_tables() in a single transaction (skipped when cursor is None)
6. append one audit row in its own transaction (failure is non-fatal)

Input problems raise InputError (400) before anything touches the store;
load failures raise StoreError (500) after the loader rolled back.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "InputError",
    "PipelineError",
    "StoreError",
    "UploadedWorkbook",
    "VARIANT_MESSAGES",
    "run_pipeline",
]


class PipelineError(Exception):
    """Base class for request-level failures."""

    status_code = 500

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_response(self) -> dict[str, Any]:
        response: dict[str, Any] = {"error": self.message}
        if self.details:
            response["details"] = self.details
        return response


class InputError(PipelineError):
    status_code = 400


class StoreError(PipelineError):
    status_code = 500


@dataclass(frozen=True)
class UploadedWorkbook:
    """One uploaded document: bytes, a binary stream or a filesystem path."""
    filename: str
    content: bytes | bytearray | IO[bytes] | Path | str

    @classmethod
    def from_path(cls, path: Path | str) -> UploadedWorkbook:
        p = Path(path)
        return cls(filename=p.name, content=p)


@dataclass(frozen=True)
class VariantMessages:
    no_files: str
    no_records: str


VARIANT_MESSAGES: dict[PipelineVariant, VariantMessages] = {
    PipelineVariant.SOFTWARE: VariantMessages(
        no_files="Please upload at least 1 Excel file",
        no_records="No valid compatibility records found in the uploaded Excel files",
    ),
    PipelineVariant.DENOISING: VariantMessages(
        no_files="Please upload an Excel file",
        no_records="No valid denoising compatibility records found in the uploaded Excel file",
    ),
    PipelineVariant.CAMERAS_LENSES: VariantMessages(
        no_files="No file provided",
        no_records="Excel file must have data in both sheets (cameras and lenses)",
    ),
}

CATALOG_SHEETS_MISSING = (
    'Could not detect cameras/lenses sheets by name. Use sheet names like "cameras", '
    '"planning cameras", "lenses", or "planning lenses".'
)


@dataclass
class _RunStats:
    scanned_sheets: int = 0
    skipped_sheets: int = 0
    anomalies: int = 0
    filenames: list[str] = field(default_factory=list)


def _read_uploads(
    uploads: Sequence[UploadedWorkbook], error_log: ErrorLogBuffer, stats: _RunStats
) -> list[Workbook]:
    workbooks: list[Workbook] = []
    with ProgressTracker(len(uploads)) as progress:
        for upload in uploads:
            progress.start_file(upload.filename)
            try:
                wb = read_workbook(upload.content, filename=upload.filename)
            except WorkbookReadError as e:
                error_log.append(
                    ErrorRecord.create(
                        file=upload.filename,
                        sheet="<FILE_LEVEL>",
                        row=-1,
                        error_type="WORKBOOK_READ_ERROR",
                        message=str(e),
                    )
                )
                raise InputError(f"Could not read Excel file: {upload.filename}", details=str(e)) from e
            stats.filenames.append(upload.filename)
            workbooks.append(wb)
            progress.finish_file()
            logger.info("read file=%s sheets=%d", wb.filename, len(wb.sheets))
    return workbooks


def _scan_records(
    workbooks: list[Workbook],
    variant: PipelineVariant,
    error_log: ErrorLogBuffer,
    stats: _RunStats,
) -> list[Record]:
    records: list[Record] = []
    for wb in workbooks:
        for sheet in wb.sheets:
            kind = classify(sheet.name, variant)
            if kind is None:
                stats.skipped_sheets += 1
                logger.debug("file=%s sheet=%s skipped (unrecognized)", wb.filename, sheet.name)
                continue
            scan = scan_sheet(sheet, kind)
            stats.scanned_sheets += 1
            records.extend(scan.records)
            for anomaly in scan.anomalies:
                stats.anomalies += 1
                error_log.append(
                    ErrorRecord.create(
                        file=wb.filename,
                        sheet=anomaly.sheet,
                        row=anomaly.row + 1,
                        error_type="ROW_SKIPPED",
                        message=anomaly.message,
                    )
                )
            logger.info(
                "file=%s sheet=%s kind=%s records=%d", wb.filename, sheet.name, kind.value, len(scan.records)
            )
    return records


def _find_catalog_sheets(workbooks: list[Workbook], stats: _RunStats) -> tuple[Sheet, Sheet]:
    cameras: Sheet | None = None
    lenses: Sheet | None = None
    for wb in workbooks:
        for sheet in wb.sheets:
            kind = classify(sheet.name, PipelineVariant.CAMERAS_LENSES)
            # 最初に一致したシートのみ採用
            if kind is SheetKind.CAMERA_CATALOG and cameras is None:
                cameras = sheet
                stats.scanned_sheets += 1
            elif kind is SheetKind.LENS_CATALOG and lenses is None:
                lenses = sheet
                stats.scanned_sheets += 1
            else:
                stats.skipped_sheets += 1
    if cameras is None or lenses is None:
        raise InputError(CATALOG_SHEETS_MISSING)
    return cameras, lenses


def _record_store_failure(error_log: ErrorLogBuffer, filenames: str, error: LoadError) -> StoreError:
    error_log.append(
        ErrorRecord.create(
            file=filenames,
            sheet=error.table or "<RUN>",
            row=-1,
            error_type="TRANSACTION_ERROR",
            message=str(error),
        )
    )
    cause = error.__cause__ if error.__cause__ is not None else error
    logger.error("load rolled back: %s", error)
    return StoreError(str(error), details=str(cause))


def _write_metadata(
    cursor: Any,
    variant: PipelineVariant,
    tables: TableConfig,
    metadata: IngestionMetadata,
    config: PipelineConfig,
    error_log: ErrorLogBuffer,
) -> bool:
    layout = metadata_layout(variant, tables.metadata_table)
    try:
        append_metadata(cursor, layout, metadata, public_read=config.public_read)
    except MetadataWriteError as e:
        logger.warning("metadata not recorded: %s", e)
        error_log.append(
            ErrorRecord.create(
                file=metadata.source_filenames,
                sheet=layout.table,
                row=-1,
                error_type="METADATA_WRITE_ERROR",
                message=str(e),
            )
        )
        return False
    return True


def _run_records(
    workbooks: list[Workbook],
    variant: PipelineVariant,
    cursor: Any,
    uploaded_by: str | None,
    config: PipelineConfig,
    error_log: ErrorLogBuffer,
    stats: _RunStats,
) -> IngestionResult:
    all_records = _scan_records(workbooks, variant, error_log, stats)
    valid = dedupe_and_validate(all_records)
    if not valid:
        raise InputError(VARIANT_MESSAGES[variant].no_records)

    tables = config.tables(variant)
    updated_at = datetime.now(UTC)
    base = dict(
        variant=variant,
        total_records=len(all_records),
        valid_records=len(valid),
        updated_at=updated_at,
        source_filenames=list(stats.filenames),
        scanned_sheets=stats.scanned_sheets,
        skipped_sheets=stats.skipped_sheets,
        anomalies=stats.anomalies,
    )
    if cursor is None:
        logger.info("dry-run: %d records not loaded into %s", len(valid), tables.table)
        return IngestionResult(loaded=False, **base)

    schema = compatibility_schema(tables.table) if variant is PipelineVariant.SOFTWARE else capability_schema(tables.table)
    joined = ", ".join(stats.filenames)
    try:
        load = load_tables(
            cursor,
            [TablePayload(schema=schema, rows=[r.as_row() for r in valid])],
            batch_size=config.batch_size,
            public_read=config.public_read,
        )
    except LoadError as e:
        raise _record_store_failure(error_log, joined, e) from e
    _log_load(load)

    metadata = IngestionMetadata(
        ingested_at=updated_at,
        total_records=len(all_records),
        valid_records=len(valid),
        uploaded_by=uploaded_by,
        source_filenames=joined,
    )
    written = _write_metadata(cursor, variant, tables, metadata, config, error_log)
    return IngestionResult(loaded=True, metadata_written=written, **base)


def _run_catalogs(
    workbooks: list[Workbook],
    cursor: Any,
    uploaded_by: str | None,
    config: PipelineConfig,
    error_log: ErrorLogBuffer,
    stats: _RunStats,
) -> IngestionResult:
    variant = PipelineVariant.CAMERAS_LENSES
    camera_sheet, lens_sheet = _find_catalog_sheets(workbooks, stats)
    cameras: CatalogTable = read_catalog_table(camera_sheet)
    lenses: CatalogTable = read_catalog_table(lens_sheet)
    if len(cameras) == 0 or len(lenses) == 0:
        raise InputError(VARIANT_MESSAGES[variant].no_records)

    tables = config.tables(variant)
    total = len(cameras) + len(lenses)
    updated_at = datetime.now(UTC)
    extra: dict[str, Any] = {
        "cameras": len(cameras),
        "lenses": len(lenses),
        "camerasColumns": len(cameras.columns),
        "lensesColumns": len(lenses.columns),
    }
    base = dict(
        variant=variant,
        total_records=total,
        updated_at=updated_at,
        source_filenames=list(stats.filenames),
        scanned_sheets=stats.scanned_sheets,
        skipped_sheets=stats.skipped_sheets,
        anomalies=stats.anomalies,
    )
    if cursor is None:
        logger.info("dry-run: cameras=%d lenses=%d not loaded", len(cameras), len(lenses))
        return IngestionResult(valid_records=total, loaded=False, extra=extra, **base)

    cameras_curated = tables.cameras_curated_table or "cameras_curated"
    lenses_curated = tables.lenses_curated_table or "lenses_curated"
    lenses_table = tables.lenses_table or "lenses"
    joined = ", ".join(stats.filenames)
    try:
        load = load_tables(
            cursor,
            [
                TablePayload(schema=catalog_schema(tables.table, cameras.columns), rows=cameras.as_rows()),
                TablePayload(schema=catalog_schema(lenses_table, lenses.columns), rows=lenses.as_rows()),
            ],
            batch_size=config.batch_size,
            public_read=config.public_read,
            derived=(
                curated_cameras(tables.table, cameras_curated),
                curated_lenses(lenses_table, lenses_curated),
            ),
            count_tables=(cameras_curated, lenses_curated),
        )
    except LoadError as e:
        raise _record_store_failure(error_log, joined, e) from e
    _log_load(load)

    cameras_curated_count = load.counts.get(cameras_curated, 0)
    lenses_curated_count = load.counts.get(lenses_curated, 0)
    extra["camerasCurated"] = cameras_curated_count
    extra["lensesCurated"] = lenses_curated_count

    metadata = IngestionMetadata(
        ingested_at=updated_at,
        total_records=total,
        valid_records=cameras_curated_count + lenses_curated_count,
        uploaded_by=uploaded_by,
        source_filenames=joined,
        table_counts={
            "cameras_count": len(cameras),
            "lenses_count": len(lenses),
            "cameras_curated_count": cameras_curated_count,
            "lenses_curated_count": lenses_curated_count,
        },
    )
    written = _write_metadata(cursor, variant, tables, metadata, config, error_log)
    return IngestionResult(
        valid_records=metadata.valid_records,
        loaded=True,
        metadata_written=written,
        extra=extra,
        **base,
    )


def _log_load(load: LoadResult) -> None:
    logger.info(
        "loaded rows=%d batches=%d avg_batch_ms=%.1f p95_batch_ms=%.1f",
        load.total_inserted,
        load.batches,
        load.avg_batch_seconds * 1000,
        load.p95_batch_seconds * 1000,
    )


def run_pipeline(
    uploads: Sequence[UploadedWorkbook],
    variant: PipelineVariant = PipelineVariant.SOFTWARE,
    cursor: Any = None,
    *,
    uploaded_by: str | None = None,
    config: PipelineConfig | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> IngestionResult:
    """Run one ingestion.

    Args:
        uploads: workbooks in upload order
        variant: pipeline variant
        cursor: psycopg2 cursor on an autocommit connection (None = dry-run)
        uploaded_by: caller identity, stored only in the audit row
        config: table names / batch size (defaults when None)
        error_log: buffer for JSON Lines error records; when None a private
            buffer is created and flushed before returning

    Raises:
        InputError: no uploads, unreadable workbook, missing sheets, no valid records
        StoreError: the load transaction failed and was rolled back
    """
    start = time.perf_counter()
    cfg = config if config is not None else default_config()
    owns_log = error_log is None
    log = error_log if error_log is not None else ErrorLogBuffer()
    stats = _RunStats()

    try:
        uploads = list(uploads)
        if not uploads:
            raise InputError(VARIANT_MESSAGES[variant].no_files)

        workbooks = _read_uploads(uploads, log, stats)
        if variant is PipelineVariant.CAMERAS_LENSES:
            result = _run_catalogs(workbooks, cursor, uploaded_by, cfg, log, stats)
        else:
            result = _run_records(workbooks, variant, cursor, uploaded_by, cfg, log, stats)
    finally:
        if owns_log:
            log.flush()

    return replace(result, elapsed_seconds=time.perf_counter() - start)
