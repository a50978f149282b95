from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any

import psycopg2
from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, PipelineConfig, load_config
from ..db.connection import db_cursor
from ..db.metadata import fetch_latest_metadata
from ..db.schema import metadata_layout
from ..excel.reader import WorkbookReadError, read_workbook, sheet_to_frame
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import enable_debug, log_summary, setup_logging
from ..models.sheet_kind import PipelineVariant
from ..parsing.classifier import classify
from ..services.pipeline import InputError, PipelineError, StoreError, UploadedWorkbook, run_pipeline
from ..services.summary import render_summary_line

"""CLI entrypoint.

    compat-matrix [--config PATH] [--debug] ingest --variant V [--uploaded-by ID] [--dry-run] [--json] FILE...
    compat-matrix inspect FILE...
    compat-matrix metadata --variant V

Exit codes: 0 success, 2 input error (nothing written), 1 fatal / store error.
DISABLE_DB_CONNECT=1 forces dry-run mode (no connection attempt).
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_INPUT_ERROR = 2

PREVIEW_ROWS = 5


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env via python-dotenv.

    override=True: .env の値で既存環境変数を上書き (接続情報を最優先化)
    """
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    variants = [v.value for v in PipelineVariant]
    p = argparse.ArgumentParser(prog="compat-matrix", description="Compatibility matrix workbook -> PostgreSQL loader")
    p.add_argument("--config", type=Path, default=None, help=f"Config YAML (default: {DEFAULT_CONFIG_PATH})")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    ingest = sub.add_parser("ingest", help="Extract, normalize and load workbooks")
    ingest.add_argument("--variant", choices=variants, default=PipelineVariant.SOFTWARE.value)
    ingest.add_argument("--uploaded-by", default=None, help="Caller identity stored in the audit row")
    ingest.add_argument("--dry-run", action="store_true", help="Scan and validate only; do not touch the database")
    ingest.add_argument("--json", action="store_true", help="Print the response body as JSON")
    ingest.add_argument("files", nargs="*", type=Path)

    inspect = sub.add_parser("inspect", help="Show sheet classification and the first rows of each sheet")
    inspect.add_argument("files", nargs="+", type=Path)

    metadata = sub.add_parser("metadata", help="Show the latest ingestion audit row")
    metadata.add_argument("--variant", choices=variants, default=PipelineVariant.SOFTWARE.value)
    return p.parse_args(argv)


def _print_json(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, ensure_ascii=False, default=str))


def _db_disabled() -> bool:
    return os.getenv("DISABLE_DB_CONNECT") == "1"


def _inspect(files: list[Path]) -> int:
    rc = EXIT_SUCCESS
    for f in files:
        print(f"FILE: {f.name}")
        try:
            wb = read_workbook(f)
        except WorkbookReadError as e:
            print(f"  read_error: {e}")
            rc = EXIT_INPUT_ERROR
            continue
        for sheet in wb.sheets:
            kinds = {v.value: k.value for v in PipelineVariant if (k := classify(sheet.name, v)) is not None}
            label = ", ".join(f"{v}:{k}" for v, k in kinds.items()) or "unrecognized"
            print(f"  SHEET: {sheet.name} rows={sheet.n_rows} cols={sheet.n_columns} kind={label}")
            frame = sheet_to_frame(sheet, max_rows=PREVIEW_ROWS)
            if not frame.empty:
                for line in frame.to_string(index=False, header=False).splitlines():
                    print(f"    {line}")
    return rc


def _ingest(args: argparse.Namespace, cfg: PipelineConfig) -> int:
    logger = setup_logging()
    variant = PipelineVariant(args.variant)
    uploads = [UploadedWorkbook.from_path(f) for f in args.files]
    dry_run = args.dry_run or _db_disabled()
    error_log = ErrorLogBuffer()

    try:
        if dry_run:
            logger.debug("dry-run: database connection skipped")
            result = run_pipeline(uploads, variant, None, uploaded_by=args.uploaded_by, config=cfg, error_log=error_log)
        else:
            try:
                with db_cursor(cfg.database) as cur:
                    result = run_pipeline(
                        uploads, variant, cur, uploaded_by=args.uploaded_by, config=cfg, error_log=error_log
                    )
            except psycopg2.Error as e:
                raise StoreError("database connection failed", details=str(e)) from e
    except PipelineError as e:
        logger.error(f"{variant.value}: {e.message}" + (f" ({e.details})" if e.details else ""))
        if args.json:
            _print_json(e.to_response())
        return EXIT_INPUT_ERROR if isinstance(e, InputError) else EXIT_FATAL
    finally:
        path = error_log.flush()
        if path is not None:
            logger.info(f"error log written: {path}")

    mode = "live" if result.loaded else "dry-run"
    logger.info(f"mode={mode} records={result.total_records} curated={result.valid_records}")
    if result.loaded and not result.metadata_written:
        logger.warning("ingestion metadata was not recorded")
    if args.json:
        _print_json(result.to_response())
    # "SUMMARY " プレフィックスは formatter が付与
    log_summary(render_summary_line(result)[len("SUMMARY "):])
    return EXIT_SUCCESS


def _metadata(args: argparse.Namespace, cfg: PipelineConfig) -> int:
    logger = setup_logging()
    variant = PipelineVariant(args.variant)
    if _db_disabled():
        logger.error("metadata: database connection disabled (DISABLE_DB_CONNECT=1)")
        return EXIT_FATAL
    layout = metadata_layout(variant, cfg.tables(variant).metadata_table)
    try:
        with db_cursor(cfg.database) as cur:
            payload = fetch_latest_metadata(cur, layout)
    except psycopg2.Error as e:
        logger.error(f"metadata: {e}")
        return EXIT_FATAL
    _print_json(payload)
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみシステム引数を読む (テストで main([]) を許容)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        enable_debug()

    config_path = args.config if args.config is not None else DEFAULT_CONFIG_PATH
    try:
        cfg = load_config(config_path, required=args.config is not None)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.command == "inspect":
        return _inspect(args.files)
    if args.command == "metadata":
        return _metadata(args, cfg)
    return _ingest(args, cfg)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
