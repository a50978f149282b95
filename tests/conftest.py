# Shared pytest fixtures
from __future__ import annotations

import copy
import re
import tempfile
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from compat_matrix.logging.init import reset_logging

_IDENT = r'"((?:[^"]|"")+)"'


def _unquote(name: str) -> str:
    return name.replace('""', '"')


@dataclass
class FakeTable:
    columns: tuple[str, ...]
    rows: list[dict[str, Any]] = field(default_factory=list)


class FakeStore:
    """In-memory stand-in for PostgreSQL.

    Understands the statements the loader / metadata modules emit. BEGIN takes
    a snapshot, ROLLBACK restores it, COMMIT drops it. ``fail_on`` injects a
    failure into the first statement containing the given text.
    """

    def __init__(self) -> None:
        self.tables: dict[str, FakeTable] = {}
        self.statements: list[str] = []
        self.fail_on: str | None = None
        self.commits = 0
        self.rollbacks = 0
        self._snapshot: dict[str, FakeTable] | None = None

    def cursor(self) -> FakeCursor:
        return FakeCursor(self)

    def rows(self, table: str) -> list[dict[str, Any]]:
        return self.tables[table].rows

    def has_table(self, table: str) -> bool:
        return table in self.tables

    def check_failure(self, sql: str) -> None:
        if self.fail_on and self.fail_on in sql:
            self.fail_on = None
            raise RuntimeError("injected failure")

    def begin(self) -> None:
        self._snapshot = copy.deepcopy(self.tables)

    def commit(self) -> None:
        self._snapshot = None
        self.commits += 1

    def rollback(self) -> None:
        if self._snapshot is not None:
            self.tables = self._snapshot
        self._snapshot = None
        self.rollbacks += 1


class FakeCursor:
    def __init__(self, store: FakeStore) -> None:
        self.store = store
        self._result: list[tuple[Any, ...]] = []

    def _table(self, name: str) -> FakeTable:
        try:
            return self.store.tables[name]
        except KeyError:
            raise RuntimeError(f'relation "{name}" does not exist') from None

    def execute(self, sql: str, params: Any = None) -> None:
        store = self.store
        store.statements.append(sql)
        store.check_failure(sql)
        head = sql.strip()
        self._result = []

        if head == "BEGIN":
            store.begin()
            return
        if head == "COMMIT":
            store.commit()
            return
        if head == "ROLLBACK":
            store.rollback()
            return

        m = re.match(rf"DROP TABLE IF EXISTS {_IDENT}", head)
        if m:
            store.tables.pop(_unquote(m.group(1)), None)
            return

        m = re.match(rf"CREATE TABLE IF NOT EXISTS {_IDENT}", head)
        if m:
            store.tables.setdefault(_unquote(m.group(1)), FakeTable(columns=()))
            return

        m = re.match(rf"CREATE TABLE {_IDENT} AS\s+SELECT (.*?)\s+FROM {_IDENT}(.*)$", head, re.S)
        if m:
            self._create_as_select(m)
            return

        m = re.match(rf"CREATE TABLE {_IDENT} \(", head)
        if m:
            name = _unquote(m.group(1))
            if name in store.tables:
                raise RuntimeError(f'relation "{name}" already exists')
            columns = tuple(_unquote(c) for c in re.findall(rf"^\s+{_IDENT} TEXT", head, re.M))
            store.tables[name] = FakeTable(columns=columns)
            return

        m = re.match(rf"INSERT INTO {_IDENT} \((.*?)\) VALUES \(", head)
        if m:
            table = self._table(_unquote(m.group(1)))
            columns = [_unquote(c) for c in re.findall(_IDENT, m.group(2))]
            table.rows.append(dict(zip(columns, params)))
            return

        m = re.match(rf"SELECT COUNT\(\*\) FROM {_IDENT}", head)
        if m:
            self._result = [(len(self._table(_unquote(m.group(1))).rows),)]
            return

        if head.startswith("SELECT EXISTS"):
            self._result = [(params[0] in store.tables,)]
            return

        m = re.match(rf"SELECT (.*) FROM {_IDENT} ORDER BY last_updated DESC LIMIT 1", head, re.S)
        if m:
            columns = [_unquote(c) for c in re.findall(_IDENT, m.group(1))]
            rows = sorted(self._table(_unquote(m.group(2))).rows, key=lambda r: r["last_updated"], reverse=True)
            self._result = [tuple(r.get(c) for c in columns) for r in rows[:1]]
            return

        m = re.match(rf"(?:ALTER TABLE|CREATE INDEX {_IDENT} ON) {_IDENT}", head)
        if m:
            self._table(_unquote(m.group(m.lastindex)))
            return
        if head.startswith("CREATE POLICY") or head.startswith("DO $$"):
            return
        raise AssertionError(f"unexpected SQL: {sql}")

    def _create_as_select(self, m: re.Match[str]) -> None:
        target = _unquote(m.group(1))
        source = self._table(_unquote(m.group(3)))
        projection = [
            (_unquote(src), _unquote(alias) if alias else _unquote(src))
            for src, alias in re.findall(rf"{_IDENT}(?: AS {_IDENT})?", m.group(2))
        ]
        for src, _ in projection:
            if src not in source.columns:
                raise RuntimeError(f'column "{src}" does not exist')
        where_cols = [_unquote(c) for c in re.findall(rf"{_IDENT} IS NOT NULL", m.group(4))]
        rows = [
            {alias: r.get(src) for src, alias in projection}
            for r in source.rows
            if not where_cols or any(r.get(c) is not None for c in where_cols)
        ]
        self.store.tables[target] = FakeTable(columns=tuple(a for _, a in projection), rows=rows)

    def insert_values(self, sql: str, rows: list[Any]) -> None:
        self.store.statements.append(sql)
        self.store.check_failure(sql)
        m = re.match(rf"INSERT INTO {_IDENT} \((.*?)\) VALUES %s", sql)
        assert m, sql
        table = self._table(_unquote(m.group(1)))
        columns = [_unquote(c) for c in re.findall(_IDENT, m.group(2))]
        for row in rows:
            table.rows.append(dict(zip(columns, row)))

    def fetchone(self) -> tuple[Any, ...] | None:
        return self._result[0] if self._result else None

    def fetchall(self) -> list[tuple[Any, ...]]:
        return list(self._result)

    def close(self) -> None:
        pass


@pytest.fixture()
def fake_store(monkeypatch) -> FakeStore:
    import importlib

    bi = importlib.import_module("compat_matrix.db.batch_insert")

    def fake_execute_values(cursor, sql, rows, page_size=100, template=None):
        cursor.insert_values(sql, list(rows))

    monkeypatch.setattr(bi, "execute_values", fake_execute_values)
    return FakeStore()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def sample_config_yaml() -> str:
    return """batch_size: 2
public_read: true
pipelines:
  software:
    table: compatibility_records
    metadata_table: software_source_metadata
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "compat_matrix.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def make_excel(path: Path, sheets: dict[str, list[list[object]]]) -> Path:
    """Write a real workbook; each list is one worksheet row starting at A1."""
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for sheet_name, rows in sheets.items():
            df = pd.DataFrame(rows, dtype=object)
            df.to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    return path


@pytest.fixture()
def excel_factory(temp_workdir: Path) -> Callable[[str, dict[str, list[list[object]]]], Path]:
    def _make(name: str, sheets: dict[str, list[list[object]]]) -> Path:
        return make_excel(temp_workdir / "data" / name, sheets)

    return _make


def software_sheets() -> dict[str, list[list[object]]]:
    """Small but complete software workbook.

    13 raw records, one of them a duplicate (Windows copy) -> 12 curated.
    """
    return {
        "Windows": [
            [None, "Windows compatibility"],
            [None, "Product", "Windows 10", "Windows 11"],
            [None, "DxO PhotoLab 8", "✓", "✓"],
            [None, "DxO PureRAW 4", "✓", "✕"],
        ],
        "macOS": [
            [None, "macOS compatibility"],
            [None, "Product", "Sonoma 14", "Sequoia 15"],
            [None, "DxO PhotoLab 8", "✓", "64bit only"],
        ],
        "LR": [
            [None, "Lightroom"],
            [None, "Host", "DxO PureRAW 4", "DxO FilmPack 7"],
            [None, "Lightroom Classic\nplugin + export", "✓", "yes"],
        ],
        "Nik Collection": [
            [None, "Nik"],
            [None, "Plugins\nNik Collection 8", "Photoshop", "Lightroom Classic"],
            [None, "Color Efex Pro", "✓", "✓"],
            [None, "Plugins Nik Collection 7", "Photoshop", "Affinity Photo"],
            [None, "Silver Efex Pro", "✓", "✕"],
        ],
        "Windows (old)": [
            [None, "Legacy"],
            [None, "Product", "Windows 10"],
            [None, "DxO PhotoLab 8", "✕"],
        ],
        "Notes": [
            ["free text"],
        ],
    }


def denoising_sheets() -> dict[str, list[list[object]]]:
    return {
        "EN": [
            [None, "Denoising technologies"],
            [None, "Product", None, "DeepPRIME", "DeepPRIME XD2s"],
            [None, "DxO PhotoLab 8", None, "✓", "X-Trans"],
            [None, None, "GPU", "✓", "✕"],
            [None, "Legend", None, "note", "note"],
        ],
        "FR": [
            [None, "Technologies"],
            [None, "Produit", None, "DeepPRIME"],
            [None, "DxO PhotoLab 8", None, "✓"],
        ],
    }


CAMERA_COLUMNS = [
    "Brand", "Model", "Sensor", "Mount", "Calibration type", "Customer status", "Start",
    "Engine Status", "CLSS package", "PL Version", "PL Support", "PR Version", "PR Support",
    "FP Version", "FP Support", "VP Version", "VP Support", "NPFX Version", "NPFX Support",
    "Support LR", "Support C1", "Support On1", "Internal notes",
]

LENS_COLUMNS = [
    "Release year", "Release Quarter", "RTM CLSS", "Brand", "Model", "Mount", "Nb calibration",
    "Lens Type", "Start", "Calibration ready", "Intermediate status", "Status", "C1",
]


def catalog_sheets() -> dict[str, list[list[object]]]:
    camera_rows: list[list[object]] = [
        ["Canon", "EOS R5"] + ["x"] * (len(CAMERA_COLUMNS) - 2),
        ["Nikon", "Z8"] + ["y"] * (len(CAMERA_COLUMNS) - 2),
        [None, None] + ["orphan"] + [None] * (len(CAMERA_COLUMNS) - 3),
    ]
    lens_rows: list[list[object]] = [
        ["2023", "Q1", "yes", "Sigma", "35mm F1.4 DG DN", "L", "3", "prime", "2023-01", "yes", "ok", "done", "yes"],
    ]
    return {
        "Planning cameras": [CAMERA_COLUMNS, *camera_rows],
        "Planning lenses": [LENS_COLUMNS, *lens_rows],
        "Readme": [["notes"]],
    }


@pytest.fixture()
def software_xlsx(excel_factory) -> Path:
    return excel_factory("software_matrix.xlsx", software_sheets())


@pytest.fixture()
def denoising_xlsx(excel_factory) -> Path:
    return excel_factory("denoising.xlsx", denoising_sheets())


@pytest.fixture()
def catalog_xlsx(excel_factory) -> Path:
    return excel_factory("planning.xlsx", catalog_sheets())
