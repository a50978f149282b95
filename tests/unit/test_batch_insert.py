from __future__ import annotations

import pytest

from compat_matrix.db.batch_insert import BatchInsertError, InsertResult, batch_insert, quote_ident


class DummyCursor:
    def __init__(self) -> None:
        self.queries: list[str] = []
        self.pages: list[list] = []


# execute_values をモジュール内で差し替え (実 DB 不要)
@pytest.fixture(autouse=True)
def patch_execute_values(monkeypatch):
    import importlib

    bi = importlib.import_module("compat_matrix.db.batch_insert")

    def fake_execute_values(cursor, sql, rows, page_size=100, template=None):
        cursor.queries.append(sql)
        cursor.pages.append(list(rows))

    monkeypatch.setattr(bi, "execute_values", fake_execute_values)
    return fake_execute_values


def test_batch_insert_basic():
    cur = DummyCursor()
    res = batch_insert(cur, table="compatibility_records", columns=["software", "status"], rows=[("a", "b"), ("c", "d")])
    assert isinstance(res, InsertResult)
    assert res.inserted_rows == 2
    assert res.batches == 1
    assert cur.queries == ['INSERT INTO "compatibility_records" ("software","status") VALUES %s']


def test_batch_insert_pages_by_page_size():
    cur = DummyCursor()
    rows = [(str(i),) for i in range(250)]
    res = batch_insert(cur, table="t", columns=["c"], rows=rows)
    assert res.inserted_rows == 250
    assert res.batches == 3
    assert [len(p) for p in cur.pages] == [100, 100, 50]


def test_batch_insert_custom_page_size():
    cur = DummyCursor()
    res = batch_insert(cur, table="t", columns=["c"], rows=[("1",), ("2",), ("3",)], page_size=2)
    assert res.batches == 2


def test_batch_insert_empty_rows():
    cur = DummyCursor()
    captured = []
    res = batch_insert(cur, table="t", columns=["c"], rows=[], metrics_callback=captured.append)
    assert res.inserted_rows == 0
    assert cur.queries == []
    assert captured == []


def test_batch_insert_with_metrics_callback():
    cur = DummyCursor()
    captured = []
    batch_insert(cur, table="t", columns=["c"], rows=[("1",), ("2",), ("3",)], page_size=2, metrics_callback=captured.append)
    assert [m.batch_size for m in captured] == [2, 1]
    for m in captured:
        assert m.elapsed_seconds >= 0
        assert m.end_time >= m.start_time


def test_batch_insert_invalid_page_size():
    with pytest.raises(BatchInsertError):
        batch_insert(DummyCursor(), table="t", columns=["c"], rows=[("1",)], page_size=0)


def test_batch_insert_wraps_driver_errors(monkeypatch):
    import importlib

    bi = importlib.import_module("compat_matrix.db.batch_insert")

    def boom(cursor, sql, rows, page_size=100, template=None):
        raise RuntimeError("value too long")

    monkeypatch.setattr(bi, "execute_values", boom)
    with pytest.raises(BatchInsertError, match="insert into t failed: value too long"):
        batch_insert(DummyCursor(), table="t", columns=["c"], rows=[("1",)])


def test_quote_ident_escapes_quotes():
    assert quote_ident("Calibration type") == '"Calibration type"'
    assert quote_ident('odd"name') == '"odd""name"'
