from __future__ import annotations

import io
from pathlib import Path

import pytest

from compat_matrix.excel.reader import WorkbookReadError, read_workbook, sheet_to_frame


def test_read_keeps_absolute_coordinates(excel_factory):
    path = excel_factory(
        "matrix.xlsx",
        {
            "Windows": [
                [None, "Windows compatibility"],
                [None, "Product", "Windows 10", "Windows 11"],
                [None, None, None, None],
                [None, "DxO PhotoLab 8", "✓", None],
            ],
            "Notes": [["free text"]],
        },
    )
    wb = read_workbook(path)
    assert wb.filename == "matrix.xlsx"
    assert wb.sheet_names == ["Windows", "Notes"]

    sheet = wb.get("Windows")
    assert sheet is not None
    assert sheet.n_rows == 4
    assert sheet.cell(0, 0) is None
    assert sheet.cell(1, 2) == "Windows 10"
    # 空行は残る (行番号を保持)
    assert sheet.row(2) == ()
    # 末尾の空セルは落とす
    assert sheet.row(3) == (None, "DxO PhotoLab 8", "✓")


def test_read_from_bytes_and_stream(excel_factory):
    path = excel_factory("en.xlsx", {"EN": [["a", "b"]]})
    data = path.read_bytes()

    from_bytes = read_workbook(data, filename="upload.xlsx")
    assert from_bytes.filename == "upload.xlsx"
    assert from_bytes.sheets[0].rows == (("a", "b"),)

    from_stream = read_workbook(io.BytesIO(data), filename="stream.xlsx")
    assert from_stream.sheet_names == ["EN"]


def test_numbers_keep_their_type(excel_factory):
    path = excel_factory("n.xlsx", {"S": [["x", 12, 1.5]]})
    row = read_workbook(path).sheets[0].rows[0]
    assert row[1] == 12
    assert row[2] == 1.5


def test_garbage_input_raises(tmp_path: Path):
    with pytest.raises(WorkbookReadError, match="broken.xlsx"):
        read_workbook(b"definitely not a zip archive", filename="broken.xlsx")

    missing = tmp_path / "missing.xlsx"
    with pytest.raises(WorkbookReadError):
        read_workbook(missing)


def test_sheet_to_frame_pads_and_limits(excel_factory):
    path = excel_factory("f.xlsx", {"S": [["a"], ["b", "c", "d"], ["e"], ["f"]]})
    sheet = read_workbook(path).sheets[0]
    frame = sheet_to_frame(sheet, max_rows=2)
    assert frame.shape == (2, 3)
    assert frame.iloc[0, 0] == "a"
    assert frame.iloc[0, 2] is None
