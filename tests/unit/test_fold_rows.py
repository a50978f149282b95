from __future__ import annotations

from compat_matrix.models.records import CompatibilityRecord
from compat_matrix.models.scan_state import ColumnHeader, ScanState
from compat_matrix.models.workbook import Sheet
from compat_matrix.scanners.common import extract_headers, fold_rows


def test_extract_headers_keeps_internal_line_breaks():
    row = (None, "label", "  Windows 10 ", None, "", "Windows 11\n(ARM)", 12)
    assert extract_headers(row) == (
        ColumnHeader(2, "Windows 10"),
        ColumnHeader(5, "Windows 11\n(ARM)"),
    )
    assert extract_headers(None) == ()


def test_failing_row_becomes_anomaly_and_fold_continues():
    sheet = Sheet.from_rows("S", [[], [], ["a"], ["boom"], ["c"]])

    def step(state, idx, row):
        if row[0] == "boom":
            raise ValueError("malformed cell")
        return state.with_version(str(idx)), [
            CompatibilityRecord(row[0], state.carried_version, "f", "t", "compatible")
        ]

    records, anomalies, final = fold_rows(sheet, step, ScanState())
    assert [r.software for r in records] == ["a", "c"]
    # the failing row does not advance the state
    assert [r.software_version for r in records] == ["", "2"]
    assert final.carried_version == "4"
    (anomaly,) = anomalies
    assert anomaly.sheet == "S"
    assert anomaly.row == 3
    assert "ValueError: malformed cell" in anomaly.message


def test_with_version_none_keeps_state():
    state = ScanState(carried_version="8")
    assert state.with_version(None) is state
    assert state.with_version("9").carried_version == "9"
