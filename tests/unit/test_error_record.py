from __future__ import annotations

import json

from compat_matrix.models.error_record import ErrorRecord

"""Unit tests for the ErrorRecord model."""


def test_error_record_row_minus_one_support():
    rec = ErrorRecord.create("a.xlsx", "<FILE_LEVEL>", -1, "WORKBOOK_READ_ERROR", "not a zip file")
    assert rec.row == -1


def test_timestamp_is_utc_with_z_suffix():
    rec = ErrorRecord.create("a.xlsx", "Windows", 4, "ROW_SKIPPED", "x")
    assert rec.timestamp.endswith("Z")
    assert "+00:00" not in rec.timestamp


def test_json_line_keeps_non_ascii():
    rec = ErrorRecord.create("matrice.xlsx", "Compatibilité", 2, "ROW_SKIPPED", "✓ ?")
    line = rec.to_json_line()
    assert "Compatibilité" in line
    assert set(json.loads(line)) == {"timestamp", "file", "sheet", "row", "error_type", "message"}
