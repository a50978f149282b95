from __future__ import annotations

import re
from pathlib import Path

from compat_matrix.cli import main as cli_main

"""SUMMARY 行フォーマット契約テスト."""

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY variant=(software|denoising|cameras_lenses) files=([0-9]+) sheets=([0-9]+) "
    r"skipped_sheets=([0-9]+) records=([0-9]+) curated=([0-9]+) anomalies=([0-9]+) "
    r"elapsed_sec=([0-9]+(\.[0-9]+)?)$"
)


def test_summary_pattern_example_line():
    line = (
        "SUMMARY variant=software files=2 sheets=7 skipped_sheets=1 records=431 "
        "curated=402 anomalies=0 elapsed_sec=0.84"
    )
    assert SUMMARY_PATTERN.match(line)


def test_cli_emits_exactly_one_summary_line(software_xlsx: Path, capsys):
    assert cli_main(["ingest", "--dry-run", str(software_xlsx)]) == 0
    lines = [line for line in capsys.readouterr().out.splitlines() if line.startswith("SUMMARY")]
    assert len(lines) == 1
    m = SUMMARY_PATTERN.match(lines[0])
    assert m, lines[0]
    assert m.group(1) == "software"
    assert (m.group(5), m.group(6)) == ("13", "12")


def test_no_summary_on_failure(temp_workdir: Path, capsys):
    assert cli_main(["ingest", "--variant", "cameras_lenses", "--dry-run"]) == 2
    assert "SUMMARY" not in capsys.readouterr().out
