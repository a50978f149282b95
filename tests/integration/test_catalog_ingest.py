from __future__ import annotations

from pathlib import Path

import pytest
from conftest import CAMERA_COLUMNS, LENS_COLUMNS

from compat_matrix.models.sheet_kind import PipelineVariant
from compat_matrix.services.pipeline import StoreError, UploadedWorkbook, run_pipeline

"""Cameras & lenses: raw tables, curated projections and audit counters."""


def test_catalog_tables_and_projections(fake_store, catalog_xlsx: Path):
    result = run_pipeline(
        [UploadedWorkbook.from_path(catalog_xlsx)], PipelineVariant.CAMERAS_LENSES, fake_store.cursor()
    )
    body = result.to_response()
    assert (body["cameras"], body["lenses"]) == (3, 1)
    assert (body["camerasCurated"], body["lensesCurated"]) == (2, 1)

    raw = fake_store.rows("cameras")
    assert len(raw) == 3
    assert raw[0]["Internal notes"] == "x"
    curated = fake_store.rows("cameras_curated")
    assert {r["Model"] for r in curated} == {"EOS R5", "Z8"}
    assert {r["Lightroom Support"] for r in curated} == {"x", "y"}
    lens = fake_store.rows("lenses_curated")[0]
    assert lens["Model"] == "35mm F1.4 DG DN"
    assert lens["Release year"] == "2023"
    (audit,) = fake_store.rows("cameras_lenses_source_metadata")
    assert audit["records_count"] == 4
    assert audit["cameras_curated_count"] == 2


def test_catalog_sheets_split_across_uploads(fake_store, excel_factory):
    cams = excel_factory("cams.xlsx", {"Cameras": [CAMERA_COLUMNS, ["Sony", "A7 IV"] + [None] * 21]})
    lenses = excel_factory(
        "lenses.xlsx",
        {"Lenses": [LENS_COLUMNS, [None, None, None, "Sony", "FE 50mm"]], "Cameras (old)": [["Brand"], ["x"]]},
    )
    result = run_pipeline(
        [UploadedWorkbook.from_path(cams), UploadedWorkbook.from_path(lenses)],
        PipelineVariant.CAMERAS_LENSES,
        fake_store.cursor(),
    )
    assert result.scanned_sheets == 2
    assert result.skipped_sheets == 1
    assert [r["Model"] for r in fake_store.rows("cameras")] == ["A7 IV"]
    assert fake_store.rows("cameras_lenses_source_metadata")[0]["filename"] == "cams.xlsx, lenses.xlsx"


def test_missing_curated_source_column_fails_atomically(fake_store, excel_factory, catalog_xlsx: Path):
    cur = fake_store.cursor()
    run_pipeline([UploadedWorkbook.from_path(catalog_xlsx)], PipelineVariant.CAMERAS_LENSES, cur)

    # a cameras sheet without the "Support LR" column cannot feed the curated projection
    columns = [c for c in CAMERA_COLUMNS if c != "Support LR"]
    broken = excel_factory(
        "broken.xlsx",
        {"Cameras": [columns, ["Leica", "M11"] + [None] * (len(columns) - 2)], "Lenses": [LENS_COLUMNS, ["2024"]]},
    )
    with pytest.raises(StoreError):
        run_pipeline([UploadedWorkbook.from_path(broken)], PipelineVariant.CAMERAS_LENSES, cur)

    assert {r["Model"] for r in fake_store.rows("cameras")} == {"EOS R5", "Z8", None}
    assert len(fake_store.rows("cameras_curated")) == 2
