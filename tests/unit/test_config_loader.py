from __future__ import annotations

from pathlib import Path

import pytest

from compat_matrix.config.loader import ConfigError, PipelineConfig, load_config
from compat_matrix.models.sheet_kind import PipelineVariant


def test_load_sample_config(write_config: Path):
    cfg = load_config(write_config)
    assert isinstance(cfg, PipelineConfig)
    assert cfg.batch_size == 2
    assert cfg.public_read is True
    assert cfg.database.host == "localhost"
    assert cfg.database.port == 5432
    assert cfg.tables(PipelineVariant.SOFTWARE).table == "compatibility_records"


def test_unlisted_variants_keep_default_tables(write_config: Path):
    cfg = load_config(write_config)
    denoising = cfg.tables(PipelineVariant.DENOISING)
    assert denoising.table == "denoising_technos_compatibility"
    assert denoising.metadata_table == "denoising_technos_source_metadata"
    catalogs = cfg.tables(PipelineVariant.CAMERAS_LENSES)
    assert (catalogs.table, catalogs.lenses_table) == ("cameras", "lenses")
    assert catalogs.cameras_curated_table == "cameras_curated"


def test_partial_pipeline_override(temp_workdir: Path):
    p = temp_workdir / "config" / "custom.yml"
    p.write_text("pipelines:\n  cameras_lenses:\n    lenses_table: lens_catalog\n", encoding="utf-8")
    cfg = load_config(p)
    catalogs = cfg.tables(PipelineVariant.CAMERAS_LENSES)
    assert catalogs.lenses_table == "lens_catalog"
    assert catalogs.table == "cameras"
    assert cfg.batch_size == 100


def test_missing_file_required(temp_workdir: Path):
    with pytest.raises(ConfigError, match="config file not found"):
        load_config(temp_workdir / "config" / "nope.yml")


def test_missing_file_optional_returns_defaults(temp_workdir: Path):
    cfg = load_config(temp_workdir / "config" / "nope.yml", required=False)
    assert cfg == PipelineConfig()


def test_empty_file_is_defaults(temp_workdir: Path):
    p = temp_workdir / "config" / "empty.yml"
    p.write_text("", encoding="utf-8")
    assert load_config(p).batch_size == 100


def test_invalid_yaml(temp_workdir: Path):
    p = temp_workdir / "config" / "broken.yml"
    p.write_text("batch_size: [1, 2\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(p)


def test_root_must_be_mapping(temp_workdir: Path):
    p = temp_workdir / "config" / "list.yml"
    p.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(p)


@pytest.mark.parametrize(
    "body",
    [
        "batch_size: 0\n",
        "batch_size: many\n",
        "unknown_key: 1\n",
        "pipelines:\n  software:\n    table: Drop Table\n",
        "pipelines:\n  software:\n    lenses_table: lenses\n",
        "database:\n  sslmode: sometimes\n",
    ],
)
def test_schema_violations(temp_workdir: Path, body: str):
    p = temp_workdir / "config" / "bad.yml"
    p.write_text(body, encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(p)
