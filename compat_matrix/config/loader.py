from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.sheet_kind import PipelineVariant

"""Config loader.

Responsibilities:
- Load YAML config (default ``config/compat_matrix.yml``)
- Validate against ``config_schema.json`` (shipped inside the package)
- Apply defaults: batch_size=100, public_read=true, built-in table names

Every key is optional; an absent file is only an error when the path was
given explicitly (see ``load_config``).
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "DatabaseConfig",
    "PipelineConfig",
    "SCHEMA_PATH",
    "TableConfig",
    "default_config",
    "load_config",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/compat_matrix.yml")
DEFAULT_BATCH_SIZE = 100


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class DatabaseConfig:
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None
    sslmode: str | None = None


@dataclass(frozen=True)
class TableConfig:
    """Destination table names of one pipeline variant.

    The lenses / curated names are only used by the cameras_lenses variant.
    """
    table: str
    metadata_table: str
    lenses_table: str | None = None
    cameras_curated_table: str | None = None
    lenses_curated_table: str | None = None


DEFAULT_TABLES: dict[PipelineVariant, TableConfig] = {
    PipelineVariant.SOFTWARE: TableConfig(
        table="compatibility_records",
        metadata_table="software_source_metadata",
    ),
    PipelineVariant.DENOISING: TableConfig(
        table="denoising_technos_compatibility",
        metadata_table="denoising_technos_source_metadata",
    ),
    PipelineVariant.CAMERAS_LENSES: TableConfig(
        table="cameras",
        metadata_table="cameras_lenses_source_metadata",
        lenses_table="lenses",
        cameras_curated_table="cameras_curated",
        lenses_curated_table="lenses_curated",
    ),
}


@dataclass(frozen=True)
class PipelineConfig:
    batch_size: int = DEFAULT_BATCH_SIZE
    public_read: bool = True
    pipelines: dict[PipelineVariant, TableConfig] = field(default_factory=lambda: dict(DEFAULT_TABLES))
    database: DatabaseConfig = field(default_factory=DatabaseConfig)

    def tables(self, variant: PipelineVariant) -> TableConfig:
        return self.pipelines.get(variant, DEFAULT_TABLES[variant])


def default_config() -> PipelineConfig:
    return PipelineConfig()


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing / not JSON, or the data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _table_config(variant: PipelineVariant, raw: dict[str, Any]) -> TableConfig:
    base = DEFAULT_TABLES[variant]
    return TableConfig(
        table=raw.get("table", base.table),
        metadata_table=raw.get("metadata_table", base.metadata_table),
        lenses_table=raw.get("lenses_table", base.lenses_table),
        cameras_curated_table=raw.get("cameras_curated_table", base.cameras_curated_table),
        lenses_curated_table=raw.get("lenses_curated_table", base.lenses_curated_table),
    )


def load_config(path: Path, *, required: bool = True) -> PipelineConfig:
    if not path.exists():
        if required:
            raise ConfigError(f"config file not found: {path}")
        return default_config()
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")

    _validate_config_schema(data)

    pipelines_raw = data.get("pipelines") or {}
    pipelines = {
        variant: _table_config(variant, pipelines_raw.get(variant.value) or {})
        for variant in PipelineVariant
    }
    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
        sslmode=db_raw.get("sslmode"),
    )
    return PipelineConfig(
        batch_size=data.get("batch_size", DEFAULT_BATCH_SIZE),
        public_read=data.get("public_read", True),
        pipelines=pipelines,
        database=db,
    )
