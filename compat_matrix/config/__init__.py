from .loader import (
    DEFAULT_CONFIG_PATH,
    ConfigError,
    DatabaseConfig,
    PipelineConfig,
    TableConfig,
    default_config,
    load_config,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "ConfigError",
    "DatabaseConfig",
    "PipelineConfig",
    "TableConfig",
    "default_config",
    "load_config",
]
