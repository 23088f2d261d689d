"""Config module exports."""

from codeatlas.config.loader import AtlasPaths, get_atlas_paths, load_config
from codeatlas.config.models import (
    CodeAtlasConfig,
    DatabaseConfig,
    IndexConfig,
    LoggingConfig,
    OutputConfig,
    RepositoryConfig,
)

__all__ = [
    "load_config",
    "get_atlas_paths",
    "AtlasPaths",
    "CodeAtlasConfig",
    "DatabaseConfig",
    "IndexConfig",
    "LoggingConfig",
    "OutputConfig",
    "RepositoryConfig",
]
