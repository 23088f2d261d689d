"""Core module exports."""

from codeatlas.core.errors import (
    AnalysisError,
    CliError,
    CodeAtlasError,
    ConfigError,
    ErrorCode,
    ScanError,
    StorageError,
)
from codeatlas.core.logging import configure_logging, get_logger
from codeatlas.core.progress import pluralize, progress, status

__all__ = [
    # Errors
    "AnalysisError",
    "CliError",
    "CodeAtlasError",
    "ConfigError",
    "ErrorCode",
    "ScanError",
    "StorageError",
    # Logging
    "configure_logging",
    "get_logger",
    # Progress
    "pluralize",
    "progress",
    "status",
]
