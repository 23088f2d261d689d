"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (CODEATLAS__SECTION__KEY)
3. Repo YAML (.codeatlas/config.yaml)
4. Global YAML (~/.config/codeatlas/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    CODEATLAS__<SECTION>__<KEY>=<VALUE>

Examples:
    CODEATLAS__LOGGING__LEVEL=DEBUG
    CODEATLAS__DATABASE__PATH=/tmp/repo.db
    CODEATLAS__REPOSITORY__OWNER=acme
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        CODEATLAS__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. INFO logs one line per indexed file.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class DatabaseConfig(BaseModel):
    """Storage configuration.

    Env vars:
        CODEATLAS__DATABASE__PATH: Override the store location
        CODEATLAS__DATABASE__BUSY_TIMEOUT_MS: SQLite busy timeout
    """

    path: str | None = Field(
        default=None,
        description="Path of the SQLite store. Default: .codeatlas/repo.db in the repo.",
    )
    busy_timeout_ms: int = Field(
        default=30000,
        description="How long a writer waits on a locked database before failing.",
    )

    @field_validator("busy_timeout_ms")
    @classmethod
    def validate_busy_timeout(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"busy_timeout_ms must be >= 0, got {v}")
        return v


class IndexConfig(BaseModel):
    """Scanner configuration.

    Env vars:
        CODEATLAS__INDEX__MAX_FILE_SIZE_MB: Skip files larger than this
        CODEATLAS__INDEX__REPLACE_CHILD_ROWS: Replace or accumulate child rows on re-scan
    """

    max_file_size_mb: int = Field(
        default=10,
        description="Skip files larger than this (MB).",
    )
    extra_ignore_patterns: list[str] = Field(
        default_factory=list,
        description="Additional glob patterns (relative to the repo root) to exclude.",
    )
    replace_child_rows: bool = Field(
        default=True,
        description="Delete a file's functions/imports/exports/dependencies before "
        "re-inserting them. False keeps every scan's rows (accumulate).",
    )

    @field_validator("max_file_size_mb")
    @classmethod
    def validate_max_file_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_file_size_mb must be >= 1, got {v}")
        return v


class RepositoryConfig(BaseModel):
    """Repository identity.

    Explicit values win. Unset values are detected from the git remote
    'origin'; when detection fails, default_owner and the directory name are used.

    Env vars:
        CODEATLAS__REPOSITORY__OWNER
        CODEATLAS__REPOSITORY__NAME
        CODEATLAS__REPOSITORY__URL
    """

    owner: str | None = None
    name: str | None = None
    url: str | None = None
    remote: str = Field(default="origin", description="Git remote used for detection.")
    default_owner: str = Field(default="local", description="Owner used when detection fails.")
    version: str = Field(default="1.0.0", description="Version stamped on the repository row.")


class OutputConfig(BaseModel):
    """Generated artifact configuration.

    Env vars:
        CODEATLAS__OUTPUT__DATA_DIR: Artifact directory
        CODEATLAS__OUTPUT__BACKUP_DIR: Backup directory
    """

    data_dir: str | None = Field(
        default=None,
        description="Directory for generated JSON/Markdown artifacts. Default: .codeatlas/data",
    )
    backup_dir: str | None = Field(
        default=None,
        description="Directory for store backups. Default: .codeatlas/backups",
    )
    top_n: int = Field(default=20, description="Number of files in the complexity report.")

    @field_validator("top_n")
    @classmethod
    def validate_top_n(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"top_n must be >= 1, got {v}")
        return v


class CodeAtlasConfig(BaseModel):
    """Root configuration model."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    index: IndexConfig = Field(default_factory=IndexConfig)
    repository: RepositoryConfig = Field(default_factory=RepositoryConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
