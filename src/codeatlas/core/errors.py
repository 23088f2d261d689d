"""CodeAtlas error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Storage
- 4xxx: Analysis
- 5xxx: Scan
- 6xxx: CLI
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Storage (3xxx)
    STORAGE_CONNECTION_FAILED = 3001
    STORAGE_CONSTRAINT_VIOLATION = 3002
    STORAGE_QUERY_FAILED = 3003
    STORAGE_NOT_FOUND = 3004

    # Analysis (4xxx)
    ANALYSIS_UNREADABLE = 4001
    ANALYSIS_UNDECODABLE = 4002

    # Scan (5xxx)
    SCAN_ABORTED = 5001
    SCAN_ROOT_INVALID = 5002

    # CLI (6xxx)
    CLI_INVALID_ARGUMENT = 6001
    CLI_BACKUP_PATH_REJECTED = 6002
    CLI_NO_REPOSITORY = 6003
    CLI_LEGACY_DATA_MISSING = 6004
    CLI_IO_FAILED = 6005


@dataclass(eq=False)
class CodeAtlasError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(CodeAtlasError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class StorageError(CodeAtlasError):
    """Errors raised by the storage access layer.

    Every storage error names the operation that failed in
    ``details["operation"]``. Constraint violations additionally name the
    entity (table) whose constraint was violated.
    """

    @property
    def operation(self) -> str | None:
        return self.details.get("operation")

    @property
    def entity(self) -> str | None:
        return self.details.get("entity")

    @property
    def is_constraint_violation(self) -> bool:
        return self.code == ErrorCode.STORAGE_CONSTRAINT_VIOLATION

    @classmethod
    def connection_failed(cls, path: str, reason: str) -> "StorageError":
        return cls(
            code=ErrorCode.STORAGE_CONNECTION_FAILED,
            message=f"Failed to open database at {path}: {reason}",
            retryable=True,
            details={"operation": "connect", "path": path, "reason": reason},
        )

    @classmethod
    def constraint_violation(
        cls, operation: str, entity: str | None, reason: str
    ) -> "StorageError":
        return cls(
            code=ErrorCode.STORAGE_CONSTRAINT_VIOLATION,
            message=f"{operation} violated a constraint on {entity or 'unknown'}: {reason}",
            details={"operation": operation, "entity": entity, "reason": reason},
        )

    @classmethod
    def query_failed(
        cls, operation: str, reason: str, *, retryable: bool = False
    ) -> "StorageError":
        return cls(
            code=ErrorCode.STORAGE_QUERY_FAILED,
            message=f"{operation} failed: {reason}",
            retryable=retryable,
            details={"operation": operation, "reason": reason},
        )

    @classmethod
    def not_found(cls, operation: str, entity: str, key: Any) -> "StorageError":
        return cls(
            code=ErrorCode.STORAGE_NOT_FOUND,
            message=f"{entity} not found: {key}",
            details={"operation": operation, "entity": entity, "key": str(key)},
        )


class AnalysisError(CodeAtlasError):
    """A single file could not be read or decoded.

    Caught per file by the indexer; never aborts a scan.
    """

    @classmethod
    def unreadable(cls, path: str, reason: str) -> "AnalysisError":
        return cls(
            code=ErrorCode.ANALYSIS_UNREADABLE,
            message=f"Cannot read {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def undecodable(cls, path: str, encoding: str = "utf-8") -> "AnalysisError":
        return cls(
            code=ErrorCode.ANALYSIS_UNDECODABLE,
            message=f"Cannot decode {path} as {encoding}",
            details={"path": path, "encoding": encoding},
        )


class ScanError(CodeAtlasError):
    """Scan-level fatal errors."""

    @classmethod
    def aborted(cls, scan_id: int | None, reason: str) -> "ScanError":
        return cls(
            code=ErrorCode.SCAN_ABORTED,
            message=f"Scan {scan_id} aborted: {reason}",
            details={"scan_id": scan_id, "reason": reason},
        )

    @classmethod
    def root_invalid(cls, path: str) -> "ScanError":
        return cls(
            code=ErrorCode.SCAN_ROOT_INVALID,
            message=f"Scan root is not a directory: {path}",
            details={"path": path},
        )


class CliError(CodeAtlasError):
    """User-facing command errors."""

    @classmethod
    def invalid_argument(cls, name: str, value: Any, reason: str) -> "CliError":
        return cls(
            code=ErrorCode.CLI_INVALID_ARGUMENT,
            message=f"Invalid {name} '{value}': {reason}",
            details={"argument": name, "value": str(value), "reason": reason},
        )

    @classmethod
    def backup_path_rejected(cls, path: str, reason: str) -> "CliError":
        return cls(
            code=ErrorCode.CLI_BACKUP_PATH_REJECTED,
            message=f"Backup path rejected ({reason}): {path}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def no_repository(cls) -> "CliError":
        return cls(
            code=ErrorCode.CLI_NO_REPOSITORY,
            message="No repository data found in database. Run 'atlas scan' first.",
        )

    @classmethod
    def legacy_data_missing(cls, path: str) -> "CliError":
        return cls(
            code=ErrorCode.CLI_LEGACY_DATA_MISSING,
            message=f"Legacy data file not found: {path}",
            details={"path": path},
        )

    @classmethod
    def io_failed(cls, path: str, reason: str) -> "CliError":
        return cls(
            code=ErrorCode.CLI_IO_FAILED,
            message=f"File operation failed on {path}: {reason}",
            details={"path": path, "reason": reason},
        )
