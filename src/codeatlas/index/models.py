"""SQLModel definitions for the repository code index.

Single source of truth for the relational tables. Full-text indexes,
triggers and views that SQLModel cannot express live in
``codeatlas.index._internal.db.schema``.

Ownership: RepositoryMetadata is the root. Every other row is owned
transitively by a repository and cascade-deleted with it. FileRecord is the
hub that functions, imports, exports, dependencies and component tags hang off.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, UniqueConstraint
from sqlmodel import Field, SQLModel


def _now() -> datetime:
    return datetime.now(UTC)


# ============================================================================
# ENUMS
# ============================================================================


class ScanKind(str, Enum):
    """How a scan covered the tree."""

    FULL = "full"
    INCREMENTAL = "incremental"
    PARTIAL = "partial"
    MIGRATION = "migration"  # Loaded from legacy JSON artifacts


class ScanStatus(str, Enum):
    """Scan lifecycle. A scan starts RUNNING and is sealed once."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    PARTIAL = "partial"


class ImportKind(str, Enum):
    DEFAULT = "default"
    NAMED = "named"
    NAMESPACE = "namespace"
    DYNAMIC = "dynamic"


class ExportKind(str, Enum):
    DEFAULT = "default"
    NAMED = "named"
    NAMESPACE = "namespace"


class DependencyKind(str, Enum):
    IMPORT = "import"
    REQUIRE = "require"
    DYNAMIC = "dynamic"


class ComponentType(str, Enum):
    """Fixed component taxonomy used to tag files."""

    UI = "ui"
    LOGIC = "logic"
    DATA = "data"
    INFRASTRUCTURE = "infrastructure"
    DOCUMENTATION = "documentation"
    TEST = "test"
    CONFIG = "config"


def _check_in(column: str, enum_cls: type[Enum], name: str) -> CheckConstraint:
    values = ", ".join(f"'{member.value}'" for member in enum_cls)
    return CheckConstraint(f"{column} IN ({values})", name=name)


# ============================================================================
# TABLES
# ============================================================================


class RepositoryMetadata(SQLModel, table=True):
    """One row per (owner, name). Created on first scan, never deleted by a scan."""

    __tablename__ = "repository_metadata"
    __table_args__ = (
        UniqueConstraint("repo_owner", "repo_name", name="uq_repository_owner_name"),
        _check_in("scan_type", ScanKind, "ck_repository_scan_type"),
    )

    id: int | None = Field(default=None, primary_key=True)
    repo_name: str
    repo_owner: str
    repo_url: str | None = None
    version: str = "1.0.0"
    scan_type: str | None = None
    total_files: int = 0
    total_lines: int = 0
    last_updated: datetime | None = None
    created_at: datetime = Field(default_factory=_now)


class ScanHistory(SQLModel, table=True):
    """Append-only audit trail of scans."""

    __tablename__ = "scan_history"
    __table_args__ = (
        _check_in("status", ScanStatus, "ck_scan_status"),
        _check_in("scan_type", ScanKind, "ck_scan_type"),
    )

    id: int | None = Field(default=None, primary_key=True)
    repo_metadata_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("repository_metadata.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    scan_type: str = ScanKind.FULL.value
    started_at: datetime = Field(default_factory=_now)
    completed_at: datetime | None = None
    files_scanned: int = 0
    lines_scanned: int = 0
    errors_count: int = 0
    status: str = Field(default=ScanStatus.RUNNING.value, index=True)


class FileRecord(SQLModel, table=True):
    """Indexed file, unique per (repository, path)."""

    __tablename__ = "files"
    __table_args__ = (UniqueConstraint("repo_metadata_id", "path", name="uq_files_repo_path"),)

    id: int | None = Field(default=None, primary_key=True)
    repo_metadata_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("repository_metadata.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    name: str
    path: str = Field(index=True)
    file_type: str | None = Field(default=None, index=True)
    extension: str | None = None
    size_bytes: int = 0
    lines_count: int = 0
    code_lines: int = 0
    comment_lines: int = 0
    blank_lines: int = 0
    hash: str | None = Field(default=None, index=True)
    purpose: str | None = None
    complexity_score: float = 0
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class FunctionRecord(SQLModel, table=True):
    """Function discovered in a script file. Line numbers are 1-indexed, inclusive."""

    __tablename__ = "functions"
    __table_args__ = (CheckConstraint("complexity >= 1", name="ck_functions_complexity"),)

    id: int | None = Field(default=None, primary_key=True)
    file_id: int = Field(
        sa_column=Column(
            Integer, ForeignKey("files.id", ondelete="CASCADE"), nullable=False, index=True
        )
    )
    name: str = Field(index=True)
    signature: str | None = None
    line_start: int
    line_end: int
    is_async: bool = False
    is_exported: bool = Field(default=False, index=True)
    is_arrow_function: bool = False
    complexity: int = 1
    purpose: str | None = None
    created_at: datetime = Field(default_factory=_now)


class ImportRecord(SQLModel, table=True):
    """Import statement. imported_items is a JSON array kept in source order."""

    __tablename__ = "imports"
    __table_args__ = (_check_in("import_type", ImportKind, "ck_imports_type"),)

    id: int | None = Field(default=None, primary_key=True)
    file_id: int = Field(
        sa_column=Column(
            Integer, ForeignKey("files.id", ondelete="CASCADE"), nullable=False, index=True
        )
    )
    imported_from: str = Field(index=True)
    imported_items: str | None = None
    import_type: str = ImportKind.DEFAULT.value
    line_number: int
    is_external: bool = False
    created_at: datetime = Field(default_factory=_now)

    def get_items(self) -> list[str]:
        """Parse imported_items JSON to list."""
        if self.imported_items is None:
            return []
        result: list[str] = json.loads(self.imported_items)
        return result


class ExportRecord(SQLModel, table=True):
    """Exported symbol."""

    __tablename__ = "exports"
    __table_args__ = (_check_in("export_type", ExportKind, "ck_exports_type"),)

    id: int | None = Field(default=None, primary_key=True)
    file_id: int = Field(
        sa_column=Column(
            Integer, ForeignKey("files.id", ondelete="CASCADE"), nullable=False, index=True
        )
    )
    exported_name: str = Field(index=True)
    export_type: str = ExportKind.NAMED.value
    line_number: int
    ref_to: str | None = None
    created_at: datetime = Field(default_factory=_now)


class Dependency(SQLModel, table=True):
    """Directed edge between files. to_file_id is NULL when unresolved."""

    __tablename__ = "dependencies"
    __table_args__ = (
        _check_in("dependency_type", DependencyKind, "ck_dependencies_type"),
        CheckConstraint(
            "(to_file_id IS NULL AND is_resolved = 0) "
            "OR (to_file_id IS NOT NULL AND is_resolved = 1)",
            name="ck_dependencies_resolved",
        ),
    )

    id: int | None = Field(default=None, primary_key=True)
    from_file_id: int = Field(
        sa_column=Column(
            Integer, ForeignKey("files.id", ondelete="CASCADE"), nullable=False, index=True
        )
    )
    to_file_id: int | None = Field(
        default=None,
        sa_column=Column(
            Integer, ForeignKey("files.id", ondelete="SET NULL"), nullable=True, index=True
        ),
    )
    dependency_type: str = DependencyKind.IMPORT.value
    import_path: str
    is_resolved: bool = False
    created_at: datetime = Field(default_factory=_now)


class Component(SQLModel, table=True):
    """Component category from the fixed taxonomy."""

    __tablename__ = "components"
    __table_args__ = (_check_in("type", ComponentType, "ck_components_type"),)

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(unique=True)
    type: str = Field(index=True)
    description: str | None = None
    created_at: datetime = Field(default_factory=_now)


class FileComponent(SQLModel, table=True):
    """Many-to-many join between files and components."""

    __tablename__ = "file_components"
    __table_args__ = (UniqueConstraint("file_id", "component_id", name="uq_file_components"),)

    id: int | None = Field(default=None, primary_key=True)
    file_id: int = Field(
        sa_column=Column(
            Integer, ForeignKey("files.id", ondelete="CASCADE"), nullable=False, index=True
        )
    )
    component_id: int = Field(
        sa_column=Column(
            Integer, ForeignKey("components.id", ondelete="CASCADE"), nullable=False, index=True
        )
    )
    relevance_score: float = 1.0
    created_at: datetime = Field(default_factory=_now)


class Language(SQLModel, table=True):
    """Per-repository language aggregate, one row per (repository, name)."""

    __tablename__ = "languages"
    __table_args__ = (UniqueConstraint("repo_metadata_id", "name", name="uq_languages_repo_name"),)

    id: int | None = Field(default=None, primary_key=True)
    repo_metadata_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("repository_metadata.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    name: str
    file_count: int = 0
    total_lines: int = 0
    percentage: float = 0
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


# ============================================================================
# NON-TABLE MODELS (Pydantic only, for data transfer)
# ============================================================================


class FileData(SQLModel):
    """Attributes written by upsert_file (everything except identity)."""

    name: str
    path: str
    file_type: str | None = None
    extension: str | None = None
    size_bytes: int = 0
    lines_count: int = 0
    code_lines: int = 0
    comment_lines: int = 0
    blank_lines: int = 0
    hash: str | None = None
    purpose: str | None = None
    complexity_score: float = 0


class FunctionData(SQLModel):
    """Function found by the analyzer, before it has a file_id."""

    name: str
    signature: str | None = None
    line_start: int
    line_end: int
    is_async: bool = False
    is_exported: bool = False
    is_arrow_function: bool = False
    complexity: int = 1
    purpose: str | None = None


class ImportData(SQLModel):
    """Import statement found by the analyzer."""

    imported_from: str
    imported_items: list[str] = Field(default_factory=list)
    import_type: ImportKind = ImportKind.DEFAULT
    line_number: int
    is_external: bool = False


class ExportData(SQLModel):
    """Export statement found by the analyzer."""

    exported_name: str
    export_type: ExportKind = ExportKind.NAMED
    line_number: int
    ref_to: str | None = None


class SearchResults(SQLModel):
    """Full-text matches. Files and functions are ranked independently."""

    files: list[dict] = Field(default_factory=list)
    functions: list[dict] = Field(default_factory=list)


class DependencyEdge(SQLModel):
    """Edge of the dependency graph, joined to paths."""

    id: int
    from_file: str
    to_file: str | None = None
    dependency_type: str
    import_path: str
    is_resolved: bool


class ComplexityEntry(SQLModel):
    path: str
    name: str
    file_complexity: float
    function_count: int
    avg_function_complexity: float | None = None


class DependencyReportEntry(SQLModel):
    path: str
    name: str
    outgoing_deps: int
    incoming_deps: int


class FileStats(SQLModel):
    total_files: int = 0
    total_lines: int = 0
    total_code_lines: int = 0
    total_size: int = 0
    avg_complexity: float = 0


class FunctionStats(SQLModel):
    total_functions: int = 0
    exported_functions: int = 0
    async_functions: int = 0
    avg_complexity: float = 0


class LanguageStat(SQLModel):
    name: str
    file_count: int
    total_lines: int
    percentage: float


class ComponentStat(SQLModel):
    name: str
    type: str
    file_count: int


class RepositoryMetrics(SQLModel):
    """Rollup of file, function, language and component statistics."""

    files: FileStats = Field(default_factory=FileStats)
    functions: FunctionStats = Field(default_factory=FunctionStats)
    languages: list[LanguageStat] = Field(default_factory=list)
    components: list[ComponentStat] = Field(default_factory=list)
