"""Storage access layer: the one mutation/query boundary over the schema.

Every write runs inside a BEGIN IMMEDIATE transaction. Outside of
``transaction()`` each write method commits on its own; inside it, all
writes share one session and commit (or roll back) together.

Every SQLAlchemy failure surfaces as a StorageError carrying the operation
name; constraint violations are distinguishable via
``StorageError.is_constraint_violation``.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import structlog
from sqlalchemy import Integer, delete, func, or_, text, update
from sqlmodel import Session, col, select

from codeatlas.config.constants import FILES_SORT_FIELDS
from codeatlas.core.errors import StorageError
from codeatlas.index._internal.db import Database, storage_operation
from codeatlas.index._internal.db.database import DEFAULT_BUSY_TIMEOUT_MS
from codeatlas.index.models import (
    Component,
    ComplexityEntry,
    ComponentStat,
    ComponentType,
    Dependency,
    DependencyEdge,
    DependencyKind,
    DependencyReportEntry,
    ExportData,
    ExportRecord,
    FileComponent,
    FileData,
    FileRecord,
    FileStats,
    FunctionData,
    FunctionRecord,
    FunctionStats,
    ImportData,
    ImportRecord,
    Language,
    LanguageStat,
    RepositoryMetadata,
    RepositoryMetrics,
    ScanHistory,
    ScanKind,
    ScanStatus,
    SearchResults,
)

logger = structlog.get_logger()

_FTS_TOKEN_RE = re.compile(r"\w+", re.UNICODE)


def _now() -> datetime:
    return datetime.now(UTC)


def row_id(row: Any, operation: str) -> int:
    """Primary key of a persisted row; StorageError when it was never assigned."""
    if row.id is None:
        raise StorageError.query_failed(operation, f"{type(row).__name__} row has no id")
    return int(row.id)



def _fts_query(term: str) -> str | None:
    """Quote each word so user input never reaches the FTS5 query parser raw."""
    tokens = _FTS_TOKEN_RE.findall(term)
    if not tokens:
        return None
    return " ".join(f'"{token}"' for token in tokens)


class RepositoryStore:
    """Typed operations over the code index database.

    Usage::

        store = RepositoryStore(db_path)
        store.connect()
        repo = store.get_or_create_repository("acme", "widgets")
        with store.transaction():
            file_id = store.upsert_file(repo.id, FileData(name="a.js", path="a.js"))
            store.add_function(file_id, FunctionData(name="f", line_start=1, line_end=1))
        store.close()
    """

    def __init__(self, db_path: Path, *, busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS) -> None:
        self.db_path = db_path
        self._busy_timeout_ms = busy_timeout_ms
        self._db: Database | None = None
        self._tx: Session | None = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def connect(self, *, create_schema: bool = True) -> None:
        """Open the store. Creates tables, FTS indexes, views and seed rows if missing."""
        if self._db is not None:
            return
        db = Database(self.db_path, busy_timeout_ms=self._busy_timeout_ms)
        try:
            db.connect()
            if create_schema:
                db.create_all()
        except StorageError:
            db.dispose()
            raise
        self._db = db
        logger.debug("store_connected", path=str(self.db_path))

    def close(self) -> None:
        """Release the engine. Safe to call more than once."""
        if self._db is None:
            return
        self._db.dispose()
        self._db = None
        logger.debug("store_closed", path=str(self.db_path))

    def __enter__(self) -> RepositoryStore:
        self.connect()
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def is_connected(self) -> bool:
        return self._db is not None

    @property
    def db(self) -> Database:
        if self._db is None:
            raise StorageError.connection_failed(str(self.db_path), "store is not connected")
        return self._db

    @contextmanager
    def transaction(self) -> Iterator[RepositoryStore]:
        """Run a block of writes atomically.

        Commits when the block exits normally; rolls back and re-raises on any
        exception. Nested calls join the outer transaction.
        """
        if self._tx is not None:
            yield self
            return
        with storage_operation("transaction"), self.db.immediate_transaction() as session:
            self._tx = session
            try:
                yield self
                session.flush()
            finally:
                self._tx = None

    @contextmanager
    def _write(self, operation: str, entity: str | None = None) -> Iterator[Session]:
        with storage_operation(operation, entity):
            if self._tx is not None:
                yield self._tx
                self._tx.flush()
            else:
                with self.db.immediate_transaction() as session:
                    yield session

    @contextmanager
    def _read(self, operation: str) -> Iterator[Session]:
        with storage_operation(operation):
            if self._tx is not None:
                yield self._tx
            else:
                with self.db.session() as session:
                    yield session

    def backup(self, destination: Path) -> Path:
        """Write a full copy of the store to destination."""
        destination.parent.mkdir(parents=True, exist_ok=True)
        self.db.backup_to(destination)
        return destination

    # =========================================================================
    # Repository and scans
    # =========================================================================

    def get_or_create_repository(
        self, owner: str, name: str, url: str | None = None, *, version: str = "1.0.0"
    ) -> RepositoryMetadata:
        """Return the (owner, name) repository, inserting it on first sight."""
        with self._write("get_or_create_repository", "repository_metadata") as session:
            stmt = select(RepositoryMetadata).where(
                RepositoryMetadata.repo_owner == owner,
                RepositoryMetadata.repo_name == name,
            )
            repo = session.exec(stmt).first()
            if repo is None:
                repo = RepositoryMetadata(
                    repo_owner=owner, repo_name=name, repo_url=url, version=version
                )
                session.add(repo)
                session.flush()
                logger.info("repository_created", owner=owner, name=name, repo_id=repo.id)
            elif url and repo.repo_url != url:
                repo.repo_url = url
                session.add(repo)
                session.flush()
            return repo

    def get_repository(self, repo_id: int) -> RepositoryMetadata | None:
        with self._read("get_repository") as session:
            return session.get(RepositoryMetadata, repo_id)

    def get_latest_repository(self) -> RepositoryMetadata | None:
        """Most recently scanned repository (falls back to most recently created)."""
        with self._read("get_latest_repository") as session:
            stmt = select(RepositoryMetadata).order_by(
                col(RepositoryMetadata.last_updated).is_(None),
                col(RepositoryMetadata.last_updated).desc(),
                col(RepositoryMetadata.id).desc(),
            )
            return session.exec(stmt).first()

    def update_repository_stats(
        self,
        repo_id: int,
        total_files: int,
        total_lines: int,
        scan_type: ScanKind = ScanKind.FULL,
    ) -> None:
        with self._write("update_repository_stats", "repository_metadata") as session:
            repo = session.get(RepositoryMetadata, repo_id)
            if repo is None:
                raise StorageError.not_found("update_repository_stats", "repository", repo_id)
            repo.total_files = total_files
            repo.total_lines = total_lines
            repo.scan_type = scan_type.value
            repo.last_updated = _now()
            session.add(repo)

    def start_scan(self, repo_id: int, kind: ScanKind = ScanKind.FULL) -> int:
        """Record a scan in RUNNING state and return its id."""
        with self._write("start_scan", "scan_history") as session:
            scan = ScanHistory(
                repo_metadata_id=repo_id, scan_type=kind.value, status=ScanStatus.RUNNING.value
            )
            session.add(scan)
            session.flush()
            return row_id(scan, "start_scan")

    def _seal_scan(
        self,
        operation: str,
        scan_id: int,
        status: ScanStatus,
        files_scanned: int | None,
        lines_scanned: int | None,
        errors_count: int | None,
    ) -> None:
        with self._write(operation, "scan_history") as session:
            scan = session.get(ScanHistory, scan_id)
            if scan is None:
                raise StorageError.not_found(operation, "scan", scan_id)
            if scan.status != ScanStatus.RUNNING.value:
                raise StorageError.query_failed(
                    operation, f"scan {scan_id} is already {scan.status}"
                )
            scan.status = status.value
            scan.completed_at = _now()
            if files_scanned is not None:
                scan.files_scanned = files_scanned
            if lines_scanned is not None:
                scan.lines_scanned = lines_scanned
            if errors_count is not None:
                scan.errors_count = errors_count
            session.add(scan)

    def complete_scan(
        self, scan_id: int, files_scanned: int, lines_scanned: int, errors_count: int = 0
    ) -> None:
        self._seal_scan(
            "complete_scan",
            scan_id,
            ScanStatus.COMPLETED,
            files_scanned,
            lines_scanned,
            errors_count,
        )

    def fail_scan(
        self,
        scan_id: int,
        files_scanned: int | None = None,
        lines_scanned: int | None = None,
        errors_count: int | None = None,
    ) -> None:
        self._seal_scan(
            "fail_scan", scan_id, ScanStatus.FAILED, files_scanned, lines_scanned, errors_count
        )

    def get_scan(self, scan_id: int) -> ScanHistory | None:
        with self._read("get_scan") as session:
            return session.get(ScanHistory, scan_id)

    def list_scans(self, repo_id: int) -> list[ScanHistory]:
        with self._read("list_scans") as session:
            stmt = (
                select(ScanHistory)
                .where(ScanHistory.repo_metadata_id == repo_id)
                .order_by(col(ScanHistory.id))
            )
            return list(session.exec(stmt).all())

    # =========================================================================
    # Files and their children
    # =========================================================================

    def upsert_file(self, repo_id: int, data: FileData) -> int:
        """Insert or update the file matched by (repo_id, path). Identity is preserved."""
        with self._write("upsert_file", "files") as session:
            stmt = select(FileRecord).where(
                FileRecord.repo_metadata_id == repo_id, FileRecord.path == data.path
            )
            record = session.exec(stmt).first()
            if record is None:
                record = FileRecord(repo_metadata_id=repo_id, **data.model_dump())
            else:
                for key, value in data.model_dump().items():
                    setattr(record, key, value)
            session.add(record)
            session.flush()
            return row_id(record, "upsert_file")

    def add_function(self, file_id: int, data: FunctionData) -> int:
        with self._write("add_function", "functions") as session:
            record = FunctionRecord(file_id=file_id, **data.model_dump())
            session.add(record)
            session.flush()
            return row_id(record, "add_function")

    def add_import(self, file_id: int, data: ImportData) -> int:
        with self._write("add_import", "imports") as session:
            record = ImportRecord(
                file_id=file_id,
                imported_from=data.imported_from,
                imported_items=json.dumps(data.imported_items),
                import_type=data.import_type.value,
                line_number=data.line_number,
                is_external=data.is_external,
            )
            session.add(record)
            session.flush()
            return row_id(record, "add_import")

    def add_export(self, file_id: int, data: ExportData) -> int:
        with self._write("add_export", "exports") as session:
            record = ExportRecord(
                file_id=file_id,
                exported_name=data.exported_name,
                export_type=data.export_type.value,
                line_number=data.line_number,
                ref_to=data.ref_to,
            )
            session.add(record)
            session.flush()
            return row_id(record, "add_export")

    def add_dependency(
        self,
        from_file_id: int,
        to_file_id: int | None,
        kind: DependencyKind | str,
        import_path: str,
    ) -> int:
        """Record an edge. is_resolved is derived from to_file_id."""
        kind_value = kind.value if isinstance(kind, DependencyKind) else kind
        with self._write("add_dependency", "dependencies") as session:
            record = Dependency(
                from_file_id=from_file_id,
                to_file_id=to_file_id,
                dependency_type=kind_value,
                import_path=import_path,
                is_resolved=to_file_id is not None,
            )
            session.add(record)
            session.flush()
            return row_id(record, "add_dependency")

    def resolve_dependency(self, dependency_id: int, to_file_id: int) -> None:
        """Point a previously unresolved edge at its target file."""
        with self._write("resolve_dependency", "dependencies") as session:
            session.connection().execute(
                update(Dependency)
                .where(col(Dependency.id) == dependency_id)
                .values(to_file_id=to_file_id, is_resolved=True)
            )

    def clear_file_children(self, file_id: int) -> dict[str, int]:
        """Delete a file's functions, imports, exports, outgoing edges and component tags."""
        counts: dict[str, int] = {}
        with self._write("clear_file_children") as session:
            conn = session.connection()
            for label, model, column in (
                ("functions", FunctionRecord, FunctionRecord.file_id),
                ("imports", ImportRecord, ImportRecord.file_id),
                ("exports", ExportRecord, ExportRecord.file_id),
                ("dependencies", Dependency, Dependency.from_file_id),
                ("components", FileComponent, FileComponent.file_id),
            ):
                result = conn.execute(delete(model).where(col(column) == file_id))
                counts[label] = int(result.rowcount)
        return counts

    def tag_file_component(self, file_id: int, component_type: ComponentType) -> None:
        """Tag a file with the taxonomy component of this type. Re-tagging is a no-op."""
        with self._write("tag_file_component", "file_components") as session:
            component = session.exec(
                select(Component)
                .where(Component.type == component_type.value)
                .order_by(col(Component.id))
            ).first()
            if component is None:
                raise StorageError.not_found(
                    "tag_file_component", "component", component_type.value
                )
            existing = session.exec(
                select(FileComponent).where(
                    FileComponent.file_id == file_id,
                    FileComponent.component_id == component.id,
                )
            ).first()
            if existing is None:
                component_id = row_id(component, "tag_file_component")
                session.add(FileComponent(file_id=file_id, component_id=component_id))

    def prune_missing_files(self, repo_id: int, keep_paths: set[str]) -> int:
        """Delete files of the repository whose path is not in keep_paths."""
        with self._write("prune_missing_files", "files") as session:
            paths = session.exec(
                select(FileRecord.path).where(FileRecord.repo_metadata_id == repo_id)
            ).all()
            stale = [p for p in paths if p not in keep_paths]
            if stale:
                session.connection().execute(
                    delete(FileRecord).where(
                        col(FileRecord.repo_metadata_id) == repo_id,
                        col(FileRecord.path).in_(stale),
                    )
                )
        if stale:
            logger.info("stale_files_pruned", repo_id=repo_id, count=len(stale))
        return len(stale)

    def delete_file(self, repo_id: int, path: str) -> bool:
        with self._write("delete_file", "files") as session:
            result = session.connection().execute(
                delete(FileRecord).where(
                    col(FileRecord.repo_metadata_id) == repo_id, col(FileRecord.path) == path
                )
            )
            return bool(result.rowcount)

    def delete_function(self, function_id: int) -> bool:
        with self._write("delete_function", "functions") as session:
            result = session.connection().execute(
                delete(FunctionRecord).where(col(FunctionRecord.id) == function_id)
            )
            return bool(result.rowcount)

    # =========================================================================
    # Languages
    # =========================================================================

    def upsert_language(
        self, repo_id: int, name: str, file_count: int, total_lines: int, percentage: float
    ) -> None:
        with self._write("upsert_language", "languages") as session:
            record = session.exec(
                select(Language).where(Language.repo_metadata_id == repo_id, Language.name == name)
            ).first()
            if record is None:
                record = Language(repo_metadata_id=repo_id, name=name)
            record.file_count = file_count
            record.total_lines = total_lines
            record.percentage = percentage
            session.add(record)

    def prune_languages(self, repo_id: int, keep_names: set[str]) -> int:
        """Drop language rows for labels no longer present in the repository."""
        with self._write("prune_languages", "languages") as session:
            stmt = delete(Language).where(col(Language.repo_metadata_id) == repo_id)
            if keep_names:
                stmt = stmt.where(col(Language.name).not_in(keep_names))
            result = session.connection().execute(stmt)
            return int(result.rowcount)

    def get_language_stats(self, repo_id: int) -> list[LanguageStat]:
        with self._read("get_language_stats") as session:
            rows = session.exec(
                select(Language)
                .where(Language.repo_metadata_id == repo_id)
                .order_by(col(Language.percentage).desc(), col(Language.name))
            ).all()
            return [
                LanguageStat(
                    name=row.name,
                    file_count=row.file_count,
                    total_lines=row.total_lines,
                    percentage=row.percentage,
                )
                for row in rows
            ]

    # =========================================================================
    # File and function reads
    # =========================================================================

    def get_file_by_path(self, repo_id: int, path: str) -> FileRecord | None:
        with self._read("get_file_by_path") as session:
            return session.exec(
                select(FileRecord).where(
                    FileRecord.repo_metadata_id == repo_id, FileRecord.path == path
                )
            ).first()

    def get_file_paths(self, repo_id: int) -> dict[str, int]:
        """Map of path -> file id for every file of the repository."""
        with self._read("get_file_paths") as session:
            rows = session.exec(
                select(FileRecord.path, FileRecord.id).where(FileRecord.repo_metadata_id == repo_id)
            ).all()
            return {path: file_id for path, file_id in rows if file_id is not None}

    def get_all_files(self, repo_id: int) -> list[dict[str, Any]]:
        """Every file with child counts, from the complete-file view."""
        with self._read("get_all_files") as session:
            rows = session.connection().execute(
                text("SELECT * FROM v_files_complete WHERE repo_metadata_id = :repo ORDER BY path"),
                {"repo": repo_id},
            )
            return [dict(row._mapping) for row in rows]

    def list_files(self, repo_id: int, limit: int, sort: str = "path") -> list[FileRecord]:
        """Files ordered by sort (ascending for path/name/file_type, descending for sizes)."""
        if sort not in FILES_SORT_FIELDS:
            raise StorageError.query_failed("list_files", f"unknown sort field: {sort}")
        column = col(getattr(FileRecord, sort))
        order = column.desc() if sort in ("lines_count", "size_bytes") else column.asc()
        with self._read("list_files") as session:
            stmt = (
                select(FileRecord)
                .where(FileRecord.repo_metadata_id == repo_id)
                .order_by(order, col(FileRecord.path))
                .limit(limit)
            )
            return list(session.exec(stmt).all())

    def get_functions_by_file(self, file_id: int) -> list[FunctionRecord]:
        with self._read("get_functions_by_file") as session:
            stmt = (
                select(FunctionRecord)
                .where(FunctionRecord.file_id == file_id)
                .order_by(col(FunctionRecord.line_start))
            )
            return list(session.exec(stmt).all())

    def list_functions(
        self, repo_id: int, limit: int | None = None, file_filter: str | None = None
    ) -> list[tuple[FunctionRecord, str]]:
        """Functions with their file path, optionally filtered by a path substring."""
        with self._read("list_functions") as session:
            stmt = (
                select(FunctionRecord, FileRecord.path)
                .join(FileRecord, col(FunctionRecord.file_id) == col(FileRecord.id))
                .where(FileRecord.repo_metadata_id == repo_id)
                .order_by(col(FileRecord.path), col(FunctionRecord.line_start))
            )
            if file_filter:
                stmt = stmt.where(col(FileRecord.path).contains(file_filter, autoescape=True))
            if limit is not None:
                stmt = stmt.limit(limit)
            return [(fn, path) for fn, path in session.exec(stmt).all()]

    def list_exports(self, repo_id: int) -> list[tuple[ExportRecord, str]]:
        with self._read("list_exports") as session:
            stmt = (
                select(ExportRecord, FileRecord.path)
                .join(FileRecord, col(ExportRecord.file_id) == col(FileRecord.id))
                .where(FileRecord.repo_metadata_id == repo_id)
                .order_by(col(FileRecord.path), col(ExportRecord.line_number))
            )
            return [(exp, path) for exp, path in session.exec(stmt).all()]

    def list_imports(self, file_id: int) -> list[ImportRecord]:
        with self._read("list_imports") as session:
            stmt = (
                select(ImportRecord)
                .where(ImportRecord.file_id == file_id)
                .order_by(col(ImportRecord.line_number), col(ImportRecord.id))
            )
            return list(session.exec(stmt).all())

    def get_file_components(self, file_id: int) -> list[str]:
        """Component types a file is tagged with."""
        with self._read("get_file_components") as session:
            stmt = (
                select(Component.type)
                .join(FileComponent, col(FileComponent.component_id) == col(Component.id))
                .where(FileComponent.file_id == file_id)
                .order_by(col(Component.type))
            )
            return list(session.exec(stmt).all())

    def get_component_assignments(self, repo_id: int) -> dict[str, list[str]]:
        """Component type -> sorted file paths. Every taxonomy type is present."""
        assignments: dict[str, list[str]] = {c.value: [] for c in ComponentType}
        with self._read("get_component_assignments") as session:
            stmt = (
                select(Component.type, FileRecord.path)
                .join(FileComponent, col(FileComponent.component_id) == col(Component.id))
                .join(FileRecord, col(FileComponent.file_id) == col(FileRecord.id))
                .where(FileRecord.repo_metadata_id == repo_id)
                .order_by(col(FileRecord.path))
            )
            for component_type, path in session.exec(stmt):
                assignments.setdefault(component_type, []).append(path)
        return assignments

    # =========================================================================
    # Search and reports
    # =========================================================================

    def full_text_search(
        self, term: str, *, repo_id: int | None = None, limit: int = 20
    ) -> SearchResults:
        """Match term against files and functions; each list is ranked independently."""
        query = _fts_query(term)
        if query is None:
            return SearchResults()
        repo_filter = "AND f.repo_metadata_id = :repo" if repo_id is not None else ""
        params = {"query": query, "repo": repo_id, "limit": limit}
        with self._read("full_text_search") as session:
            conn = session.connection()
            files = conn.execute(
                text(
                    "SELECT f.id, f.path, f.name, f.purpose, f.file_type, files_fts.rank AS rank "
                    "FROM files_fts JOIN files f ON f.id = files_fts.rowid "
                    f"WHERE files_fts MATCH :query {repo_filter} "
                    "ORDER BY files_fts.rank LIMIT :limit"
                ),
                params,
            )
            functions = conn.execute(
                text(
                    "SELECT fn.id, fn.name, fn.signature, fn.purpose, fn.line_start, "
                    "f.path AS file_path, functions_fts.rank AS rank "
                    "FROM functions_fts "
                    "JOIN functions fn ON fn.id = functions_fts.rowid "
                    "JOIN files f ON f.id = fn.file_id "
                    f"WHERE functions_fts MATCH :query {repo_filter} "
                    "ORDER BY functions_fts.rank LIMIT :limit"
                ),
                params,
            )
            return SearchResults(
                files=[dict(row._mapping) for row in files],
                functions=[dict(row._mapping) for row in functions],
            )

    def get_dependency_graph(self, repo_id: int) -> list[DependencyEdge]:
        with self._read("get_dependency_graph") as session:
            rows = session.connection().execute(
                text(
                    "SELECT id, from_file, to_file, dependency_type, import_path, is_resolved "
                    "FROM v_dependency_graph WHERE repo_metadata_id = :repo ORDER BY id"
                ),
                {"repo": repo_id},
            )
            return [
                DependencyEdge(
                    id=row.id,
                    from_file=row.from_file,
                    to_file=row.to_file,
                    dependency_type=row.dependency_type,
                    import_path=row.import_path,
                    is_resolved=bool(row.is_resolved),
                )
                for row in rows
            ]

    def list_dependencies(self, repo_id: int, limit: int | None = None) -> list[DependencyEdge]:
        edges = self.get_dependency_graph(repo_id)
        return edges if limit is None else edges[:limit]

    def get_unresolved_dependencies(self, repo_id: int) -> list[tuple[int, str, str]]:
        """(dependency id, importing path, import path) for unresolved internal edges."""
        with self._read("get_unresolved_dependencies") as session:
            stmt = (
                select(Dependency.id, FileRecord.path, Dependency.import_path)
                .join(FileRecord, col(Dependency.from_file_id) == col(FileRecord.id))
                .where(
                    FileRecord.repo_metadata_id == repo_id,
                    col(Dependency.to_file_id).is_(None),
                    or_(
                        col(Dependency.import_path).startswith("."),
                        col(Dependency.import_path).startswith("/"),
                    ),
                )
                .order_by(col(Dependency.id))
            )
            return [(dep_id, path, import_path) for dep_id, path, import_path in session.exec(stmt)]

    def get_complexity_report(self, repo_id: int, top_n: int = 20) -> list[ComplexityEntry]:
        """Top-N files by complexity, with function count and average function complexity."""
        with self._read("get_complexity_report") as session:
            rows = session.connection().execute(
                text(
                    "SELECT f.path, f.name, f.complexity_score AS file_complexity, "
                    "(SELECT COUNT(*) FROM functions WHERE file_id = f.id) AS function_count, "
                    "(SELECT AVG(complexity) FROM functions WHERE file_id = f.id) "
                    "AS avg_function_complexity "
                    "FROM files f WHERE f.repo_metadata_id = :repo "
                    "ORDER BY f.complexity_score DESC, f.path LIMIT :limit"
                ),
                {"repo": repo_id, "limit": top_n},
            )
            return [ComplexityEntry(**row._mapping) for row in rows]

    def get_dependency_report(self, repo_id: int) -> list[DependencyReportEntry]:
        """Per file outgoing/incoming edge counts, most connected first."""
        with self._read("get_dependency_report") as session:
            rows = session.connection().execute(
                text(
                    "SELECT f.path, f.name, "
                    "(SELECT COUNT(*) FROM dependencies WHERE from_file_id = f.id) "
                    "AS outgoing_deps, "
                    "(SELECT COUNT(*) FROM dependencies WHERE to_file_id = f.id) AS incoming_deps "
                    "FROM files f WHERE f.repo_metadata_id = :repo "
                    "ORDER BY outgoing_deps + incoming_deps DESC, f.path"
                ),
                {"repo": repo_id},
            )
            return [DependencyReportEntry(**row._mapping) for row in rows]

    def get_repository_metrics(self, repo_id: int) -> RepositoryMetrics:
        """File, function, language and component rollups."""
        with self._read("get_repository_metrics") as session:
            file_row = session.exec(
                select(
                    func.count(col(FileRecord.id)),
                    func.coalesce(func.sum(FileRecord.lines_count), 0),
                    func.coalesce(func.sum(FileRecord.code_lines), 0),
                    func.coalesce(func.sum(FileRecord.size_bytes), 0),
                    func.coalesce(func.avg(FileRecord.complexity_score), 0),
                ).where(FileRecord.repo_metadata_id == repo_id)
            ).one()
            fn_row = session.exec(
                select(
                    func.count(col(FunctionRecord.id)),
                    func.coalesce(func.sum(col(FunctionRecord.is_exported).cast(Integer)), 0),
                    func.coalesce(func.sum(col(FunctionRecord.is_async).cast(Integer)), 0),
                    func.coalesce(func.avg(FunctionRecord.complexity), 0),
                )
                .join(FileRecord, col(FunctionRecord.file_id) == col(FileRecord.id))
                .where(FileRecord.repo_metadata_id == repo_id)
            ).one()
            components = session.connection().execute(
                text(
                    "SELECT c.name, c.type, COUNT(f.id) AS file_count "
                    "FROM components c "
                    "LEFT JOIN file_components fc ON c.id = fc.component_id "
                    "LEFT JOIN files f ON fc.file_id = f.id AND f.repo_metadata_id = :repo "
                    "GROUP BY c.id ORDER BY c.id"
                ),
                {"repo": repo_id},
            )
            component_stats = [ComponentStat(**row._mapping) for row in components]

        return RepositoryMetrics(
            files=FileStats(
                total_files=file_row[0],
                total_lines=file_row[1],
                total_code_lines=file_row[2],
                total_size=file_row[3],
                avg_complexity=float(file_row[4]),
            ),
            functions=FunctionStats(
                total_functions=fn_row[0],
                exported_functions=fn_row[1],
                async_functions=fn_row[2],
                avg_complexity=float(fn_row[3]),
            ),
            languages=self.get_language_stats(repo_id),
            components=component_stats,
        )
