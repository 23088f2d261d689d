"""Schema objects SQLModel cannot express: FTS5 tables, triggers, views.

Call apply_schema() after Database.create_all(). Every statement is
idempotent (IF NOT EXISTS), so applying twice is harmless.

Full-text indexes use external content tables. Their triggers feed the
'delete' command the old column values, which is how FTS5 removes tokens
for a content= table.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import text

from codeatlas.index.models import ComponentType

if TYPE_CHECKING:
    from sqlalchemy import Connection, Engine

logger = structlog.get_logger()


FTS_TABLES = [
    """CREATE VIRTUAL TABLE IF NOT EXISTS files_fts USING fts5(
        name, path, purpose,
        content='files', content_rowid='id'
    )""",
    """CREATE VIRTUAL TABLE IF NOT EXISTS functions_fts USING fts5(
        name, signature, purpose,
        content='functions', content_rowid='id'
    )""",
]

TRIGGERS = [
    # Full-text sync: files
    """CREATE TRIGGER IF NOT EXISTS files_fts_insert AFTER INSERT ON files
    BEGIN
        INSERT INTO files_fts(rowid, name, path, purpose)
        VALUES (NEW.id, NEW.name, NEW.path, NEW.purpose);
    END""",
    # Only fires when an indexed column is written
    """CREATE TRIGGER IF NOT EXISTS files_fts_update AFTER UPDATE OF name, path, purpose ON files
    BEGIN
        INSERT INTO files_fts(files_fts, rowid, name, path, purpose)
        VALUES ('delete', OLD.id, OLD.name, OLD.path, OLD.purpose);
        INSERT INTO files_fts(rowid, name, path, purpose)
        VALUES (NEW.id, NEW.name, NEW.path, NEW.purpose);
    END""",
    """CREATE TRIGGER IF NOT EXISTS files_fts_delete AFTER DELETE ON files
    BEGIN
        INSERT INTO files_fts(files_fts, rowid, name, path, purpose)
        VALUES ('delete', OLD.id, OLD.name, OLD.path, OLD.purpose);
    END""",
    # Full-text sync: functions
    """CREATE TRIGGER IF NOT EXISTS functions_fts_insert AFTER INSERT ON functions
    BEGIN
        INSERT INTO functions_fts(rowid, name, signature, purpose)
        VALUES (NEW.id, NEW.name, NEW.signature, NEW.purpose);
    END""",
    """CREATE TRIGGER IF NOT EXISTS functions_fts_update
    AFTER UPDATE OF name, signature, purpose ON functions
    BEGIN
        INSERT INTO functions_fts(functions_fts, rowid, name, signature, purpose)
        VALUES ('delete', OLD.id, OLD.name, OLD.signature, OLD.purpose);
        INSERT INTO functions_fts(rowid, name, signature, purpose)
        VALUES (NEW.id, NEW.name, NEW.signature, NEW.purpose);
    END""",
    """CREATE TRIGGER IF NOT EXISTS functions_fts_delete AFTER DELETE ON functions
    BEGIN
        INSERT INTO functions_fts(functions_fts, rowid, name, signature, purpose)
        VALUES ('delete', OLD.id, OLD.name, OLD.signature, OLD.purpose);
    END""",
    # A deleted target turns its incoming edges back into unresolved ones
    """CREATE TRIGGER IF NOT EXISTS files_unresolve_incoming BEFORE DELETE ON files
    BEGIN
        UPDATE dependencies SET to_file_id = NULL, is_resolved = 0
        WHERE to_file_id = OLD.id;
    END""",
    # Timestamps
    """CREATE TRIGGER IF NOT EXISTS update_files_timestamp AFTER UPDATE ON files
    WHEN NEW.updated_at IS OLD.updated_at
    BEGIN
        UPDATE files SET updated_at = CURRENT_TIMESTAMP WHERE id = NEW.id;
    END""",
    """CREATE TRIGGER IF NOT EXISTS update_languages_timestamp AFTER UPDATE ON languages
    WHEN NEW.updated_at IS OLD.updated_at
    BEGIN
        UPDATE languages SET updated_at = CURRENT_TIMESTAMP WHERE id = NEW.id;
    END""",
]

VIEWS = [
    """CREATE VIEW IF NOT EXISTS v_files_complete AS
    SELECT
        f.id,
        f.repo_metadata_id,
        f.name,
        f.path,
        f.file_type,
        f.extension,
        f.size_bytes,
        f.lines_count,
        f.code_lines,
        f.comment_lines,
        f.blank_lines,
        f.purpose,
        f.complexity_score,
        rm.repo_name,
        rm.repo_owner,
        (SELECT COUNT(*) FROM functions WHERE file_id = f.id) AS function_count,
        (SELECT COUNT(*) FROM imports WHERE file_id = f.id) AS import_count,
        (SELECT COUNT(*) FROM exports WHERE file_id = f.id) AS export_count
    FROM files f
    LEFT JOIN repository_metadata rm ON f.repo_metadata_id = rm.id""",
    """CREATE VIEW IF NOT EXISTS v_dependency_graph AS
    SELECT
        d.id,
        f1.repo_metadata_id,
        f1.path AS from_file,
        f2.path AS to_file,
        d.dependency_type,
        d.import_path,
        d.is_resolved
    FROM dependencies d
    JOIN files f1 ON d.from_file_id = f1.id
    LEFT JOIN files f2 ON d.to_file_id = f2.id""",
    """CREATE VIEW IF NOT EXISTS v_language_summary AS
    SELECT
        l.repo_metadata_id,
        rm.repo_name,
        l.name AS language,
        l.file_count,
        l.total_lines,
        l.percentage,
        l.updated_at
    FROM languages l
    JOIN repository_metadata rm ON l.repo_metadata_id = rm.id
    ORDER BY l.percentage DESC""",
    """CREATE VIEW IF NOT EXISTS v_component_summary AS
    SELECT
        c.name AS component,
        c.type,
        f.repo_metadata_id,
        COUNT(fc.file_id) AS file_count,
        SUM(f.lines_count) AS total_lines,
        AVG(f.complexity_score) AS avg_complexity
    FROM components c
    LEFT JOIN file_components fc ON c.id = fc.component_id
    LEFT JOIN files f ON fc.file_id = f.id
    GROUP BY c.id, c.name, c.type, f.repo_metadata_id""",
    """CREATE VIEW IF NOT EXISTS v_function_summary AS
    SELECT
        fn.id,
        f.repo_metadata_id,
        fn.name,
        fn.signature,
        fn.is_exported,
        fn.is_async,
        fn.complexity,
        f.path AS file_path,
        f.file_type
    FROM functions fn
    JOIN files f ON fn.file_id = f.id""",
]

ADDITIONAL_INDEXES = [
    # Lookup fields not covered by Field(index=True)
    "CREATE INDEX IF NOT EXISTS idx_files_repo_complexity "
    "ON files(repo_metadata_id, complexity_score)",
    "CREATE INDEX IF NOT EXISTS idx_scan_history_repo_started "
    "ON scan_history(repo_metadata_id, started_at)",
    "CREATE INDEX IF NOT EXISTS idx_dependencies_unresolved "
    "ON dependencies(is_resolved, from_file_id)",
]

COMPONENT_SEED: list[tuple[str, ComponentType, str]] = [
    (
        "UI Components",
        ComponentType.UI,
        "User interface components including HTML, CSS, and visual elements",
    ),
    ("Business Logic", ComponentType.LOGIC, "Core application logic and processing"),
    ("Data Layer", ComponentType.DATA, "Data structures, models, and content files"),
    ("Infrastructure", ComponentType.INFRASTRUCTURE, "Build tools, workflows, and scripts"),
    ("Documentation", ComponentType.DOCUMENTATION, "README files, guides, and documentation"),
    ("Testing", ComponentType.TEST, "Test files and testing infrastructure"),
    ("Configuration", ComponentType.CONFIG, "Configuration files and settings"),
]


def _execute_all(conn: Connection, statements: list[str]) -> None:
    for sql in statements:
        conn.execute(text(sql))


def seed_components(conn: Connection) -> None:
    """Insert the component taxonomy. Existing rows are left alone."""
    for name, component_type, description in COMPONENT_SEED:
        conn.execute(
            text(
                "INSERT OR IGNORE INTO components (name, type, description, created_at) "
                "VALUES (:name, :type, :description, CURRENT_TIMESTAMP)"
            ),
            {"name": name, "type": component_type.value, "description": description},
        )


def apply_schema(engine: Engine) -> None:
    """Create FTS tables, triggers, views, composite indexes and seed rows."""
    with engine.connect() as conn:
        _execute_all(conn, FTS_TABLES)
        _execute_all(conn, TRIGGERS)
        _execute_all(conn, VIEWS)
        _execute_all(conn, ADDITIONAL_INDEXES)
        seed_components(conn)
        conn.commit()
    logger.debug("schema_applied")


def schema_counts(engine: Engine) -> dict[str, int]:
    """Count schema objects by kind (tables, views, indexes, triggers)."""
    counts = {"tables": 0, "views": 0, "indexes": 0, "triggers": 0}
    kinds = {"table": "tables", "view": "views", "index": "indexes", "trigger": "triggers"}
    with engine.connect() as conn:
        rows = conn.execute(
            text(
                "SELECT type, COUNT(*) FROM sqlite_master "
                "WHERE name NOT LIKE 'sqlite_%' GROUP BY type"
            )
        ).all()
    for kind, count in rows:
        if kind in kinds:
            counts[kinds[kind]] = int(count)
    return counts
