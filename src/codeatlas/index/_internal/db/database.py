"""SQLite engine for the repository store.

``Database`` owns the engine and hands out ORM sessions. Writes go through
``immediate_transaction`` so concurrent scans serialize cleanly, and every
store call runs inside ``storage_operation`` so callers only ever see
``StorageError``.
"""

from __future__ import annotations

import re
import time
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import event, text
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine

from codeatlas.core.errors import StorageError
from codeatlas.index._internal.db.schema import apply_schema

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = structlog.get_logger()

# Backoff for BEGIN IMMEDIATE when another writer holds the lock
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BASE_DELAY = 0.1  # 100ms base
DEFAULT_RETRY_MAX_DELAY = 2.0  # 2s max
DEFAULT_BUSY_TIMEOUT_MS = 30000

_CONSTRAINT_TABLE_RE = re.compile(r"constraint failed:\s*([A-Za-z_][A-Za-z0-9_]*)\.")


def _is_database_locked_error(error: Exception) -> bool:
    message = str(error).lower()
    return "database is locked" in message or "database is busy" in message


def _constraint_entity(error: IntegrityError) -> str | None:
    """Pull the table name out of a SQLite constraint message, if present."""
    match = _CONSTRAINT_TABLE_RE.search(str(error.orig))
    return match.group(1) if match else None


@contextmanager
def storage_operation(operation: str, entity: str | None = None) -> Iterator[None]:
    """Translate SQLAlchemy exceptions raised inside the block into StorageError."""
    try:
        yield
    except StorageError:
        raise
    except IntegrityError as e:
        raise StorageError.constraint_violation(
            operation, _constraint_entity(e) or entity, str(e.orig)
        ) from e
    except OperationalError as e:
        raise StorageError.query_failed(
            operation, str(e.orig), retryable=_is_database_locked_error(e)
        ) from e
    except SQLAlchemyError as e:
        raise StorageError.query_failed(operation, str(e)) from e


class Database:
    """Engine plus session factories for one store file."""

    def __init__(
        self,
        db_path: Path,
        busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY,
        retry_max_delay: float = DEFAULT_RETRY_MAX_DELAY,
    ) -> None:
        self.db_path = db_path
        self._busy_timeout_ms = busy_timeout_ms
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._retry_max_delay = retry_max_delay
        self.engine = self._create_engine()

    def _create_engine(self) -> Engine:
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError.connection_failed(str(self.db_path), str(e)) from e
        engine = create_engine(
            f"sqlite:///{self.db_path}",
            connect_args={"check_same_thread": False},
            pool_pre_ping=True,
        )
        busy_timeout_ms = self._busy_timeout_ms

        def _on_connect(dbapi_conn: Any, connection_record: Any) -> None:
            _configure_pragmas(dbapi_conn, connection_record, busy_timeout_ms=busy_timeout_ms)

        event.listen(engine, "connect", _on_connect)
        return engine

    def connect(self) -> None:
        """Open a connection once so unreachable stores fail early."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise StorageError.connection_failed(str(self.db_path), str(e)) from e

    def create_all(self) -> None:
        """Tables from the SQLModel metadata, then the FTS tables, triggers and views."""
        with storage_operation("create_schema"):
            SQLModel.metadata.create_all(self.engine)
            apply_schema(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """ORM session for reads and single-statement writes."""
        with Session(self.engine, expire_on_commit=False) as session:
            yield session

    @contextmanager
    def immediate_transaction(
        self,
        max_retries: int | None = None,
    ) -> Generator[Session, None, None]:
        """Write session holding SQLite's RESERVED lock from the first statement.

        Readers keep working while the lock is held. A busy store is retried
        with capped exponential backoff, but only while taking the lock; once
        the caller's block has started, any error rolls back and propagates.
        The session commits when the block exits cleanly.
        """
        session = self._begin_immediate(
            self._max_retries if max_retries is None else max_retries
        )
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def _begin_immediate(self, retries: int) -> Session:
        attempt = 0
        while True:
            session = Session(self.engine, expire_on_commit=False)
            try:
                session.execute(text("BEGIN IMMEDIATE"))
                return session
            except OperationalError as e:
                session.close()
                if attempt >= retries or not _is_database_locked_error(e):
                    raise
                delay = min(self._retry_base_delay * 2**attempt, self._retry_max_delay)
                attempt += 1
                logger.warning("store_busy_retry", attempt=attempt, retries=retries, delay=delay)
                time.sleep(delay)

    def backup_to(self, destination: Path) -> None:
        """Write a consistent copy of the store to destination via VACUUM INTO."""
        with storage_operation("backup"):
            with self.engine.connect().execution_options(isolation_level="AUTOCOMMIT") as conn:
                conn.execute(text("VACUUM INTO :dest"), {"dest": str(destination)})
        logger.debug("database_backup_written", destination=str(destination))


# Applied to every new DBAPI connection; WAL lets scans and queries overlap
_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA foreign_keys=ON",
)


def _configure_pragmas(
    dbapi_conn: Any, _connection_record: Any, *, busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS
) -> None:
    cursor = dbapi_conn.cursor()
    try:
        for pragma in (*_PRAGMAS, f"PRAGMA busy_timeout={int(busy_timeout_ms)}"):
            cursor.execute(pragma)
    finally:
        cursor.close()
