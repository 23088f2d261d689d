"""High-level orchestration of a repository scan.

This module implements the RepositoryIndexer - the entry point for turning
a file tree into persisted index state. The pipeline is:

    walk -> read -> analyze -> persist (one transaction per file)
         -> link pass -> language rollup -> repository totals -> artifacts

Transaction scope is per file: a file's row, its functions, imports,
exports, component tag and outgoing dependency edges commit together. A
scan that fails part way leaves the files already committed in place and
only marks its Scan row failed; repository totals are written on success
only.

Running two scans against the same store at once is not supported. Writers
are serialized by SQLite, but interleaved scans may each see the other's
half-written state.
"""

from __future__ import annotations

import time
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from codeatlas.config.models import CodeAtlasConfig
from codeatlas.core.errors import AnalysisError, ScanError
from codeatlas.core.progress import progress
from codeatlas.git.identity import RepositoryIdentity, detect_identity
from codeatlas.index._internal.analysis import (
    AnalysisResult,
    FileCategory,
    analyze_source,
    is_config_file,
    is_test_file,
    read_source,
)
from codeatlas.index._internal.discovery import DiscoveredFile, walk_repository
from codeatlas.index._internal.ignore import IgnoreChecker
from codeatlas.index._internal.resolution import resolve_import
from codeatlas.index.models import ComponentType, DependencyKind, ScanKind, ScanStatus
from codeatlas.index.store import RepositoryStore, row_id
from codeatlas.reporting import artifacts

logger = structlog.get_logger()

_BYTES_PER_MB = 1024 * 1024


@dataclass
class ScanAccumulator:
    """Counters threaded through one scan and persisted when it ends."""

    files_scanned: int = 0
    lines_scanned: int = 0
    functions_found: int = 0
    errors_count: int = 0
    failed_paths: list[str] = field(default_factory=list)

    def record_file(self, analysis: AnalysisResult) -> None:
        self.files_scanned += 1
        self.lines_scanned += analysis.lines.total
        self.functions_found += len(analysis.functions)

    def record_error(self, path: str) -> None:
        self.errors_count += 1
        self.failed_paths.append(path)


@dataclass
class ScanResult:
    """Result of a completed scan."""

    scan_id: int
    repo_id: int
    identity: RepositoryIdentity
    status: ScanStatus
    files_scanned: int
    lines_scanned: int
    functions_found: int
    errors_count: int
    skipped_too_large: list[str] = field(default_factory=list)
    failed_paths: list[str] = field(default_factory=list)
    dependencies_linked: int = 0
    files_pruned: int = 0
    artifacts: list[Path] = field(default_factory=list)
    duration_seconds: float = 0.0


def classify_component(path: str, category: FileCategory) -> ComponentType:
    """The single taxonomy component a file is tagged with."""
    if is_test_file(path):
        return ComponentType.TEST
    if category in (FileCategory.MARKUP, FileCategory.STYLESHEET):
        return ComponentType.UI
    if category == FileCategory.SCRIPT:
        return ComponentType.LOGIC
    if category == FileCategory.DATA:
        return ComponentType.DATA
    if category == FileCategory.DOC:
        return ComponentType.DOCUMENTATION
    if is_config_file(path):
        return ComponentType.CONFIG
    return ComponentType.INFRASTRUCTURE


class RepositoryIndexer:
    """
    Walks a repository and persists its structure through a RepositoryStore.

    Usage::

        with RepositoryStore(paths.store) as store:
            indexer = RepositoryIndexer(paths.root, store, config, data_dir=paths.data_dir)
            result = indexer.scan()
    """

    def __init__(
        self,
        root: Path,
        store: RepositoryStore,
        config: CodeAtlasConfig | None = None,
        *,
        data_dir: Path | None = None,
        identity: RepositoryIdentity | None = None,
    ) -> None:
        self.root = root.resolve()
        self.store = store
        self.config = config or CodeAtlasConfig()
        self.data_dir = data_dir
        self._identity = identity

    @property
    def identity(self) -> RepositoryIdentity:
        if self._identity is None:
            self._identity = detect_identity(self.root, self.config.repository)
        return self._identity

    def _ignore_checker(self) -> IgnoreChecker:
        patterns = list(self.config.index.extra_ignore_patterns)
        if self.data_dir is not None:
            try:
                rel = self.data_dir.resolve().relative_to(self.root).as_posix()
            except ValueError:
                rel = None
            if rel and rel != ".":
                patterns.append(f"{rel}/")
        return IgnoreChecker(
            self.root, patterns, excluded_paths=[self.store.db_path]
        )

    # =========================================================================
    # Scan
    # =========================================================================

    def scan(self, *, prune: bool = False, write_artifacts: bool = True) -> ScanResult:
        """Run a full scan.

        Raises:
            ScanError: root is not a directory, or the scan failed after it
                started (the Scan row is then marked failed).
        """
        if not self.root.is_dir():
            raise ScanError.root_invalid(str(self.root))

        start = time.perf_counter()
        identity = self.identity
        repo = self.store.get_or_create_repository(
            identity.owner, identity.name, identity.url, version=self.config.repository.version
        )
        repo_id = row_id(repo, "scan")
        scan_id = self.store.start_scan(repo_id, ScanKind.FULL)
        acc = ScanAccumulator()

        structlog.contextvars.bind_contextvars(scan_id=scan_id)
        try:
            logger.info("scan_started", root=str(self.root), repo_id=repo_id)
            result = self._run(repo_id, scan_id, acc, prune=prune)
        except Exception as e:
            self._fail(scan_id, acc)
            logger.error("scan_failed", error=str(e), files_scanned=acc.files_scanned)
            if isinstance(e, ScanError):
                raise
            raise ScanError.aborted(scan_id, str(e)) from e
        finally:
            structlog.contextvars.unbind_contextvars("scan_id")

        if write_artifacts and self.data_dir is not None:
            result.artifacts = artifacts.write_artifacts(
                self.store, repo_id, self.data_dir, top_n=self.config.output.top_n
            )

        result.duration_seconds = time.perf_counter() - start
        logger.info(
            "scan_completed",
            scan_id=scan_id,
            files=result.files_scanned,
            lines=result.lines_scanned,
            functions=result.functions_found,
            errors=result.errors_count,
            duration_s=round(result.duration_seconds, 3),
        )
        return result

    def _run(self, repo_id: int, scan_id: int, acc: ScanAccumulator, *, prune: bool) -> ScanResult:
        max_size = self.config.index.max_file_size_mb * _BYTES_PER_MB
        walk = walk_repository(self.root, self._ignore_checker(), max_file_size=max_size)

        # Pruned rows must be gone before any import can resolve to them
        pruned = 0
        if prune:
            pruned = self.store.prune_missing_files(repo_id, {f.rel_path for f in walk.files})

        path_ids = self.store.get_file_paths(repo_id)
        for discovered in progress(
            walk.files, desc="Indexing", label=lambda d: d.rel_path
        ):
            try:
                self.index_file(repo_id, discovered, path_ids, acc)
            except AnalysisError as e:
                acc.record_error(discovered.rel_path)
                logger.warning("file_analysis_failed", path=discovered.rel_path, error=e.message)

        linked = self.link_dependencies(repo_id, path_ids)

        total_files, total_lines = self.update_language_stats(repo_id)
        self.store.update_repository_stats(repo_id, total_files, total_lines, ScanKind.FULL)
        self.store.complete_scan(
            scan_id, acc.files_scanned, acc.lines_scanned, acc.errors_count
        )
        return ScanResult(
            scan_id=scan_id,
            repo_id=repo_id,
            identity=self.identity,
            status=ScanStatus.COMPLETED,
            files_scanned=acc.files_scanned,
            lines_scanned=acc.lines_scanned,
            functions_found=acc.functions_found,
            errors_count=acc.errors_count,
            skipped_too_large=walk.too_large,
            failed_paths=acc.failed_paths,
            dependencies_linked=linked,
            files_pruned=pruned,
        )

    def _fail(self, scan_id: int, acc: ScanAccumulator) -> None:
        try:
            self.store.fail_scan(
                scan_id, acc.files_scanned, acc.lines_scanned, acc.errors_count
            )
        except Exception as e:  # noqa: BLE001
            logger.error("scan_fail_record_failed", scan_id=scan_id, error=str(e))

    # =========================================================================
    # Per-file work
    # =========================================================================

    def index_file(
        self,
        repo_id: int,
        discovered: DiscoveredFile,
        path_ids: dict[str, int],
        acc: ScanAccumulator,
    ) -> int:
        """Analyze one file and persist it atomically. Returns the file id.

        Raises:
            AnalysisError: the file could not be read or decoded; nothing is written.
        """
        rel_path = discovered.rel_path
        source = read_source(discovered.abs_path, rel_path)
        analysis = analyze_source(rel_path, source.content)

        with self.store.transaction() as tx:
            file_id = tx.upsert_file(repo_id, analysis.to_file_data(source))
            if self.config.index.replace_child_rows:
                tx.clear_file_children(file_id)
            for fn in analysis.functions:
                tx.add_function(file_id, fn)
            for imp in analysis.imports:
                tx.add_import(file_id, imp)
            for exp in analysis.exports:
                tx.add_export(file_id, exp)
            tx.tag_file_component(file_id, classify_component(rel_path, analysis.category))

            path_ids[rel_path] = file_id
            for imp in analysis.imports:
                target = resolve_import(rel_path, imp.imported_from, path_ids)
                tx.add_dependency(file_id, target, DependencyKind.IMPORT, imp.imported_from)

        acc.record_file(analysis)
        logger.debug(
            "file_indexed",
            path=rel_path,
            lines=analysis.lines.total,
            functions=len(analysis.functions),
        )
        return file_id

    def link_dependencies(self, repo_id: int, path_ids: dict[str, int]) -> int:
        """Resolve edges whose target was indexed after the importing file."""
        linked = 0
        for dep_id, from_path, import_path in self.store.get_unresolved_dependencies(repo_id):
            target = resolve_import(from_path, import_path, path_ids)
            if target is not None:
                self.store.resolve_dependency(dep_id, target)
                linked += 1
        if linked:
            logger.info("dependency_links_resolved", count=linked)
        return linked

    def update_language_stats(self, repo_id: int) -> tuple[int, int]:
        """Recompute per-language rows from every file of the repository.

        Returns (total files, total lines).
        """
        files = self.store.get_all_files(repo_id)
        counts: dict[str, list[int]] = defaultdict(lambda: [0, 0])
        total_lines = 0
        for row in files:
            label = row["file_type"] or "Unknown"
            lines = row["lines_count"] or 0
            counts[label][0] += 1
            counts[label][1] += lines
            total_lines += lines

        with self.store.transaction() as tx:
            for label, (file_count, lines) in counts.items():
                percentage = (lines / total_lines) * 100 if total_lines > 0 else 0.0
                tx.upsert_language(repo_id, label, file_count, lines, percentage)
            tx.prune_languages(repo_id, set(counts))
        return len(files), total_lines
