"""Load previously generated JSON artifacts into the store.

repo-map.json is required; code-index.json and metrics.json are optional.
Everything is written in one transaction and recorded as a scan of kind
``migration``. Records that point at files missing from repo-map.json are
skipped and counted.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

import structlog

from codeatlas.core.errors import CliError, ConfigError, ScanError
from codeatlas.git.identity import RepositoryIdentity
from codeatlas.index._internal.analysis.categories import file_extension
from codeatlas.index.models import (
    ComponentType,
    DependencyKind,
    ExportData,
    ExportKind,
    FileData,
    FunctionData,
    ScanKind,
)
from codeatlas.index.store import RepositoryStore, row_id
from codeatlas.reporting.artifacts import CODE_INDEX_FILE, METRICS_FILE, REPO_MAP_FILE

logger = structlog.get_logger()

_DEPENDENCY_KINDS = {kind.value for kind in DependencyKind}
_EXPORT_KINDS = {kind.value for kind in ExportKind}
_COMPONENT_TYPES = {c.value for c in ComponentType}


@dataclass
class MigrationResult:
    scan_id: int
    repo_id: int
    files: int = 0
    functions: int = 0
    exports: int = 0
    dependencies: int = 0
    languages: int = 0
    components: int = 0
    skipped: int = 0
    missing_sources: list[str] = field(default_factory=list)


def _read_json(path: Path) -> dict[str, Any] | None:
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "expected a JSON object")
    return data


def _legacy_hash(path: str, size: Any) -> str:
    # No content available: identify the file by path and recorded size
    return hashlib.sha256(f"{path}{size}".encode()).hexdigest()


class LegacyImporter:
    """Imports repo-map/code-index/metrics JSON documents from a data directory.

    With ``replace_child_rows`` (the default) each imported file drops the
    functions, exports, edges and component tags of any earlier import, so
    running twice leaves one copy.
    """

    def __init__(
        self,
        store: RepositoryStore,
        data_dir: Path,
        identity: RepositoryIdentity,
        *,
        replace_child_rows: bool = True,
    ) -> None:
        self.store = store
        self.data_dir = data_dir
        self.identity = identity
        self.replace_child_rows = replace_child_rows

    def run(self) -> MigrationResult:
        """Import everything. Raises CliError when repo-map.json is missing."""
        repo_map_path = self.data_dir / REPO_MAP_FILE
        repo_map = _read_json(repo_map_path)
        if repo_map is None:
            raise CliError.legacy_data_missing(str(repo_map_path))
        code_index = _read_json(self.data_dir / CODE_INDEX_FILE)
        metrics = _read_json(self.data_dir / METRICS_FILE)

        repo = self.store.get_or_create_repository(
            self.identity.owner, self.identity.name, self.identity.url
        )
        repo_id = row_id(repo, "migrate")
        scan_id = self.store.start_scan(repo_id, ScanKind.MIGRATION)
        result = MigrationResult(scan_id=scan_id, repo_id=repo_id)
        for name, doc in ((CODE_INDEX_FILE, code_index), (METRICS_FILE, metrics)):
            if doc is None:
                result.missing_sources.append(name)

        try:
            with self.store.transaction():
                file_ids = self._files(repo_id, repo_map, result)
                if code_index is not None:
                    self._functions(file_ids, code_index, result)
                    self._exports(file_ids, code_index, result)
                self._dependencies(file_ids, repo_map, result)
                self._components(file_ids, repo_map, result)
                if metrics is not None:
                    self._languages(repo_id, metrics, result)
                meta = repo_map.get("metadata") or {}
                self.store.update_repository_stats(
                    repo_id,
                    int(meta.get("totalFiles") or len(file_ids)),
                    int(meta.get("totalLines") or 0),
                    ScanKind.MIGRATION,
                )
        except Exception as e:
            self.store.fail_scan(scan_id, result.files, 0, result.skipped)
            logger.error("migration_failed", scan_id=scan_id, error=str(e))
            raise ScanError.aborted(scan_id, str(e)) from e

        lines = int((repo_map.get("metadata") or {}).get("totalLines") or 0)
        self.store.complete_scan(scan_id, result.files, lines, result.skipped)
        logger.info(
            "migration_completed",
            scan_id=scan_id,
            files=result.files,
            functions=result.functions,
            exports=result.exports,
            dependencies=result.dependencies,
            skipped=result.skipped,
        )
        return result

    def _files(
        self, repo_id: int, repo_map: dict[str, Any], result: MigrationResult
    ) -> dict[str, int]:
        file_ids: dict[str, int] = {}
        for path, info in (repo_map.get("files") or {}).items():
            info = info or {}
            ext = file_extension(path)
            lines = int(info.get("lines") or 0)
            data = FileData(
                name=info.get("name") or PurePosixPath(path).name,
                path=path,
                file_type=info.get("type") or ext or "Unknown",
                extension=ext or None,
                size_bytes=int(info.get("size") or 0),
                lines_count=lines,
                code_lines=lines,
                hash=_legacy_hash(path, info.get("size")),
                purpose=info.get("purpose") or "Unknown",
                complexity_score=float(info.get("complexity") or 0),
            )
            file_id = self.store.upsert_file(repo_id, data)
            if self.replace_child_rows:
                # A re-run replaces what an earlier import wrote
                self.store.clear_file_children(file_id)
            file_ids[path] = file_id
            result.files += 1
        return file_ids

    def _functions(
        self, file_ids: dict[str, int], code_index: dict[str, Any], result: MigrationResult
    ) -> None:
        for name, info in (code_index.get("functions") or {}).items():
            file_id = file_ids.get(info.get("file"))
            if file_id is None:
                result.skipped += 1
                logger.warning("migration_function_file_missing", name=name, file=info.get("file"))
                continue
            line = int(info.get("line") or 0)
            self.store.add_function(
                file_id,
                FunctionData(
                    name=name,
                    signature=info.get("signature"),
                    line_start=line,
                    line_end=line,
                    is_async=bool(info.get("async", False)),
                    is_exported=bool(info.get("exported", True)),
                    complexity=max(1, int(info.get("complexity") or 1)),
                    purpose=info.get("purpose"),
                ),
            )
            result.functions += 1

    def _exports(
        self, file_ids: dict[str, int], code_index: dict[str, Any], result: MigrationResult
    ) -> None:
        for name, entries in (code_index.get("exports") or {}).items():
            # Older documents hold one object per name, newer ones a list
            for info in entries if isinstance(entries, list) else [entries]:
                file_id = file_ids.get(info.get("file"))
                if file_id is None:
                    result.skipped += 1
                    continue
                kind = info.get("type") if info.get("type") in _EXPORT_KINDS else "named"
                self.store.add_export(
                    file_id,
                    ExportData(
                        exported_name=name,
                        export_type=ExportKind(kind),
                        line_number=int(info.get("line") or 0),
                        ref_to=name,
                    ),
                )
                result.exports += 1

    def _dependencies(
        self, file_ids: dict[str, int], repo_map: dict[str, Any], result: MigrationResult
    ) -> None:
        for dep in (repo_map.get("relationships") or {}).get("dependencies") or []:
            from_id = file_ids.get(dep.get("from"))
            if from_id is None:
                result.skipped += 1
                continue
            to_path = dep.get("to")
            kind = dep.get("type") if dep.get("type") in _DEPENDENCY_KINDS else "import"
            self.store.add_dependency(
                from_id,
                file_ids.get(to_path) if to_path else None,
                kind,
                dep.get("importPath") or to_path or "",
            )
            result.dependencies += 1

    def _components(
        self, file_ids: dict[str, int], repo_map: dict[str, Any], result: MigrationResult
    ) -> None:
        for component_type, paths in (repo_map.get("components") or {}).items():
            if component_type not in _COMPONENT_TYPES:
                continue
            for path in paths or []:
                file_id = file_ids.get(path)
                if file_id is None:
                    continue
                self.store.tag_file_component(file_id, ComponentType(component_type))
                result.components += 1

    def _languages(self, repo_id: int, metrics: dict[str, Any], result: MigrationResult) -> None:
        languages = metrics.get("languages") or []
        if isinstance(languages, dict):
            languages = [{"name": name, **(data or {})} for name, data in languages.items()]
        for lang in languages:
            if not lang.get("name"):
                continue
            self.store.upsert_language(
                repo_id,
                lang["name"],
                int(lang.get("files") or 0),
                int(lang.get("lines") or 0),
                float(lang.get("percentage") or 0),
            )
            result.languages += 1
