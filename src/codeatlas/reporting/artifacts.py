"""Generated artifacts: repo-map.json, code-index.json, metrics.json, ARCHITECTURE.md.

Every builder is a read-only pass over the store. ``write_artifacts``
overwrites all four files in the data directory.
"""

from __future__ import annotations

import json
import posixpath
from collections import Counter, defaultdict
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import structlog

from codeatlas.config.constants import ARTIFACT_VERSION, INSIGHTS_TOP_N
from codeatlas.core.errors import StorageError
from codeatlas.index.models import DependencyEdge
from codeatlas.index.store import RepositoryStore
from codeatlas.reporting.architecture import render_architecture

logger = structlog.get_logger()

REPO_MAP_FILE = "repo-map.json"
CODE_INDEX_FILE = "code-index.json"
METRICS_FILE = "metrics.json"
ARCHITECTURE_FILE = "ARCHITECTURE.md"

METRICS_TOP_N = 10

# filename -> entry point type
ENTRY_POINT_NAMES: dict[str, str] = {
    "index.html": "main",
    "sw.js": "worker",
    "service-worker.js": "worker",
    "index.js": "module",
    "main.js": "module",
    "app.js": "module",
}


def _timestamp() -> str:
    return datetime.now(UTC).isoformat()


def _round2(value: float | None) -> float:
    return round(value or 0.0, 2)


def build_used_by(dependencies: list[DependencyEdge]) -> dict[str, list[str]]:
    """Target path -> importing paths, for resolved edges only."""
    used_by: dict[str, list[str]] = defaultdict(list)
    for dep in dependencies:
        if dep.to_file:
            used_by[dep.to_file].append(dep.from_file)
    return dict(used_by)


def outgoing_counts(dependencies: list[DependencyEdge]) -> list[tuple[str, int]]:
    """(path, outgoing edge count), most connected first."""
    counts = Counter(dep.from_file for dep in dependencies if dep.from_file)
    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))


def build_insights(
    files: list[dict[str, Any]], dependencies: list[DependencyEdge]
) -> list[dict[str, Any]]:
    insights: list[dict[str, Any]] = []

    complex_files = sorted(
        (f for f in files if (f["complexity_score"] or 0) > 0),
        key=lambda f: (-f["complexity_score"], f["path"]),
    )[:INSIGHTS_TOP_N]
    if complex_files:
        insights.append(
            {
                "type": "complexity",
                "title": "Most Complex Files",
                "files": [
                    {"path": f["path"], "score": f["complexity_score"]} for f in complex_files
                ],
            }
        )

    most_connected = outgoing_counts(dependencies)[:INSIGHTS_TOP_N]
    if most_connected:
        insights.append(
            {
                "type": "connectivity",
                "title": "Most Connected Files",
                "files": [{"path": p, "dependencies": n} for p, n in most_connected],
            }
        )

    largest = sorted(files, key=lambda f: (-(f["lines_count"] or 0), f["path"]))[:INSIGHTS_TOP_N]
    insights.append(
        {
            "type": "size",
            "title": "Largest Files",
            "files": [{"path": f["path"], "lines": f["lines_count"]} for f in largest],
        }
    )
    return insights


def build_repo_map(store: RepositoryStore, repo_id: int) -> dict[str, Any]:
    """Structural snapshot: metadata, directories, files, relationships, components, insights."""
    files = store.get_all_files(repo_id)
    metrics = store.get_repository_metrics(repo_id)
    dependencies = store.get_dependency_graph(repo_id)

    directories = sorted({posixpath.dirname(f["path"]) or "." for f in files})
    files_by_path = {
        f["path"]: {
            "name": f["name"],
            "type": f["file_type"],
            "size": f["size_bytes"],
            "lines": f["lines_count"],
            "purpose": f["purpose"],
            "complexity": f["complexity_score"],
        }
        for f in files
    }
    entry_points = [
        {"file": f["path"], "type": ENTRY_POINT_NAMES[f["name"].lower()], "purpose": f["purpose"]}
        for f in files
        if f["name"].lower() in ENTRY_POINT_NAMES and posixpath.dirname(f["path"]) in ("", "src")
    ]

    return {
        "metadata": {
            "lastUpdated": _timestamp(),
            "version": ARTIFACT_VERSION,
            "totalFiles": metrics.files.total_files,
            "totalLines": metrics.files.total_lines,
            "languages": {
                lang.name: {
                    "files": lang.file_count,
                    "lines": lang.total_lines,
                    "percentage": lang.percentage,
                }
                for lang in metrics.languages
            },
        },
        "structure": {
            "directories": directories,
            "entryPoints": entry_points,
            "dependencies": len(dependencies),
        },
        "files": files_by_path,
        "relationships": {
            "dependencies": [
                {
                    "from": d.from_file,
                    "to": d.to_file,
                    "type": d.dependency_type,
                    "importPath": d.import_path,
                }
                for d in dependencies
            ],
            "usedBy": build_used_by(dependencies),
        },
        "components": store.get_component_assignments(repo_id),
        "insights": build_insights(files, dependencies),
    }


def build_code_index(store: RepositoryStore, repo_id: int) -> dict[str, Any]:
    """Function name -> location and flags; export name -> list of locations.

    When several functions share a name, the last one in path order wins.
    """
    functions: dict[str, Any] = {}
    for fn, path in store.list_functions(repo_id):
        functions[fn.name] = {
            "file": path,
            "line": fn.line_start,
            "signature": fn.signature,
            "purpose": fn.purpose,
            "async": fn.is_async,
            "exported": fn.is_exported,
            "complexity": fn.complexity,
        }

    exports: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for exp, path in store.list_exports(repo_id):
        exports[exp.exported_name].append(
            {"file": path, "line": exp.line_number, "type": exp.export_type}
        )

    return {"functions": functions, "exports": dict(exports), "lastUpdated": _timestamp()}


def build_metrics(store: RepositoryStore, repo_id: int) -> dict[str, Any]:
    """Timestamped rollup of files, functions, languages, complexity, dependencies."""
    repo = store.get_repository(repo_id)
    if repo is None:
        raise StorageError.not_found("build_metrics", "repository", repo_id)
    metrics = store.get_repository_metrics(repo_id)
    complexity = store.get_complexity_report(repo_id, top_n=METRICS_TOP_N)
    dependencies = store.get_dependency_report(repo_id)

    return {
        "timestamp": _timestamp(),
        "repository": {"name": repo.repo_name, "owner": repo.repo_owner, "url": repo.repo_url},
        "files": {
            "total": metrics.files.total_files,
            "totalLines": metrics.files.total_lines,
            "totalCodeLines": metrics.files.total_code_lines,
            "averageComplexity": _round2(metrics.files.avg_complexity),
        },
        "functions": {
            "total": metrics.functions.total_functions,
            "exported": metrics.functions.exported_functions,
            "async": metrics.functions.async_functions,
            "averageComplexity": _round2(metrics.functions.avg_complexity),
        },
        "languages": [
            {
                "name": lang.name,
                "files": lang.file_count,
                "lines": lang.total_lines,
                "percentage": _round2(lang.percentage),
            }
            for lang in metrics.languages
        ],
        "complexity": {
            "topFiles": [
                {"path": c.path, "score": c.file_complexity, "functions": c.function_count}
                for c in complexity
            ]
        },
        "dependencies": {
            "mostDependent": [
                {"path": d.path, "outgoing": d.outgoing_deps, "incoming": d.incoming_deps}
                for d in dependencies[:METRICS_TOP_N]
            ]
        },
    }


def _write_json(path: Path, payload: dict[str, Any]) -> Path:
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
    logger.info("artifact_written", path=str(path))
    return path


def write_artifacts(
    store: RepositoryStore, repo_id: int, data_dir: Path, *, top_n: int = 20
) -> list[Path]:
    """Regenerate every artifact in data_dir. Returns the written paths."""
    data_dir.mkdir(parents=True, exist_ok=True)
    written = [
        _write_json(data_dir / REPO_MAP_FILE, build_repo_map(store, repo_id)),
        _write_json(data_dir / CODE_INDEX_FILE, build_code_index(store, repo_id)),
        _write_json(data_dir / METRICS_FILE, build_metrics(store, repo_id)),
    ]
    architecture = data_dir / ARCHITECTURE_FILE
    architecture.write_text(render_architecture(store, repo_id, top_n=top_n), encoding="utf-8")
    logger.info("artifact_written", path=str(architecture))
    written.append(architecture)
    return written
