"""Index module - repository code index.

This module provides:
- Storage schema: SQLModel tables plus FTS5 indexes, triggers and views
- Storage access: RepositoryStore, the typed read/write boundary
- Heuristic analysis: line classification, functions, imports, exports
- Scanning: RepositoryIndexer walks a tree and persists it

Scan orchestration is in `codeatlas.index.ops`:
- RepositoryIndexer: walk, analyze, persist, link, roll up
- ScanResult, ScanAccumulator: result and counter types

Internal implementations are in `codeatlas.index._internal/`.
"""

from codeatlas.index.models import (
    Component,
    ComponentType,
    Dependency,
    DependencyKind,
    ExportData,
    ExportKind,
    ExportRecord,
    FileComponent,
    FileData,
    FileRecord,
    FunctionData,
    FunctionRecord,
    ImportData,
    ImportKind,
    ImportRecord,
    Language,
    RepositoryMetadata,
    RepositoryMetrics,
    ScanHistory,
    ScanKind,
    ScanStatus,
    SearchResults,
)
from codeatlas.index.store import RepositoryStore

__all__ = [
    "Component",
    "ComponentType",
    "Dependency",
    "DependencyKind",
    "ExportData",
    "ExportKind",
    "ExportRecord",
    "FileComponent",
    "FileData",
    "FileRecord",
    "FunctionData",
    "FunctionRecord",
    "ImportData",
    "ImportKind",
    "ImportRecord",
    "Language",
    "RepositoryMetadata",
    "RepositoryMetrics",
    "RepositoryStore",
    "ScanHistory",
    "ScanKind",
    "ScanStatus",
    "SearchResults",
]
