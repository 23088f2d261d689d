"""Heuristic, line-oriented source analysis (not a parser)."""

from codeatlas.index._internal.analysis.analyzer import (
    AnalysisResult,
    SourceFile,
    analyze_source,
    fingerprint,
    read_source,
)
from codeatlas.index._internal.analysis.categories import (
    FileCategory,
    detect_category,
    is_config_file,
    is_test_file,
    language_label,
)
from codeatlas.index._internal.analysis.lines import LineCounts

__all__ = [
    "AnalysisResult",
    "FileCategory",
    "LineCounts",
    "SourceFile",
    "analyze_source",
    "detect_category",
    "fingerprint",
    "is_config_file",
    "is_test_file",
    "language_label",
    "read_source",
]
