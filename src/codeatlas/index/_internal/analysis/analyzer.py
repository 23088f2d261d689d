"""Per-file analysis dispatch.

``analyze_source`` is a pure function of (path, content). ``read_source``
does the I/O and turns read/decode failures into AnalysisError so the
indexer can count them and move on.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from codeatlas.core.errors import AnalysisError
from codeatlas.index._internal.analysis.categories import (
    FileCategory,
    comment_style,
    detect_category,
    file_extension,
    language_label,
)
from codeatlas.index._internal.analysis.functions import extract_functions
from codeatlas.index._internal.analysis.lines import LineCounts, classify_lines, split_lines
from codeatlas.index._internal.analysis.modules import extract_exports, extract_imports
from codeatlas.index._internal.analysis.purpose import infer_file_purpose
from codeatlas.index.models import ExportData, FileData, FunctionData, ImportData


@dataclass
class SourceFile:
    """Raw file content plus the facts taken from disk."""

    path: str
    content: str
    size_bytes: int
    hash: str


@dataclass
class AnalysisResult:
    """Structural summary of one file."""

    path: str
    category: FileCategory
    language: str
    lines: LineCounts
    purpose: str
    complexity: int = 0
    functions: list[FunctionData] = field(default_factory=list)
    imports: list[ImportData] = field(default_factory=list)
    exports: list[ExportData] = field(default_factory=list)

    def to_file_data(self, source: SourceFile) -> FileData:
        """File row values for this analysis."""
        ext = file_extension(self.path)
        return FileData(
            name=PurePosixPath(self.path).name,
            path=self.path,
            file_type=self.language,
            extension=ext or None,
            size_bytes=source.size_bytes,
            lines_count=self.lines.total,
            code_lines=self.lines.code,
            comment_lines=self.lines.comment,
            blank_lines=self.lines.blank,
            hash=source.hash,
            purpose=self.purpose,
            complexity_score=self.complexity,
        )


def fingerprint(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def read_source(abs_path: Path, rel_path: str) -> SourceFile:
    """Read a file as UTF-8. Raises AnalysisError when unreadable or not text."""
    try:
        data = abs_path.read_bytes()
    except OSError as e:
        raise AnalysisError.unreadable(rel_path, str(e)) from e
    try:
        content = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise AnalysisError.undecodable(rel_path) from e
    return SourceFile(path=rel_path, content=content, size_bytes=len(data), hash=fingerprint(data))


def analyze_source(path: str, content: str) -> AnalysisResult:
    """Line counts and purpose for every file; functions, imports, exports for scripts.

    A script's complexity is the sum of its functions' complexities; other
    categories score 0.
    """
    lines = split_lines(content)
    category = detect_category(path)
    result = AnalysisResult(
        path=path,
        category=category,
        language=language_label(path),
        lines=classify_lines(lines, comment_style(path)),
        purpose=infer_file_purpose(path),
    )
    if category == FileCategory.SCRIPT:
        result.functions = extract_functions(lines)
        result.imports = extract_imports(lines)
        result.exports = extract_exports(lines)
        result.complexity = sum(fn.complexity for fn in result.functions)
    return result
