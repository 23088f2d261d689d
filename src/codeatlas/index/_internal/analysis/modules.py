"""Import and export statement extraction for script files.

Every line is trimmed and tested independently of function discovery.
Multi-line import lists are not joined, so only their first line is seen.
"""

from __future__ import annotations

import re

from codeatlas.index.models import ExportData, ExportKind, ImportData, ImportKind

_IDENT = r"[a-zA-Z_$][a-zA-Z0-9_$]*"

ES_IMPORT_RE = re.compile(r"import\s+(.+?)\s+from\s+['\"](.+?)['\"]")
CJS_REQUIRE_RE = re.compile(r"(?:const|let|var)\s+(.+?)\s*=\s*require\(['\"](.+?)['\"]\)")
BRACED_RE = re.compile(r"\{(.+?)\}")

EXPORT_DEFAULT_RE = re.compile(r"export\s+default\s+(.+?)(?:;|$)")
EXPORT_LIST_RE = re.compile(r"export\s+\{(.+?)\}")
EXPORT_DECL_RE = re.compile(rf"export\s+(?:function|const|let|var|class)\s+({_IDENT})")
MODULE_EXPORTS_RE = re.compile(r"module\.exports\s*=\s*(.+?)(?:;|$)")


def is_external(source: str) -> bool:
    """A module source outside the repository (no relative or absolute marker)."""
    return not source.startswith(".") and not source.startswith("/")


def _braced_items(clause: str) -> list[str]:
    match = BRACED_RE.search(clause)
    if not match:
        return []
    return [item.strip() for item in match.group(1).split(",")]


def extract_imports(lines: list[str]) -> list[ImportData]:
    imports: list[ImportData] = []
    for index, raw in enumerate(lines):
        line = raw.strip()
        line_number = index + 1

        es = ES_IMPORT_RE.search(line)
        if es:
            clause, source = es.group(1), es.group(2)
            if "{" in clause:
                kind = ImportKind.NAMED
                items = _braced_items(clause)
            elif "*" in clause:
                kind = ImportKind.NAMESPACE
                items = [clause.strip()]
            else:
                kind = ImportKind.DEFAULT
                items = [clause.strip()]
            imports.append(
                ImportData(
                    imported_from=source,
                    imported_items=items,
                    import_type=kind,
                    line_number=line_number,
                    is_external=is_external(source),
                )
            )

        cjs = CJS_REQUIRE_RE.search(line)
        if cjs:
            clause, source = cjs.group(1), cjs.group(2)
            items = _braced_items(clause) if "{" in clause else [clause.strip()]
            imports.append(
                ImportData(
                    imported_from=source,
                    imported_items=items,
                    import_type=ImportKind.DEFAULT,
                    line_number=line_number,
                    is_external=is_external(source),
                )
            )
    return imports


def extract_exports(lines: list[str]) -> list[ExportData]:
    exports: list[ExportData] = []
    for index, raw in enumerate(lines):
        line = raw.strip()
        line_number = index + 1

        if line.startswith("export default"):
            match = EXPORT_DEFAULT_RE.search(line)
            if match:
                target = match.group(1).strip()
                exports.append(_export(target, ExportKind.DEFAULT, line_number))
        elif line.startswith("export {"):
            match = EXPORT_LIST_RE.search(line)
            if match:
                for item in match.group(1).split(","):
                    exports.append(_export(item.strip(), ExportKind.NAMED, line_number))
        elif line.startswith("export "):
            match = EXPORT_DECL_RE.search(line)
            if match:
                exports.append(_export(match.group(1), ExportKind.NAMED, line_number))
        elif line.startswith("module.exports"):
            match = MODULE_EXPORTS_RE.search(line)
            if match:
                target = match.group(1).strip()
                exports.append(_export(target, ExportKind.DEFAULT, line_number))
    return exports


def _export(name: str, kind: ExportKind, line_number: int) -> ExportData:
    return ExportData(exported_name=name, export_type=kind, line_number=line_number, ref_to=name)
