"""Import path resolution against indexed file paths.

Internal imports are joined to the importing file's directory and tried
with a fixed suffix order: exact path, ``.<importer ext>``, ``.json``,
``/index.<importer ext>``. The first existing path wins. A leading ``/`` is
taken relative to the repository root. External imports never resolve.
"""

from __future__ import annotations

import posixpath
from collections.abc import Callable, Mapping

from codeatlas.index._internal.analysis.categories import file_extension
from codeatlas.index._internal.analysis.modules import is_external

DEFAULT_SCRIPT_EXTENSION = "js"


def normalize_import_path(from_path: str, import_path: str) -> str | None:
    """Repository-relative target path for an import, or None if it leaves the root."""
    if import_path.startswith("/"):
        joined = import_path.lstrip("/")
    else:
        joined = posixpath.join(posixpath.dirname(from_path), import_path)
    normalized = posixpath.normpath(joined) if joined else "."
    if normalized == ".." or normalized.startswith("../"):
        return None
    return normalized


def candidate_paths(from_path: str, import_path: str) -> list[str]:
    """Paths to try, highest priority first."""
    base = normalize_import_path(from_path, import_path)
    if base is None:
        return []
    ext = file_extension(from_path) or DEFAULT_SCRIPT_EXTENSION
    return [base, f"{base}.{ext}", f"{base}.json", f"{base}/index.{ext}"]


def resolve_import(
    from_path: str,
    import_path: str,
    lookup: Mapping[str, int] | Callable[[str], int | None],
) -> int | None:
    """File id the import points at, or None when external or not found.

    Args:
        from_path: Repository-relative path of the importing file
        import_path: Raw module source string from the import statement
        lookup: path -> file id mapping, or a callable doing the same lookup
    """
    if is_external(import_path):
        return None
    get = lookup.get if isinstance(lookup, Mapping) else lookup
    for candidate in candidate_paths(from_path, import_path):
        file_id = get(candidate)
        if file_id is not None:
            return file_id
    return None
