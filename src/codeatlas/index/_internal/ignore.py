"""Which directories a scan descends into and which files it analyzes.

Rules come from four places, checked in this order:

1. ``HARDCODED_DIRS`` (``.git``, ``.codeatlas``): never scanned, no override.
2. ``DEFAULT_PRUNABLE_DIRS`` (``node_modules``, ``dist`` ...): skipped unless
   a root ``.atlasignore`` line such as ``!build/`` opts the directory in.
3. ``DEFAULT_EXCLUDE_GLOBS``: minified bundles, databases, binaries.
4. ``.atlasignore`` files anywhere in the tree plus configured patterns.

Patterns are fnmatch globs. A trailing ``/`` matches everything below the
directory, a leading ``!`` re-includes, and a pattern without ``/`` also
matches a bare file name at any depth.
"""

from __future__ import annotations

import fnmatch
from pathlib import Path, PurePosixPath

from codeatlas.core.excludes import (
    DEFAULT_EXCLUDE_GLOBS,
    DEFAULT_PRUNABLE_DIRS,
    PRUNABLE_DIRS,
    SQLITE_SIDECAR_SUFFIXES,
    is_hardcoded_dir,
)


class IgnoreChecker:
    """Exclusion rules for one repository root.

    ``excluded_paths`` names absolute files that must never be analyzed, such
    as a store kept inside the tree; their SQLite sidecars are excluded too.
    """

    IGNORE_FILE_NAME = ".atlasignore"

    def __init__(
        self,
        root: Path,
        extra_patterns: list[str] | None = None,
        *,
        excluded_paths: list[Path] | None = None,
    ) -> None:
        self._root = root
        self._includes: list[str] = []
        self._excludes: list[str] = [f"{d}/**" for d in sorted(DEFAULT_PRUNABLE_DIRS)]
        self._excludes.extend(DEFAULT_EXCLUDE_GLOBS)
        self._opted_in_dirs: set[str] = set()
        self._excluded_files: set[str] = set()

        for ignore_file, scope in self._find_ignore_files():
            for line in _read_pattern_lines(ignore_file):
                self._add_pattern(line, scope)
        for pattern in extra_patterns or []:
            self._add_pattern(pattern, "")
        for path in excluded_paths or []:
            self._exclude_file(path)

    def should_prune_dir(self, dirname: str) -> bool:
        """True when the walker must not descend into ``dirname``."""
        if is_hardcoded_dir(dirname):
            return True
        return dirname in DEFAULT_PRUNABLE_DIRS and dirname not in self._opted_in_dirs

    def is_excluded_rel(self, rel_path: str) -> bool:
        """Whether the root-relative path ``rel_path`` is left out of the scan."""
        posix = rel_path.replace("\\", "/")
        if posix in self._excluded_files:
            return True

        path = PurePosixPath(posix)
        if any(is_hardcoded_dir(part) for part in path.parts[:-1]):
            return True
        if any(_matches(posix, path.name, pattern) for pattern in self._includes):
            return False

        ancestors = [p.as_posix() for p in path.parents if p != PurePosixPath(".")]
        for pattern in self._excludes:
            if _matches(posix, path.name, pattern):
                return True
            if any(fnmatch.fnmatch(ancestor, pattern) for ancestor in ancestors):
                return True
        return False

    def _find_ignore_files(self) -> list[tuple[Path, str]]:
        """Every ``.atlasignore`` with the directory its patterns are scoped to."""
        found: list[tuple[Path, str]] = []
        for dirpath, dirnames, filenames in self._root.walk():
            dirnames[:] = sorted(d for d in dirnames if d not in PRUNABLE_DIRS)
            if self.IGNORE_FILE_NAME in filenames:
                rel_dir = dirpath.relative_to(self._root).as_posix()
                scope = "" if rel_dir == "." else rel_dir
                found.append((dirpath / self.IGNORE_FILE_NAME, scope))
        return found

    def _add_pattern(self, line: str, scope: str) -> None:
        negated = line.startswith("!")
        body = line[1:] if negated else line

        # Only a root-level "!name/" can opt a default-pruned directory back in
        dir_name = body.rstrip("/")
        if negated and not scope and dir_name and "/" not in dir_name and "*" not in dir_name:
            self._opted_in_dirs.add(dir_name)

        pattern = body + "**" if body.endswith("/") else body
        if scope:
            pattern = f"{scope}/{pattern}"
        (self._includes if negated else self._excludes).append(pattern)

    def _exclude_file(self, path: Path) -> None:
        try:
            rel = path.resolve().relative_to(self._root.resolve()).as_posix()
        except ValueError:
            return
        self._excluded_files.add(rel)
        self._excluded_files.update(rel + suffix for suffix in SQLITE_SIDECAR_SUFFIXES)


def _read_pattern_lines(path: Path) -> list[str]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return []
    stripped = (line.strip() for line in text.splitlines())
    return [line for line in stripped if line and not line.startswith("#")]


def _matches(rel_path: str, name: str, pattern: str) -> bool:
    if fnmatch.fnmatch(rel_path, pattern):
        return True
    return "/" not in pattern and fnmatch.fnmatch(name, pattern)
