"""Repository walk: enumerate indexable files under a root."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from codeatlas.index._internal.ignore import IgnoreChecker

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class DiscoveredFile:
    rel_path: str  # POSIX, relative to the root
    abs_path: Path
    size_bytes: int


@dataclass
class WalkResult:
    files: list[DiscoveredFile] = field(default_factory=list)
    too_large: list[str] = field(default_factory=list)
    ignored_count: int = 0


def _walk_with_pruning(root: Path, checker: IgnoreChecker) -> list[tuple[str, str]]:
    """Walk all files, pruning ignored directories. Returns (rel_dir_posix, filename)."""
    results: list[tuple[str, str]] = []
    for dirpath, dirnames, filenames in os.walk(root):
        rel_dir_path = Path(dirpath).relative_to(root)
        rel_dir_posix = str(rel_dir_path).replace("\\", "/")
        if rel_dir_posix == ".":
            rel_dir_posix = ""
        dirnames[:] = sorted(
            d
            for d in dirnames
            if not checker.should_prune_dir(d)
            and not checker.is_excluded_rel(f"{rel_dir_posix}/{d}/" if rel_dir_posix else f"{d}/")
        )
        for filename in sorted(filenames):
            results.append((rel_dir_posix, filename))
    return results


def walk_repository(root: Path, checker: IgnoreChecker, *, max_file_size: int) -> WalkResult:
    """Every non-ignored regular file under root, sorted by path within each directory.

    Files larger than max_file_size bytes are reported in ``too_large``
    instead of ``files``. Symlinks are not followed.
    """
    result = WalkResult()
    for rel_dir, filename in _walk_with_pruning(root, checker):
        rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
        if checker.is_excluded_rel(rel_path):
            result.ignored_count += 1
            continue
        abs_path = root / rel_path
        if abs_path.is_symlink() or not abs_path.is_file():
            result.ignored_count += 1
            continue
        try:
            size = abs_path.stat().st_size
        except OSError:
            result.ignored_count += 1
            continue
        if size > max_file_size:
            result.too_large.append(rel_path)
            logger.info("file_skipped_too_large", path=rel_path, size_bytes=size)
            continue
        result.files.append(DiscoveredFile(rel_path=rel_path, abs_path=abs_path, size_bytes=size))
    logger.debug(
        "repository_walked",
        root=str(root),
        files=len(result.files),
        ignored=result.ignored_count,
        too_large=len(result.too_large),
    )
    return result
