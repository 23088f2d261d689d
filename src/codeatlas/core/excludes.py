"""Built-in exclusion lists shared by the walker and ``atlas init``.

``HARDCODED_DIRS`` are never entered and cannot be re-included.
``DEFAULT_PRUNABLE_DIRS`` hold installed dependencies and generated output;
a repository can opt one back in with a ``!name/`` line in ``.atlasignore``.
``DEFAULT_EXCLUDE_GLOBS`` are root-relative POSIX globs for files no scan
should analyze.
"""

from __future__ import annotations

HARDCODED_DIRS: frozenset[str] = frozenset({".git", ".svn", ".hg", ".bzr", ".codeatlas"})

_DEPENDENCY_DIRS = (
    "node_modules",
    "bower_components",
    ".npm",
    ".yarn",
    ".pnpm-store",
    "venv",
    ".venv",
    "__pycache__",
    ".tox",
    ".pytest_cache",
    ".mypy_cache",
    ".ruff_cache",
    "site-packages",
)
_GENERATED_DIRS = (
    "dist",
    "build",
    "out",
    ".next",
    ".nuxt",
    ".turbo",
    "coverage",
    ".nyc_output",
    "htmlcov",
    "backups",
)
_EDITOR_DIRS = (".idea", ".vscode")

DEFAULT_PRUNABLE_DIRS: frozenset[str] = frozenset(
    _DEPENDENCY_DIRS + _GENERATED_DIRS + _EDITOR_DIRS
)

PRUNABLE_DIRS: frozenset[str] = HARDCODED_DIRS | DEFAULT_PRUNABLE_DIRS

# Files SQLite writes next to a store
SQLITE_SIDECAR_SUFFIXES: tuple[str, ...] = ("-wal", "-shm", "-journal")


def is_hardcoded_dir(dirname: str) -> bool:
    return dirname in HARDCODED_DIRS


_BINARY_SUFFIXES = (
    "png", "jpg", "jpeg", "gif", "ico", "webp",
    "woff", "woff2", "ttf", "eot",
    "zip", "gz", "pdf",
)  # fmt: skip

DEFAULT_EXCLUDE_GLOBS: tuple[str, ...] = (
    "*.min.*",
    # Stores and their sidecars, wherever they live
    "*.db",
    "*.db-wal",
    "*.db-shm",
    "*.sqlite",
    "*.sqlite3",
    ".github/agents/*",
    *(f"*.{suffix}" for suffix in _BINARY_SUFFIXES),
    ".DS_Store",
    "Thumbs.db",
)

# Active lines of the .atlasignore written by `atlas init`
STARTER_IGNORE_PATTERNS: tuple[str, ...] = (
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "*.map",
)


def generate_atlasignore_template() -> str:
    """Body of a fresh ``.atlasignore``: a short usage note, then the starter patterns."""
    header = [
        "# CodeAtlas ignore patterns (gitignore-style globs)",
        "# Use !dirname/ to opt-in directories that are excluded by default.",
        "# Example: !build/ to index the build directory.",
        "",
    ]
    return "\n".join([*header, *STARTER_IGNORE_PATTERNS]) + "\n"


__all__ = [
    "HARDCODED_DIRS",
    "DEFAULT_PRUNABLE_DIRS",
    "PRUNABLE_DIRS",
    "SQLITE_SIDECAR_SUFFIXES",
    "DEFAULT_EXCLUDE_GLOBS",
    "STARTER_IGNORE_PATTERNS",
    "is_hardcoded_dir",
    "generate_atlasignore_template",
]
