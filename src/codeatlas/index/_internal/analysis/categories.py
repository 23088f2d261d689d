"""File category and language label definitions.

This module defines the authoritative mapping of:
- File extensions → analyzer category (script, markup, stylesheet, doc, config, data, shell)
- File extensions → human-readable language label stored on each File row
- Test file patterns used for component tagging

Design decisions:
1. Extensions are matched case-insensitively, without the leading dot
2. A file without an extension gets the label "Unknown" and the TEXT category
3. Only SCRIPT files get function/import/export extraction; every other
   category produces line counts and a purpose string only
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from fnmatch import fnmatch
from pathlib import PurePosixPath


class FileCategory(str, Enum):
    """Analyzer dispatch category."""

    SCRIPT = "script"
    MARKUP = "markup"
    STYLESHEET = "stylesheet"
    DOC = "doc"
    CONFIG = "config"
    DATA = "data"
    SHELL = "shell"
    TEXT = "text"


class CommentStyle(str, Enum):
    """Comment delimiter family used for line classification."""

    C_STYLE = "c_style"  # // and /* */
    BLOCK_ONLY = "block_only"  # /* */
    MARKUP = "markup"  # <!-- -->
    HASH = "hash"  # #
    NONE = "none"


@dataclass(frozen=True, slots=True)
class FileKind:
    """Canonical definition for one group of extensions.

    Attributes:
        label: Language label stored in files.file_type and languages.name
        extensions: Lowercase extensions without dot
        category: Analyzer dispatch category
        comments: Comment delimiter family for line classification
    """

    label: str
    extensions: frozenset[str]
    category: FileCategory
    comments: CommentStyle


ALL_KINDS: tuple[FileKind, ...] = (
    FileKind(
        "JavaScript",
        frozenset({"js", "mjs", "cjs", "jsx"}),
        FileCategory.SCRIPT,
        CommentStyle.C_STYLE,
    ),
    FileKind("TypeScript", frozenset({"ts", "tsx"}), FileCategory.SCRIPT, CommentStyle.C_STYLE),
    FileKind("HTML", frozenset({"html", "htm"}), FileCategory.MARKUP, CommentStyle.MARKUP),
    FileKind("XML", frozenset({"xml", "svg"}), FileCategory.MARKUP, CommentStyle.MARKUP),
    FileKind("CSS", frozenset({"css"}), FileCategory.STYLESHEET, CommentStyle.BLOCK_ONLY),
    FileKind("SCSS", frozenset({"scss", "less"}), FileCategory.STYLESHEET, CommentStyle.C_STYLE),
    FileKind("Markdown", frozenset({"md", "markdown"}), FileCategory.DOC, CommentStyle.MARKUP),
    FileKind("Text", frozenset({"txt", "rst"}), FileCategory.DOC, CommentStyle.NONE),
    FileKind("JSON", frozenset({"json"}), FileCategory.CONFIG, CommentStyle.NONE),
    FileKind("YAML", frozenset({"yml", "yaml"}), FileCategory.CONFIG, CommentStyle.HASH),
    FileKind("TOML", frozenset({"toml", "ini", "cfg"}), FileCategory.CONFIG, CommentStyle.HASH),
    FileKind("Shell", frozenset({"sh", "bash", "zsh"}), FileCategory.SHELL, CommentStyle.HASH),
    FileKind("SQL", frozenset({"sql"}), FileCategory.DATA, CommentStyle.NONE),
    FileKind("CSV", frozenset({"csv", "tsv"}), FileCategory.DATA, CommentStyle.NONE),
)

_BY_EXTENSION: dict[str, FileKind] = {ext: kind for kind in ALL_KINDS for ext in kind.extensions}

# Config files recognized by name regardless of extension
CONFIG_FILENAMES: frozenset[str] = frozenset(
    {
        "package.json",
        "package-lock.json",
        "tsconfig.json",
        "jsconfig.json",
        "manifest.json",
        ".gitignore",
        ".gitattributes",
        ".editorconfig",
        ".eslintrc",
        ".eslintrc.json",
        ".prettierrc",
        ".atlasignore",
        ".npmrc",
        ".nvmrc",
    }
)

TEST_PATTERNS: tuple[str, ...] = (
    "*.test.js",
    "*.test.ts",
    "*.spec.js",
    "*.spec.ts",
    "*.test.mjs",
    "*.spec.mjs",
    "test_*.js",
    "tests/*",
    "test/*",
    "__tests__/*",
    "*/tests/*",
    "*/test/*",
    "*/__tests__/*",
)


def file_extension(path: str) -> str:
    """Extension without dot, lowercased; empty string when there is none."""
    suffix = PurePosixPath(path).suffix
    return suffix[1:].lower() if suffix else ""


def get_kind(path: str) -> FileKind | None:
    return _BY_EXTENSION.get(file_extension(path))


def language_label(path: str) -> str:
    """Label stored as the File's type and used for language aggregates.

    Known extensions map to a canonical label; unknown extensions are used
    verbatim; files without extension are "Unknown".
    """
    kind = get_kind(path)
    if kind is not None:
        return kind.label
    ext = file_extension(path)
    return ext if ext else "Unknown"


def detect_category(path: str) -> FileCategory:
    kind = get_kind(path)
    if kind is not None:
        return kind.category
    if PurePosixPath(path).name.lower() in CONFIG_FILENAMES:
        return FileCategory.CONFIG
    return FileCategory.TEXT


def comment_style(path: str) -> CommentStyle:
    kind = get_kind(path)
    if kind is not None:
        return kind.comments
    if PurePosixPath(path).name.startswith("."):
        return CommentStyle.HASH
    return CommentStyle.NONE


def is_config_file(path: str) -> bool:
    """True for config-category files and well-known config filenames."""
    name = PurePosixPath(path).name.lower()
    return name in CONFIG_FILENAMES or detect_category(path) == FileCategory.CONFIG


def is_test_file(path: str) -> bool:
    """Check if a repository-relative POSIX path looks like a test file.

    Patterns containing ``/`` are matched against the full path; the others
    against the filename only.
    """
    name = PurePosixPath(path).name
    for pattern in TEST_PATTERNS:
        if "/" in pattern:
            if fnmatch(path, pattern):
                return True
        elif fnmatch(name, pattern):
            return True
    return False
