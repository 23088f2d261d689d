"""Purpose inference: short advisory descriptions for files and functions."""

from __future__ import annotations

import re
from pathlib import PurePosixPath

from codeatlas.config.constants import PURPOSE_COMMENT_MIN_CHARS

# (exact lowercase filename, purpose)
FILENAME_PURPOSES: dict[str, str] = {
    "index.html": "Main application entry point",
    "sw.js": "Service worker for offline support",
    "manifest.json": "Web app manifest configuration",
    "package.json": "Node.js package configuration",
    "package-lock.json": "Node.js dependency lock file",
    "tsconfig.json": "TypeScript compiler configuration",
    ".gitignore": "Git ignore patterns",
    ".atlasignore": "Code index ignore patterns",
    "readme.md": "Project documentation",
    "changelog.md": "Release history",
    "contributing.md": "Contribution guidelines",
    "license": "License text",
    "license.md": "License text",
    "dockerfile": "Container image definition",
    "makefile": "Build automation rules",
}

# (extension, generic purpose) checked after every specific rule
EXTENSION_PURPOSES: dict[str, str] = {
    "js": "JavaScript module",
    "mjs": "JavaScript module",
    "cjs": "JavaScript module",
    "jsx": "JavaScript module",
    "ts": "TypeScript module",
    "tsx": "TypeScript module",
    "html": "HTML page",
    "css": "Stylesheet",
    "scss": "Stylesheet",
    "md": "Markdown documentation",
    "json": "JSON data",
    "yml": "YAML configuration",
    "yaml": "YAML configuration",
    "sh": "Shell script",
    "sql": "Database schema definition",
}

# (prefix, template); {} receives the name words with the prefix word removed
NAME_PREFIX_TEMPLATES: tuple[tuple[str, str], ...] = (
    ("init", "Initializes {}"),
    ("get", "Retrieves {}"),
    ("set", "Sets {}"),
    ("create", "Creates {}"),
    ("update", "Updates {}"),
    ("load", "Loads {}"),
    ("save", "Saves {}"),
    ("validate", "Validates {}"),
    ("check", "Checks {}"),
)

_CAPITAL_RE = re.compile(r"([A-Z])")
_REMOVE_RE = re.compile(r"delete |remove ")
_LINE_COMMENT_RE = re.compile(r"^//\s*")
_STAR_COMMENT_RE = re.compile(r"^\*\s*")


def infer_file_purpose(path: str) -> str:
    """Guess a file's role from its name, directory and extension."""
    p = PurePosixPath(path)
    filename = p.name.lower()
    dirname = p.parent.as_posix()

    if filename in FILENAME_PURPOSES:
        return FILENAME_PURPOSES[filename]
    if "service-worker" in filename:
        return "Service worker for offline support"
    if ".github/workflows" in path:
        return "GitHub Actions workflow"
    if "docs" in dirname:
        return "Documentation file"

    ext = p.suffix[1:].lower() if p.suffix else ""
    if ext in EXTENSION_PURPOSES:
        return EXTENSION_PURPOSES[ext]
    return "Repository file"


def name_words(name: str) -> str:
    """camelCase identifier to lowercase space-separated words."""
    return _CAPITAL_RE.sub(r" \1", name).strip().lower()


def _comment_text(lines: list[str]) -> str | None:
    for raw in lines[:3]:
        line = raw.strip()
        if line.startswith("//") or line.startswith("*"):
            text = _STAR_COMMENT_RE.sub("", _LINE_COMMENT_RE.sub("", line, count=1), count=1)
            text = text.strip()
            if len(text) > PURPOSE_COMMENT_MIN_CHARS:
                return text
    return None


def infer_function_purpose(
    name: str, body: list[str], leading: list[str] | None = None
) -> str:
    """Guess what a function does.

    Name prefixes map to templated phrases. Otherwise a comment in the lines
    just above the function or in its first lines is used, and finally a
    generic label.
    """
    words = name_words(name)

    for prefix, template in NAME_PREFIX_TEMPLATES:
        if name.startswith(prefix):
            return template.format(words.replace(f"{prefix} ", "", 1))
    if name.startswith("delete") or name.startswith("remove"):
        return f"Removes {_REMOVE_RE.sub('', words, count=1)}"
    if name.startswith("is"):
        return f"Checks if {words.replace('is ', '', 1)}"
    if name.startswith("has"):
        return f"Checks if has {words.replace('has ', '', 1)}"
    if name.startswith("handle"):
        return f"Handles {words.replace('handle ', '', 1)} event"
    if name.startswith("on"):
        return f"Event handler for {words.replace('on ', '', 1)}"
    if "Event" in name:
        return f"Event handler for {words}"

    comment = _comment_text(leading or []) or _comment_text(body)
    if comment:
        return comment
    return f"Function: {words}"
