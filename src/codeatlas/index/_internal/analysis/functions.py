"""Heuristic function discovery for script files.

Functions are found line by line with an ordered list of start patterns.
The first pattern whose match is not a reserved control-flow word wins.
The body extent is found by counting braces, so braces inside strings or
comments shift the detected end. Scanning resumes on the line after the
detected end, so functions nested inside a body are not reported.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from codeatlas.config.constants import EXPORT_LOOKAHEAD_LINES
from codeatlas.index._internal.analysis.complexity import estimate_complexity
from codeatlas.index._internal.analysis.purpose import infer_function_purpose
from codeatlas.index.models import FunctionData

_IDENT = r"[a-zA-Z_$][a-zA-Z0-9_$]*"

RESERVED_WORDS: frozenset[str] = frozenset(
    {"if", "for", "while", "switch", "catch", "with", "else"}
)


@dataclass(frozen=True, slots=True)
class FunctionPattern:
    """A named start-of-function pattern. Group 2 captures the function name."""

    kind: str
    regex: re.Pattern[str]

    def name_at(self, line: str) -> str | None:
        match = self.regex.match(line)
        return match.group(2) if match else None


# Order matters: the first non-reserved match wins.
FUNCTION_PATTERNS: tuple[FunctionPattern, ...] = (
    FunctionPattern("declaration", re.compile(rf"^(\s*)function\s+({_IDENT})\s*\((.*?)\)")),
    FunctionPattern("arrow", re.compile(rf"^(\s*)const\s+({_IDENT})\s*=\s*\((.*?)\)\s*=>")),
    FunctionPattern(
        "arrow_bare", re.compile(rf"^(\s*)const\s+({_IDENT})\s*=\s*({_IDENT})\s*=>")
    ),
    FunctionPattern("method", re.compile(rf"^(\s*)({_IDENT})\s*\((.*?)\)\s*\{{")),
    FunctionPattern(
        "async_declaration", re.compile(rf"^(\s*)async\s+function\s+({_IDENT})\s*\((.*?)\)")
    ),
    FunctionPattern(
        "async_arrow",
        re.compile(rf"^(\s*)const\s+({_IDENT})\s*=\s*async\s*\((.*?)\)\s*=>"),
    ),
)

_WHITESPACE_RE = re.compile(r"\s+")


def match_function_start(line: str) -> str | None:
    """Name of the function starting on this line, or None."""
    for pattern in FUNCTION_PATTERNS:
        name = pattern.name_at(line)
        if name is None or name in RESERVED_WORDS:
            continue
        return name
    return None


def find_function_end(lines: list[str], start: int) -> int:
    """0-indexed line holding the brace that closes the body opened at start.

    A single-line arrow body (``=>`` without ``{`` on the start line, not
    continuing on the next line) ends on the start line. When no closing
    brace is ever found the function is treated as one line long.
    """
    depth = 0
    seen_open = False
    for i in range(start, len(lines)):
        line = lines[i]
        for char in line:
            if char == "{":
                depth += 1
                seen_open = True
            elif char == "}":
                depth -= 1
                if seen_open and depth == 0:
                    return i
        if i == start and "=>" in line and "{" not in line:
            stripped = line.strip()
            if not stripped.endswith("(") and not stripped.endswith(","):
                return i
    return start


def is_exported(lines: list[str], index: int, name: str) -> bool:
    """Export keyword on the declaration, or a module/property export shortly after."""
    if "export" in lines[index]:
        return True
    for i in range(index, min(index + EXPORT_LOOKAHEAD_LINES, len(lines))):
        line = lines[i]
        if "module.exports" in line or f"exports.{name}" in line:
            return True
    return False


def extract_functions(lines: list[str]) -> list[FunctionData]:
    """Every function start found in lines, with extent, flags and complexity."""
    functions: list[FunctionData] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        name = match_function_start(line)
        if name is None:
            i += 1
            continue

        end = find_function_end(lines, i)
        body = lines[i : end + 1]
        leading = lines[max(0, i - 3) : i]
        functions.append(
            FunctionData(
                name=name,
                signature=_WHITESPACE_RE.sub(" ", line.strip()),
                line_start=i + 1,
                line_end=end + 1,
                is_async="async" in line,
                is_exported=is_exported(lines, i, name),
                is_arrow_function="=>" in line,
                complexity=estimate_complexity(lines, i, end),
                purpose=infer_function_purpose(name, body, leading),
            )
        )
        i = end + 1
    return functions
