"""Textual cyclomatic-complexity estimate.

Counts decision tokens anywhere in the text, including inside strings and
comments. ``else if`` is counted on top of the ``if`` it contains, so one
``else if`` adds two.
"""

from __future__ import annotations

import re

DECISION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bif\b"),
    re.compile(r"\belse\s+if\b"),
    re.compile(r"\bfor\b"),
    re.compile(r"\bwhile\b"),
    re.compile(r"\bcase\b"),
    re.compile(r"\bcatch\b"),
    re.compile(r"&&"),
    re.compile(r"\|\|"),
    re.compile(r"\?"),
)


def decision_points(text: str) -> int:
    return sum(len(pattern.findall(text)) for pattern in DECISION_PATTERNS)


def estimate_complexity(lines: list[str], start: int = 0, end: int | None = None) -> int:
    """Complexity of lines[start:end + 1] (0-indexed, inclusive). Never below 1."""
    stop = len(lines) if end is None else end + 1
    return 1 + decision_points("\n".join(lines[start:stop]))
