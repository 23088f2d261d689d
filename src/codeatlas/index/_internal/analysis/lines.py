"""Line classification into code, comment and blank.

Each classifier is deliberately coarse and line-oriented: a line is a
comment when it *starts* with a comment marker after trimming, or lies
inside a block comment. Code after a closing delimiter on the same line
is not credited. Every classifier guarantees

    code + comment + blank == total

where total is the number of "\\n"-separated lines (an empty file has one
blank line).
"""

from __future__ import annotations

from dataclasses import dataclass

from codeatlas.index._internal.analysis.categories import CommentStyle


@dataclass(frozen=True, slots=True)
class LineCounts:
    total: int
    code: int
    comment: int
    blank: int


def split_lines(content: str) -> list[str]:
    return content.split("\n")


def _counts(total: int, comment: int, blank: int) -> LineCounts:
    return LineCounts(total=total, code=total - comment - blank, comment=comment, blank=blank)


def classify_c_style(lines: list[str]) -> LineCounts:
    """Script rules: // line comments and /* ... */ block comments."""
    blank = comment = 0
    in_block = False
    for line in lines:
        trimmed = line.strip()
        if not trimmed:
            blank += 1
        elif trimmed.startswith("//"):
            comment += 1
        elif trimmed.startswith("/*") or in_block:
            comment += 1
            in_block = True
            if "*/" in trimmed:
                in_block = False
    return _counts(len(lines), comment, blank)


def classify_block_only(lines: list[str]) -> LineCounts:
    """Stylesheet rules: only /* ... */ block comments exist."""
    blank = comment = 0
    in_block = False
    for line in lines:
        trimmed = line.strip()
        if not trimmed:
            blank += 1
        elif trimmed.startswith("/*") or in_block:
            comment += 1
            in_block = True
            if "*/" in trimmed:
                in_block = False
    return _counts(len(lines), comment, blank)


def classify_markup(lines: list[str]) -> LineCounts:
    """Markup rules: any line touching a <!-- ... --> comment counts as comment.

    Several comments may open and close on the same line; a comment left
    open carries over to the following lines.
    """
    blank = comment = 0
    in_block = False
    for line in lines:
        trimmed = line.strip()
        if not trimmed:
            blank += 1
            continue

        is_comment = False
        pos = 0
        while pos < len(trimmed):
            if not in_block:
                start = trimmed.find("<!--", pos)
                if start == -1:
                    break
                in_block = True
                is_comment = True
                pos = start + 4
            end = trimmed.find("-->", pos)
            if end == -1:
                break
            in_block = False
            is_comment = True
            pos = end + 3

        if in_block or is_comment:
            comment += 1
    return _counts(len(lines), comment, blank)


def classify_hash(lines: list[str]) -> LineCounts:
    """Config/shell rules: lines starting with # are comments."""
    blank = comment = 0
    for line in lines:
        trimmed = line.strip()
        if not trimmed:
            blank += 1
        elif trimmed.startswith("#"):
            comment += 1
    return _counts(len(lines), comment, blank)


def classify_plain(lines: list[str]) -> LineCounts:
    """No comment syntax: only blank vs code."""
    blank = sum(1 for line in lines if not line.strip())
    return _counts(len(lines), 0, blank)


_CLASSIFIERS = {
    CommentStyle.C_STYLE: classify_c_style,
    CommentStyle.BLOCK_ONLY: classify_block_only,
    CommentStyle.MARKUP: classify_markup,
    CommentStyle.HASH: classify_hash,
    CommentStyle.NONE: classify_plain,
}


def classify_lines(lines: list[str], style: CommentStyle) -> LineCounts:
    return _CLASSIFIERS[style](lines)
