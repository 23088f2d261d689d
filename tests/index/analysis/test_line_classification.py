"""Tests for line classification into code, comment and blank."""

import pytest

from codeatlas.index._internal.analysis.categories import CommentStyle
from codeatlas.index._internal.analysis.lines import (
    LineCounts,
    classify_block_only,
    classify_c_style,
    classify_hash,
    classify_lines,
    classify_markup,
    classify_plain,
    split_lines,
)


def _check_totals(counts: LineCounts) -> None:
    assert counts.code + counts.comment + counts.blank == counts.total
    assert min(counts.code, counts.comment, counts.blank) >= 0


class TestSplitLines:
    """Line splitting on "\\n"."""

    def test_empty_content_is_one_blank_line(self) -> None:
        assert split_lines("") == [""]

    def test_trailing_newline_adds_blank_line(self) -> None:
        assert split_lines("a\nb\n") == ["a", "b", ""]


class TestCStyle:
    """Script rules."""

    def test_counts_line_and_block_comments(self) -> None:
        """// and /* */ lines are comments, the rest code or blank."""
        lines = split_lines("// header\n/* a\n * b\n */\nconst x = 1;\n\nlet y;")
        counts = classify_c_style(lines)
        assert counts == LineCounts(total=7, code=2, comment=4, blank=1)

    def test_single_line_block_comment_closes(self) -> None:
        counts = classify_c_style(["/* one */", "code();"])
        assert counts.comment == 1
        assert counts.code == 1

    def test_code_after_closing_delimiter_not_credited(self) -> None:
        counts = classify_c_style(["/* note", "end */ run();"])
        assert counts.comment == 2
        assert counts.code == 0

    @pytest.mark.parametrize(
        "content",
        [
            "",
            "\n\n\n",
            "/* never closed\nstill inside\n\nmore",
            "/*",
            "*/ stray close\ncode();",
            "// only comment",
            "   \t  \n  ",
        ],
    )
    def test_pathological_inputs_keep_totals(self, content: str) -> None:
        """code + comment + blank == total for degenerate files."""
        _check_totals(classify_c_style(split_lines(content)))

    def test_unterminated_block_comment(self) -> None:
        """A file that is only an unterminated block comment has no code."""
        counts = classify_c_style(split_lines("/* open\nstill comment\nand more"))
        assert counts == LineCounts(total=3, code=0, comment=3, blank=0)

    def test_empty_file(self) -> None:
        assert classify_c_style(split_lines("")) == LineCounts(total=1, code=0, comment=0, blank=1)

    def test_only_blank_lines(self) -> None:
        counts = classify_c_style(split_lines("\n  \n\t\n"))
        assert counts == LineCounts(total=4, code=0, comment=0, blank=4)


class TestBlockOnly:
    """Stylesheet rules."""

    def test_double_slash_is_code(self) -> None:
        counts = classify_block_only(["// not a css comment", "/* real */", "a { color: red; }"])
        assert counts.code == 2
        assert counts.comment == 1

    def test_multi_line_block(self) -> None:
        counts = classify_block_only(["/*", " theme", "*/", "body {}"])
        assert counts == LineCounts(total=4, code=1, comment=3, blank=0)


class TestMarkup:
    """HTML comment rules."""

    def test_inline_comment_counts_whole_line(self) -> None:
        counts = classify_markup(["<div>", "<!-- note --> <p>x</p>", "</div>"])
        assert counts.comment == 1
        assert counts.code == 2

    def test_open_comment_carries_over(self) -> None:
        counts = classify_markup(["<!-- start", "middle", "end -->", "<p></p>"])
        assert counts == LineCounts(total=4, code=1, comment=3, blank=0)

    def test_several_comments_on_one_line(self) -> None:
        counts = classify_markup(["<!-- a --><b/><!-- c", "still -->"])
        assert counts.comment == 2

    @pytest.mark.parametrize("content", ["", "<!--", "-->", "<!-- <!-- -->", "\n<!---->\n"])
    def test_pathological_inputs_keep_totals(self, content: str) -> None:
        _check_totals(classify_markup(split_lines(content)))


class TestHashAndPlain:
    """Config/shell and comment-less rules."""

    def test_hash_comments(self) -> None:
        counts = classify_hash(["# comment", "key: value", "", "  # indented"])
        assert counts == LineCounts(total=4, code=1, comment=2, blank=1)

    def test_plain_has_no_comments(self) -> None:
        counts = classify_plain(['{"a": 1}', "", "// not special"])
        assert counts == LineCounts(total=3, code=2, comment=0, blank=1)


class TestClassifyLines:
    """Dispatch by comment style."""

    @pytest.mark.parametrize("style", list(CommentStyle))
    def test_every_style_keeps_totals(self, style: CommentStyle) -> None:
        lines = split_lines("/* x\n# y\n<!-- z -->\n\ncode\n*/")
        counts = classify_lines(lines, style)
        assert counts.total == len(lines)
        _check_totals(counts)
