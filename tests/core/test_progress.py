"""Status lines, progress bars and console-log suppression."""

from __future__ import annotations

import logging
import sys
from io import StringIO
from unittest.mock import patch

from rich.console import Console

from codeatlas.core.logging import ConsoleSuppressingFilter
from codeatlas.core.progress import (
    _PROGRESS_THRESHOLD,
    _STYLES,
    _is_tty,
    is_console_suppressed,
    pluralize,
    progress,
    status,
    suppress_console_logs,
)


class TestIsTty:
    """Tests for _is_tty function."""

    def test_false_for_stringio(self) -> None:
        """Returns False for non-TTY stderr."""
        original = sys.stderr
        try:
            sys.stderr = StringIO()
            assert _is_tty() is False
        finally:
            sys.stderr = original


class TestStatus:
    """Tests for status function."""

    def test_styles(self) -> None:
        assert set(_STYLES) == {"success", "error", "info", "warning", "none"}

    def test_success_style(self) -> None:
        """Applies success style."""
        with patch("codeatlas.core.progress._console") as mock_console:
            status("Done", style="success")
            call_args = mock_console.print.call_args[0][0]
            assert "✓" in call_args
            assert call_args.endswith("Done")

    def test_with_indent(self) -> None:
        with patch("codeatlas.core.progress._console") as mock_console:
            status("Indented", style="none", indent=4)
            assert mock_console.print.call_args[0][0] == "    Indented"

    def test_unknown_style_has_no_prefix(self) -> None:
        with patch("codeatlas.core.progress._console") as mock_console:
            status("Plain", style="sparkly")
            assert mock_console.print.call_args[0][0] == "Plain"


class TestProgress:
    """Tests for progress generator."""

    def test_yields_all_items(self) -> None:
        items = list(range(_PROGRESS_THRESHOLD + 5))
        assert list(progress(items, desc="Indexing")) == items

    def test_iterator_with_total(self) -> None:
        """Works with an iterator that has no len()."""
        assert list(progress(iter([1, 2, 3]), total=3)) == [1, 2, 3]

    def test_generator_without_total(self) -> None:
        assert list(progress(x * 2 for x in range(3))) == [0, 2, 4]

    def test_bar_labels_current_item(self) -> None:
        """On a TTY the bar runs with console logs suppressed."""
        seen: list[bool] = []
        labels: list[str] = []

        def label(item: int) -> str:
            labels.append(f"item-{item}")
            return labels[-1]

        console = Console(file=StringIO(), force_terminal=False)
        with (
            patch("codeatlas.core.progress._is_tty", return_value=True),
            patch("codeatlas.core.progress._console", console),
        ):
            for _ in progress([1, 2], desc="Indexing", force=True, label=label):
                seen.append(is_console_suppressed())

        assert seen == [True, True]
        assert labels == ["item-1", "item-2"]
        assert not is_console_suppressed()

    def test_below_threshold_on_tty_is_plain(self) -> None:
        with patch("codeatlas.core.progress._is_tty", return_value=True):
            for _ in progress([1, 2, 3], label=str):
                assert not is_console_suppressed()


class TestConsoleSuppression:
    """Console handlers go quiet while a progress bar is live."""

    def test_context_manager(self) -> None:
        assert not is_console_suppressed()
        with suppress_console_logs():
            assert is_console_suppressed()
        assert not is_console_suppressed()

    def test_filter(self) -> None:
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        log_filter = ConsoleSuppressingFilter()
        assert log_filter.filter(record)
        with suppress_console_logs():
            assert not log_filter.filter(record)


class TestPluralize:
    """Tests for pluralize function."""

    def test_singular_count_one(self) -> None:
        assert pluralize(1, "file") == "1 file"

    def test_plural_count_zero(self) -> None:
        assert pluralize(0, "file") == "0 files"

    def test_custom_plural(self) -> None:
        """Uses custom plural form when provided."""
        assert pluralize(2, "entry", "entries") == "2 entries"
        assert pluralize(1, "entry", "entries") == "1 entry"
