"""Terminal feedback for scans and the other atlas commands.

Everything here writes to stderr so that command results on stdout stay
pipeable. A scan over more than ``_PROGRESS_THRESHOLD`` files on a TTY gets a
transient bar naming the file being analyzed; anywhere else the same call is
a plain pass-through that leaves a pair of debug events in the log.
"""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, TypeVar

import structlog
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn

_PROGRESS_THRESHOLD = 100

_console = Console(stderr=True)

# Markup placed before a status line, keyed by style name
_STYLES = {
    "success": "[green]✓[/green] ",
    "warning": "[yellow]![/yellow] ",
    "error": "[red]✗[/red] ",
    "info": "  ",
    "none": "",
}

_live_display: ContextVar[bool] = ContextVar("live_display", default=False)


def is_console_suppressed() -> bool:
    return _live_display.get()


@contextmanager
def suppress_console_logs() -> Iterator[None]:
    """Keep console log handlers quiet while a live bar owns the terminal."""
    previous = _live_display.get()
    _live_display.set(True)
    try:
        yield
    finally:
        _live_display.set(previous)


def _is_tty() -> bool:
    isatty = getattr(sys.stderr, "isatty", None)
    return bool(isatty and isatty())


def get_console() -> Console:
    return _console


def status(message: str, *, style: str = "info", indent: int = 0) -> None:
    """One status line on stderr, e.g. ``✓ Store ready at .codeatlas/repo.db``."""
    _console.print(" " * indent + _STYLES.get(style, "") + message, highlight=False)
    structlog.get_logger().debug("status", message=message, style=style)


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    word = singular if count == 1 else (plural or f"{singular}s")
    return f"{count} {word}"


def _length_of(items: Iterable[Any]) -> int | None:
    try:
        return len(items)  # type: ignore[arg-type]
    except TypeError:
        return None


T = TypeVar("T")


def progress(
    iterable: Iterable[T],
    *,
    desc: str | None = None,
    total: int | None = None,
    unit: str = "files",
    force: bool = False,
    label: Callable[[T], str] | None = None,
) -> Iterator[T]:
    """Yield every item of ``iterable``, drawing a bar when it is worth one.

    Args:
        iterable: Items to pass through unchanged.
        desc: Bar caption, also used as the log event's ``desc``.
        total: Item count when ``iterable`` has no ``len()``.
        unit: Noun shown after the ``done/total`` counter.
        force: Draw the bar on a TTY even below the threshold.
        label: Renders the item currently being processed, such as its path.
    """
    if total is None:
        total = _length_of(iterable)

    wants_bar = force or (total is not None and total > _PROGRESS_THRESHOLD)
    if not (_is_tty() and total is not None and wants_bar):
        log = structlog.get_logger()
        if desc and total:
            log.debug("progress_start", desc=desc, total=total)
        yield from iterable
        if desc and total:
            log.debug("progress_done", desc=desc, total=total)
        return

    bar = Progress(
        TextColumn("    {task.description}"),
        BarColumn(bar_width=25, style="cyan", complete_style="cyan"),
        MofNCompleteColumn(),
        TextColumn("{task.fields[unit]} [dim]{task.fields[current]}[/dim]"),
        console=_console,
        transient=True,
    )
    with suppress_console_logs(), bar:
        task_id = bar.add_task(desc or "Working", total=total, unit=unit, current="")
        for item in iterable:
            if label is not None:
                bar.update(task_id, current=label(item))
            yield item
            bar.advance(task_id)
