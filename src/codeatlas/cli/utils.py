"""CLI utilities."""

from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import click
from rich.console import Console

from codeatlas.config import AtlasPaths, CodeAtlasConfig, get_atlas_paths, load_config
from codeatlas.core.errors import CliError, CodeAtlasError
from codeatlas.core.logging import configure_logging
from codeatlas.index.models import RepositoryMetadata
from codeatlas.index.store import RepositoryStore, row_id

# Output wider than this is folded by rich when stdout is not a terminal
_PIPE_WIDTH = 200


@dataclass
class CliContext:
    """Resolved locations and config for the repository a command runs against."""

    root: Path
    config: CodeAtlasConfig
    paths: AtlasPaths


def get_output_console() -> Console:
    """Console for command results (stdout). Status and logs go to stderr."""
    width = None if sys.stdout.isatty() else _PIPE_WIDTH
    return Console(highlight=False, width=width)


@contextmanager
def cli_errors() -> Iterator[None]:
    """Report CodeAtlasError and filesystem failures as one line with exit code 1."""
    try:
        yield
    except CodeAtlasError as e:
        raise click.ClickException(e.message) from e
    except OSError as e:
        err = CliError.io_failed(str(e.filename or "file"), e.strerror or str(e))
        raise click.ClickException(err.message) from e


def resolve_context(ctx: click.Context, root: Path | None = None) -> CliContext:
    """Load config and paths for root (default: the group's --root option)."""
    repo_root = (root or ctx.obj.get("root") or Path.cwd()).resolve()
    config = load_config(repo_root)
    if not ctx.obj.get("verbose"):
        configure_logging(config=config.logging)
    return CliContext(root=repo_root, config=config, paths=get_atlas_paths(repo_root, config))


@contextmanager
def open_store(
    cli_ctx: CliContext, *, must_exist: bool = True
) -> Iterator[RepositoryStore]:
    """Connected store for the command; closed on exit.

    Raises:
        CliError: must_exist is set and there is no store yet.
    """
    if must_exist and not cli_ctx.paths.store.exists():
        raise CliError.no_repository()
    store = RepositoryStore(
        cli_ctx.paths.store, busy_timeout_ms=cli_ctx.config.database.busy_timeout_ms
    )
    store.connect()
    try:
        yield store
    finally:
        store.close()


def require_repository(store: RepositoryStore) -> RepositoryMetadata:
    repo = store.get_latest_repository()
    if repo is None:
        raise CliError.no_repository()
    return repo


def require_repository_id(store: RepositoryStore) -> int:
    """Id of the most recently scanned repository; CliError when there is none."""
    return row_id(require_repository(store), "require_repository")


def check_positive(name: str, value: int) -> int:
    if value < 1:
        raise CliError.invalid_argument(name, value, "must be a positive integer")
    return value


def check_choice(name: str, value: str, choices: tuple[str, ...]) -> str:
    if value not in choices:
        raise CliError.invalid_argument(name, value, f"must be one of {', '.join(choices)}")
    return value


def format_size(size_bytes: int | None) -> str:
    size = float(size_bytes or 0)
    for unit in ("B", "KB", "MB"):
        if size < 1024:
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


def dump_row(obj: Any) -> dict[str, Any]:
    """JSON-safe dict of a SQLModel row."""
    return obj.model_dump(mode="json")
