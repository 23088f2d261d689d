"""Listing commands: atlas files, functions, search, deps, complexity."""

import click
from rich.markup import escape
from rich.table import Table

from codeatlas.cli.utils import (
    check_choice,
    check_positive,
    cli_errors,
    format_size,
    get_output_console,
    open_store,
    require_repository_id,
    resolve_context,
)
from codeatlas.config.constants import (
    COMPLEXITY_LIST_DEFAULT,
    DEPS_LIST_DEFAULT,
    FILES_LIST_DEFAULT,
    FILES_SORT_FIELDS,
    FUNCTIONS_LIST_DEFAULT,
    SEARCH_DEFAULT_LIMIT,
)

UNRESOLVED_MARKER = "(unresolved)"


@click.command()
@click.option("--limit", "-n", type=int, default=FILES_LIST_DEFAULT, help="Maximum rows")
@click.option(
    "--sort",
    default="path",
    help=f"Sort field: {', '.join(FILES_SORT_FIELDS)}",
)
@click.pass_context
def files_command(ctx: click.Context, limit: int, sort: str) -> None:
    """List indexed files."""
    with cli_errors():
        check_positive("limit", limit)
        check_choice("sort", sort, FILES_SORT_FIELDS)
        cli_ctx = resolve_context(ctx)
        with open_store(cli_ctx) as store:
            repo_id = require_repository_id(store)
            rows = store.list_files(repo_id, limit, sort)

    table = Table(title=f"Files (sorted by {sort})")
    table.add_column("Path")
    table.add_column("Type")
    table.add_column("Lines", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Complexity", justify="right")
    table.add_column("Purpose")
    for f in rows:
        table.add_row(
            f.path,
            f.file_type or "",
            str(f.lines_count),
            format_size(f.size_bytes),
            f"{f.complexity_score:g}",
            f.purpose or "",
        )
    get_output_console().print(table)


@click.command()
@click.option("--limit", "-n", type=int, default=FUNCTIONS_LIST_DEFAULT, help="Maximum rows")
@click.option("--file", "file_filter", default=None, help="Only files whose path contains this")
@click.pass_context
def functions_command(ctx: click.Context, limit: int, file_filter: str | None) -> None:
    """List discovered functions."""
    with cli_errors():
        check_positive("limit", limit)
        cli_ctx = resolve_context(ctx)
        with open_store(cli_ctx) as store:
            repo_id = require_repository_id(store)
            rows = store.list_functions(repo_id, limit=limit, file_filter=file_filter)

    table = Table(title="Functions")
    table.add_column("Name")
    table.add_column("File")
    table.add_column("Line", justify="right")
    table.add_column("Complexity", justify="right")
    table.add_column("Flags")
    table.add_column("Purpose")
    for fn, path in rows:
        flags = [flag for flag, on in (("async", fn.is_async), ("exported", fn.is_exported)) if on]
        table.add_row(
            fn.name,
            path,
            str(fn.line_start),
            str(fn.complexity),
            ", ".join(flags),
            fn.purpose or "",
        )
    get_output_console().print(table)


@click.command()
@click.argument("term")
@click.option("--limit", "-n", type=int, default=SEARCH_DEFAULT_LIMIT, help="Maximum rows per list")
@click.pass_context
def search_command(ctx: click.Context, term: str, limit: int) -> None:
    """Full-text search over file and function names, paths and purposes."""
    with cli_errors():
        check_positive("limit", limit)
        cli_ctx = resolve_context(ctx)
        with open_store(cli_ctx) as store:
            repo_id = require_repository_id(store)
            results = store.full_text_search(term, repo_id=repo_id, limit=limit)

    console = get_output_console()
    console.print(f"[bold]Files matching '{escape(term)}'[/bold] ({len(results.files)})")
    for f in results.files:
        console.print(f"  {escape(f['path'])}  [dim]{escape(f['purpose'] or '')}[/dim]")
    console.print(f"[bold]Functions matching '{escape(term)}'[/bold] ({len(results.functions)})")
    for fn in results.functions:
        console.print(
            f"  {escape(fn['name'])}  {escape(fn['file_path'])}:{fn['line_start']}  "
            f"[dim]{escape(fn['purpose'] or '')}[/dim]"
        )


@click.command()
@click.option("--limit", "-n", type=int, default=DEPS_LIST_DEFAULT, help="Maximum rows")
@click.pass_context
def deps_command(ctx: click.Context, limit: int) -> None:
    """List dependency edges. Unresolved targets are marked."""
    with cli_errors():
        check_positive("limit", limit)
        cli_ctx = resolve_context(ctx)
        with open_store(cli_ctx) as store:
            repo_id = require_repository_id(store)
            edges = store.list_dependencies(repo_id, limit=limit)

    table = Table(title="Dependencies")
    table.add_column("From")
    table.add_column("To")
    table.add_column("Import")
    table.add_column("Kind")
    for edge in edges:
        table.add_row(
            edge.from_file,
            edge.to_file if edge.is_resolved and edge.to_file else UNRESOLVED_MARKER,
            edge.import_path,
            edge.dependency_type,
        )
    get_output_console().print(table)


@click.command()
@click.option("--limit", "-n", type=int, default=COMPLEXITY_LIST_DEFAULT, help="Maximum rows")
@click.pass_context
def complexity_command(ctx: click.Context, limit: int) -> None:
    """Show the most complex files."""
    with cli_errors():
        check_positive("limit", limit)
        cli_ctx = resolve_context(ctx)
        with open_store(cli_ctx) as store:
            repo_id = require_repository_id(store)
            entries = store.get_complexity_report(repo_id, top_n=limit)

    table = Table(title="Complexity")
    table.add_column("#", justify="right")
    table.add_column("Path")
    table.add_column("Complexity", justify="right")
    table.add_column("Functions", justify="right")
    table.add_column("Avg/function", justify="right")
    for i, entry in enumerate(entries, start=1):
        avg = entry.avg_function_complexity
        table.add_row(
            str(i),
            entry.path,
            f"{entry.file_complexity:g}",
            str(entry.function_count),
            f"{avg:.2f}" if avg is not None else "-",
        )
    get_output_console().print(table)
