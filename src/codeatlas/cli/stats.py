"""atlas stats command - aggregate counts for the indexed repository."""

import click
from rich.table import Table

from codeatlas.cli.utils import (
    cli_errors,
    format_size,
    get_output_console,
    open_store,
    require_repository,
    resolve_context,
)
from codeatlas.index.store import row_id


@click.command()
@click.option("--verbose", is_flag=True, help="Add the per-language breakdown")
@click.pass_context
def stats_command(ctx: click.Context, verbose: bool) -> None:
    """Show repository, file and function statistics."""
    with cli_errors():
        cli_ctx = resolve_context(ctx)
        with open_store(cli_ctx) as store:
            repo = require_repository(store)
            metrics = store.get_repository_metrics(row_id(repo, "stats"))

    console = get_output_console()
    console.print(f"[bold]{repo.repo_owner}/{repo.repo_name}[/bold]")
    if repo.last_updated:
        console.print(f"Last scan: {repo.last_updated:%Y-%m-%d %H:%M:%S} ({repo.scan_type})")

    summary = Table(show_header=False, box=None, padding=(0, 2))
    summary.add_column("Metric")
    summary.add_column("Value", justify="right")
    files = metrics.files
    summary.add_row("Files", str(files.total_files))
    summary.add_row("Total lines", str(files.total_lines))
    summary.add_row("Code lines", str(files.total_code_lines))
    summary.add_row("Total size", format_size(files.total_size))
    summary.add_row("Avg file complexity", f"{files.avg_complexity:.2f}")
    functions = metrics.functions
    summary.add_row("Functions", str(functions.total_functions))
    summary.add_row("Exported functions", str(functions.exported_functions))
    summary.add_row("Async functions", str(functions.async_functions))
    summary.add_row("Avg function complexity", f"{functions.avg_complexity:.2f}")
    console.print(summary)

    components = Table(title="Components")
    components.add_column("Component")
    components.add_column("Type")
    components.add_column("Files", justify="right")
    for comp in metrics.components:
        components.add_row(comp.name, comp.type, str(comp.file_count))
    console.print(components)

    if verbose:
        languages = Table(title="Languages")
        languages.add_column("Language")
        languages.add_column("Files", justify="right")
        languages.add_column("Lines", justify="right")
        languages.add_column("%", justify="right")
        for lang in metrics.languages:
            languages.add_row(
                lang.name, str(lang.file_count), str(lang.total_lines), f"{lang.percentage:.1f}"
            )
        console.print(languages)
