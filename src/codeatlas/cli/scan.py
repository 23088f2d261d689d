"""atlas scan command - index a repository and regenerate artifacts."""

from pathlib import Path

import click
from rich.table import Table

from codeatlas.cli.utils import cli_errors, open_store, resolve_context
from codeatlas.core.progress import get_console, pluralize, status
from codeatlas.index.ops import RepositoryIndexer, ScanResult


def _summary_table(result: ScanResult) -> Table:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Repository", f"{result.identity.owner}/{result.identity.name}")
    table.add_row("Files", str(result.files_scanned))
    table.add_row("Lines", str(result.lines_scanned))
    table.add_row("Functions", str(result.functions_found))
    table.add_row("Errors", str(result.errors_count))
    if result.skipped_too_large:
        table.add_row("Skipped (too large)", str(len(result.skipped_too_large)))
    if result.files_pruned:
        table.add_row("Pruned", str(result.files_pruned))
    return table


@click.command()
@click.argument(
    "path", default=None, required=False, type=click.Path(exists=True, path_type=Path)
)
@click.option("--prune", is_flag=True, help="Delete indexed files that no longer exist on disk")
@click.option("--no-artifacts", is_flag=True, help="Skip writing the JSON/Markdown artifacts")
@click.pass_context
def scan_command(ctx: click.Context, path: Path | None, prune: bool, no_artifacts: bool) -> None:
    """Scan a repository into the store.

    PATH is the repository root (default: --root or the current directory).
    """
    with cli_errors():
        cli_ctx = resolve_context(ctx, path)
        status(f"Scanning {cli_ctx.root}", style="none")
        with open_store(cli_ctx, must_exist=False) as store:
            indexer = RepositoryIndexer(
                cli_ctx.root, store, cli_ctx.config, data_dir=cli_ctx.paths.data_dir
            )
            result = indexer.scan(prune=prune, write_artifacts=not no_artifacts)

    get_console().print(_summary_table(result))
    for rel_path in result.failed_paths:
        status(f"Could not analyze {rel_path}", style="warning", indent=2)
    if result.artifacts:
        status(
            f"Wrote {pluralize(len(result.artifacts), 'artifact')} to {cli_ctx.paths.data_dir}",
            style="info",
        )
    status(
        f"Scan {result.scan_id} completed in {result.duration_seconds:.1f}s", style="success"
    )
