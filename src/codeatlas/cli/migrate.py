"""atlas migrate command - load previously generated JSON artifacts."""

from pathlib import Path

import click

from codeatlas.cli.utils import cli_errors, open_store, resolve_context
from codeatlas.core.progress import status
from codeatlas.git.identity import detect_identity
from codeatlas.index._internal.migrate import LegacyImporter


@click.command()
@click.option(
    "--data-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Directory holding repo-map.json (default: the configured data directory)",
)
@click.pass_context
def migrate_command(ctx: click.Context, data_dir: Path | None) -> None:
    """Import repo-map.json, code-index.json and metrics.json into the store."""
    with cli_errors():
        cli_ctx = resolve_context(ctx)
        identity = detect_identity(cli_ctx.root, cli_ctx.config.repository)
        with open_store(cli_ctx, must_exist=False) as store:
            importer = LegacyImporter(
                store,
                data_dir or cli_ctx.paths.data_dir,
                identity,
                replace_child_rows=cli_ctx.config.index.replace_child_rows,
            )
            result = importer.run()

    for name in result.missing_sources:
        status(f"{name} not found, skipped", style="warning")
    status(
        f"Imported {result.files} files, {result.functions} functions, "
        f"{result.exports} exports, {result.dependencies} dependencies",
        style="success",
    )
    if result.skipped:
        status(f"{result.skipped} records referenced unknown files", style="warning")
