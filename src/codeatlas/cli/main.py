"""CodeAtlas CLI - atlas command."""

from pathlib import Path

import click

from codeatlas.cli.backup import backup_command
from codeatlas.cli.export import export_command
from codeatlas.cli.init import init_command
from codeatlas.cli.migrate import migrate_command
from codeatlas.cli.query import (
    complexity_command,
    deps_command,
    files_command,
    functions_command,
    search_command,
)
from codeatlas.cli.scan import scan_command
from codeatlas.cli.stats import stats_command
from codeatlas.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="atlas")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "-C",
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Repository root (default: current directory)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, root: Path | None) -> None:
    """CodeAtlas - Structural index and reports for a source repository."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["root"] = root
    configure_logging(level="DEBUG" if verbose else "WARNING")


cli.add_command(init_command, name="init")
cli.add_command(scan_command, name="scan")
cli.add_command(stats_command, name="stats")
cli.add_command(files_command, name="files")
cli.add_command(functions_command, name="functions")
cli.add_command(search_command, name="search")
cli.add_command(deps_command, name="deps")
cli.add_command(complexity_command, name="complexity")
cli.add_command(export_command, name="export")
cli.add_command(backup_command, name="backup")
cli.add_command(migrate_command, name="migrate")


if __name__ == "__main__":
    cli()
