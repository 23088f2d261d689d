"""atlas backup command - timestamped copy of the store."""

from datetime import UTC, datetime
from pathlib import Path

import click
import structlog

from codeatlas.cli.utils import cli_errors, open_store, resolve_context
from codeatlas.config.constants import BACKUP_NAME_RE
from codeatlas.core.errors import CliError
from codeatlas.core.progress import status

logger = structlog.get_logger()


def next_backup_name(backup_dir: Path, prefix: str = "repo", *, now: datetime | None = None) -> str:
    """``<prefix>-<UTC timestamp>.db``, numbered when that name is already taken."""
    stamp = f"{now or datetime.now(UTC):%Y%m%d-%H%M%S}"
    name = f"{prefix}-{stamp}.db"
    counter = 1
    while (backup_dir / name).exists():
        name = f"{prefix}-{stamp}-{counter}.db"
        counter += 1
    return name


def validate_backup_destination(backup_dir: Path, name: str) -> Path:
    """Resolve name inside backup_dir.

    Raises:
        CliError: name has characters outside [A-Za-z0-9._-], resolves to a
            location other than a direct child of backup_dir, or already exists.
    """
    if not BACKUP_NAME_RE.match(name):
        raise CliError.backup_path_rejected(name, "invalid characters in name")
    base = backup_dir.resolve()
    destination = (base / name).resolve()
    if destination.parent != base:
        raise CliError.backup_path_rejected(str(destination), "outside the backup directory")
    if destination.exists():
        raise CliError.backup_path_rejected(str(destination), "file already exists")
    return destination


@click.command()
@click.option("--name", default=None, help="Backup file name (default: repo-<timestamp>.db)")
@click.pass_context
def backup_command(ctx: click.Context, name: str | None) -> None:
    """Write a full copy of the store to the backup directory."""
    with cli_errors():
        cli_ctx = resolve_context(ctx)
        destination = validate_backup_destination(
            cli_ctx.paths.backup_dir, name or next_backup_name(cli_ctx.paths.backup_dir)
        )
        with open_store(cli_ctx) as store:
            store.backup(destination)
    logger.info("backup_written", destination=str(destination))
    status(f"Backup written to {destination}", style="success")
