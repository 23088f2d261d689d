"""atlas init command - create the store and the .codeatlas directory."""

from pathlib import Path

import click
import structlog
from rich.table import Table

from codeatlas.cli.backup import next_backup_name
from codeatlas.cli.utils import CliContext, cli_errors, open_store, resolve_context
from codeatlas.config.user_config import UserConfig, write_user_config
from codeatlas.core.excludes import SQLITE_SIDECAR_SUFFIXES, generate_atlasignore_template
from codeatlas.core.progress import get_console, status
from codeatlas.index._internal.db.schema import schema_counts
from codeatlas.index.store import RepositoryStore

logger = structlog.get_logger()


def _backup_existing_store(cli_ctx: CliContext) -> Path:
    backup_dir = cli_ctx.paths.backup_dir
    destination = backup_dir / next_backup_name(backup_dir, "pre-init")
    with RepositoryStore(cli_ctx.paths.store) as store:
        return store.backup(destination)


def _remove_store_files(store_path: Path) -> None:
    for path in (store_path, *(Path(f"{store_path}{s}") for s in SQLITE_SIDECAR_SUFFIXES)):
        path.unlink(missing_ok=True)
    logger.info("store_removed", path=str(store_path))


def initialize_repo(cli_ctx: CliContext, *, force: bool = False) -> dict[str, int]:
    """Create (or re-create) the store and write default config files.

    An existing store is backed up, then removed, so the new store starts
    empty. Returns the schema object counts.
    """
    atlas_dir = cli_ctx.paths.atlas_dir
    atlas_dir.mkdir(parents=True, exist_ok=True)

    if cli_ctx.paths.store.exists():
        backup_path = _backup_existing_store(cli_ctx)
        status(f"Existing store backed up to {backup_path}", style="info")
        _remove_store_files(cli_ctx.paths.store)

    with open_store(cli_ctx, must_exist=False) as store:
        counts = schema_counts(store.db.engine)

    config_path = atlas_dir / "config.yaml"
    if not config_path.exists() or force:
        write_user_config(config_path, UserConfig())

    gitignore_path = atlas_dir / ".gitignore"
    if not gitignore_path.exists() or force:
        gitignore_path.write_text(
            "# Ignore everything except user config files\n*\n!.gitignore\n!config.yaml\n"
        )

    ignore_path = cli_ctx.root / ".atlasignore"
    if not ignore_path.exists():
        ignore_path.write_text(generate_atlasignore_template())

    return counts


@click.command()
@click.argument(
    "path", default=None, required=False, type=click.Path(exists=True, path_type=Path)
)
@click.option("--force", "-f", is_flag=True, help="Rewrite config files that already exist")
@click.pass_context
def init_command(ctx: click.Context, path: Path | None, force: bool) -> None:
    """Initialize the CodeAtlas store for a repository.

    PATH is the repository root (default: --root or the current directory).
    """
    with cli_errors():
        cli_ctx = resolve_context(ctx, path)
        status(f"Initializing CodeAtlas in {cli_ctx.root}", style="none")
        counts = initialize_repo(cli_ctx, force=force)

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Object")
    table.add_column("Count", justify="right")
    for kind, count in counts.items():
        table.add_row(kind.capitalize(), str(count))
    get_console().print(table)
    status(f"Store ready at {cli_ctx.paths.store}", style="success")
